"""Shared fakes: HTTP sessions that record calls instead of hitting the network."""

from __future__ import annotations

import json

import pytest

from ocr_relay_utils.schemas import RelayConfig

API_KEY = "test-secret-key"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Records every post; answers with queued responses or raises queued errors."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ocr_payload(*texts):
    return {
        "ParsedResults": [{"ParsedText": t, "FileParseExitCode": 1} for t in texts],
        "OCRExitCode": 1,
        "IsErroredOnProcessing": False,
        "ProcessingTimeInMilliseconds": "312",
    }


@pytest.fixture
def relay_config():
    return RelayConfig(api_key=API_KEY)
