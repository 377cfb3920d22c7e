"""
Failure types shared by the relay and the uploader.

Every error carries a user-facing `message`, optional provider/diagnostic
`details` and the HTTP status the relay answers with.
"""
from typing import Optional


class OCRRelayError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ClientValidationError(OCRRelayError):
    """Bad upload (type, size, missing field). Raised before any network call."""
    status_code = 400


class ConfigurationError(OCRRelayError):
    """The relay is missing required configuration such as the API key."""
    status_code = 500


class UpstreamError(OCRRelayError):
    """The OCR provider answered with an error or an unreadable body."""
    status_code = 502


class TransportError(OCRRelayError):
    """The OCR provider could not be reached, or did not answer in time."""
    status_code = 502
