#api/relay/ocr_space_client.py
import logging
from typing import Optional

import requests
from pydantic import ValidationError

from ocr_relay_utils import postprocess, utils
from ocr_relay_utils.errors import TransportError, UpstreamError
from ocr_relay_utils.schemas import OCRSpaceResponse, RelayConfig

logger = logging.getLogger(__name__)

MAX_DETAIL_CHARS = 500


class OCRSpaceClient:
    """
    Forwards one image to OCR.space and turns the answer into plain text.

    `session` is anything with a requests-compatible `post`; the `requests`
    module itself is used by default so no connection state outlives a call.
    """

    def __init__(self, config: RelayConfig, session=None):
        self.config = config
        self.session = session or requests

    def parse_image(self, raw_bytes: bytes, content_type: Optional[str] = None) -> str:
        """
        Send the bytes upstream and return the joined text of every parsed
        region. Raises ConfigurationError, UpstreamError or TransportError.
        One attempt only.
        """
        api_key = self.config.require_api_key()
        filename = utils.upstream_filename(content_type)
        mime = utils.normalize_content_type(content_type) or "application/octet-stream"

        files = {"file": (filename, raw_bytes, mime)}
        data = self.config.params.to_form()

        logger.info(
            "Forwarding %s to OCR service, size: %d bytes, hash: %s, type: %s",
            filename, len(raw_bytes), utils.compute_file_hash(raw_bytes), mime,
        )

        try:
            resp = self.session.post(
                self.config.ocr_url,
                headers={"apikey": api_key},
                files=files,
                data=data,
                timeout=self.config.timeout,
            )
        except requests.exceptions.ConnectTimeout as e:
            # subclass of both ConnectionError and Timeout; report as a timeout
            logger.error("OCR service connect timeout: %s", utils.mask_secret(e, api_key))
            raise TransportError(
                "OCR service took too long to respond. Please try again.",
                status_code=504,
            )
        except requests.exceptions.ConnectionError as e:
            logger.error("Cannot connect to OCR service: %s", utils.mask_secret(e, api_key))
            raise TransportError(
                "OCR service is unavailable. Please try again later.",
                status_code=503,
            )
        except requests.exceptions.Timeout as e:
            logger.error("OCR service timeout: %s", utils.mask_secret(e, api_key))
            raise TransportError(
                "OCR service took too long to respond. Please try again.",
                status_code=504,
            )
        except requests.exceptions.RequestException as e:
            logger.error("OCR service request failed: %s", utils.mask_secret(e, api_key))
            raise TransportError(
                "Could not reach the OCR service. Please try again.",
                details=utils.mask_secret(e, api_key),
                status_code=502,
            )

        logger.info("OCR service responded with status %s", resp.status_code)

        if not 200 <= resp.status_code < 300:
            details = self._error_details(resp, api_key)
            logger.error("OCR service error %s: %s", resp.status_code, details)
            raise UpstreamError(
                "Error processing image with OCR service",
                details=details,
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError:
            snippet = utils.mask_secret(resp.text[:200], api_key)
            logger.error("OCR service returned invalid JSON: %s", snippet)
            raise UpstreamError("Invalid response from OCR service", details=snippet, status_code=502)

        if not isinstance(payload, dict):
            # OCR.space answers some failures with a bare JSON string and a 200
            details = utils.mask_secret(str(payload)[:MAX_DETAIL_CHARS], api_key)
            logger.error("OCR service returned an unexpected body: %s", details)
            raise UpstreamError("Invalid response from OCR service", details=details, status_code=502)

        try:
            result = OCRSpaceResponse.model_validate(payload)
        except ValidationError as e:
            logger.error("OCR service response did not match the expected shape: %s", e)
            raise UpstreamError(
                "Invalid response from OCR service",
                details=utils.mask_secret(str(payload)[:MAX_DETAIL_CHARS], api_key),
                status_code=502,
            )

        if result.IsErroredOnProcessing:
            details = utils.mask_secret(result.error_text() or "No details available", api_key)
            logger.error("OCR service could not process the image: %s", details)
            raise UpstreamError(
                "OCR service could not process the image",
                details=details,
                status_code=502,
            )

        regions = [r.ParsedText for r in (result.ParsedResults or [])]
        text = postprocess.join_regions(regions)
        logger.info(
            "Extracted %d region(s), %d characters, in %s ms",
            len(regions), len(text), result.ProcessingTimeInMilliseconds,
        )
        return text

    @staticmethod
    def _error_details(resp, api_key: str) -> str:
        """
        Best diagnostic the provider offered, with the credential masked.
        """
        try:
            body = resp.json()
        except ValueError:
            body = None

        details = None
        if isinstance(body, dict):
            details = body.get("ErrorMessage") or body.get("error") or body.get("ErrorDetails")
            if isinstance(details, list):
                details = "; ".join(str(d) for d in details if d)
        elif isinstance(body, str):
            details = body

        if not details:
            details = resp.text or f"HTTP {resp.status_code}"
        return utils.mask_secret(str(details)[:MAX_DETAIL_CHARS], api_key)
