import io
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Iterable, Optional

import requests
from PIL import Image

from ocr_relay_utils import utils
from ocr_relay_utils.errors import ClientValidationError
from ocr_relay_utils.schemas import ExtractionResult, Upload

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_DIMENSIONS = (2000, 2000)
JPEG_QUALITY = 80
DEFAULT_RELAY_URL = "http://localhost:8000/api/extract-text"
# above the relay's own 60 s upstream limit so its 504 answer still arrives
DEFAULT_TIMEOUT = 90.0
IMAGE_FIELD = "image"

# staged progress, not a measure of elapsed time
PROGRESS_BEGIN = 10
PROGRESS_OPTIMIZED = 20
PROGRESS_SENT = 40
PROGRESS_RESPONSE = 70
PROGRESS_COMPLETE = 100

TIMEOUT_MESSAGE = "Request timed out. Please try again with a smaller image or better connection."
CONNECTION_MESSAGE = "Could not reach the OCR service. Please check your connection and try again."
INVALID_RESPONSE_MESSAGE = "Error: Invalid response from server."


def validate_upload(
    upload: Upload,
    max_bytes: int = MAX_UPLOAD_BYTES,
    allowed_types: Iterable[str] = ALLOWED_CONTENT_TYPES,
) -> None:
    """Raise ClientValidationError when the upload must not be sent."""
    if utils.normalize_content_type(upload.content_type) not in allowed_types:
        raise ClientValidationError("Please upload a valid image file (JPG, PNG, WEBP)")
    if upload.size > max_bytes:
        raise ClientValidationError("File size should be less than 5MB")
    if upload.size == 0:
        raise ClientValidationError("The selected file is empty")


def optimize_image(upload: Upload, max_size=MAX_DIMENSIONS, quality: int = JPEG_QUALITY) -> Upload:
    """
    Shrink the image to fit within `max_size` and re-encode it as JPEG.

    Best effort: if Pillow cannot decode or encode the image the original
    upload is returned untouched.
    """
    try:
        with Image.open(io.BytesIO(upload.data)) as img:
            img.thumbnail(max_size)
            if img.mode != "RGB":
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning("Could not optimize %s, sending original: %s", upload.filename, e)
        return upload

    name = utils.extract_file_info(upload.filename)["name"] or "image"
    optimized = Upload(data=out.getvalue(), content_type="image/jpeg", filename=f"{name}.jpg")
    logger.info("Optimized %s: %d -> %d bytes", upload.filename, upload.size, optimized.size)
    return optimized


class UploadClient:
    """
    Sends one image at a time to the relay and returns an ExtractionResult.
    Nothing is retried; every failure becomes a user-visible error.
    """

    def __init__(self, relay_url: str = DEFAULT_RELAY_URL, timeout: float = DEFAULT_TIMEOUT,
                 optimize: bool = True, session=None):
        self.relay_url = relay_url
        self.timeout = timeout
        self.optimize = optimize
        self.session = session or requests

    @classmethod
    def from_env(cls, **kwargs) -> "UploadClient":
        return cls(
            relay_url=utils.get_env("OCR_RELAY_URL", DEFAULT_RELAY_URL),
            timeout=utils.get_env_float("OCR_UPLOAD_TIMEOUT", DEFAULT_TIMEOUT),
            **kwargs,
        )

    def extract_text(self, upload: Upload,
                     on_progress: Optional[Callable[[int], None]] = None) -> ExtractionResult:
        report = on_progress or (lambda value: None)
        report(PROGRESS_BEGIN)
        try:
            return self._extract(upload, report)
        finally:
            report(PROGRESS_COMPLETE)

    def _post(self, files):
        """
        POST with `timeout` as a limit on the whole exchange. requests only
        bounds each connect/read, so the call runs in a worker thread and is
        abandoned once the deadline passes.
        """
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(self.session.post, self.relay_url, files=files, timeout=self.timeout)
            return future.result(timeout=self.timeout)
        finally:
            pool.shutdown(wait=False)

    def _extract(self, upload: Upload, report) -> ExtractionResult:
        try:
            validate_upload(upload)
        except ClientValidationError as e:
            logger.info("Rejected %s: %s", upload.filename, e.message)
            return ExtractionResult(error=e.message)

        if self.optimize:
            upload = optimize_image(upload)
        report(PROGRESS_OPTIMIZED)

        files = {IMAGE_FIELD: (upload.filename, upload.data, upload.content_type)}
        logger.info("Uploading %s (%d bytes) to %s", upload.filename, upload.size, self.relay_url)
        try:
            report(PROGRESS_SENT)
            resp = self._post(files)
        except (FutureTimeout, requests.exceptions.Timeout):
            logger.error("Upload of %s timed out after %ss", upload.filename, self.timeout)
            return ExtractionResult(error=TIMEOUT_MESSAGE)
        except requests.exceptions.RequestException as e:
            logger.error("Upload of %s failed: %s", upload.filename, e)
            return ExtractionResult(error=CONNECTION_MESSAGE, details=str(e))
        report(PROGRESS_RESPONSE)

        try:
            body = resp.json()
        except ValueError:
            logger.error("Relay returned non-JSON body with status %s", resp.status_code)
            return ExtractionResult(error=INVALID_RESPONSE_MESSAGE)
        if not isinstance(body, dict):
            return ExtractionResult(error=INVALID_RESPONSE_MESSAGE)

        if not 200 <= resp.status_code < 300:
            message = body.get("error") or f"OCR error: {resp.status_code}"
            logger.error("Relay error %s: %s", resp.status_code, message)
            details = body.get("details")
            return ExtractionResult(
                error=f"Error: {message}",
                details=None if details is None else str(details),
            )

        text = body.get("text")
        if not isinstance(text, str):
            return ExtractionResult(error=INVALID_RESPONSE_MESSAGE)
        return ExtractionResult(text=text)
