import os
import logging
import datetime
import hashlib

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

ALLOWED_UPSTREAM_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "bmp", "tiff", "pdf")
DEFAULT_UPSTREAM_EXTENSION = "png"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def setup_logging(level=None):
    """
    Configure root logging once and return the root logger.
    The level comes from LOG_LEVEL when not given explicitly.
    """
    if level is None:
        level = get_env("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format=LOG_FORMAT,
        level=level,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger()


def get_env(key: str, default=None):
    """
    Read an environment variable, falling back to `default` when unset or blank.
    """
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_env_bool(key: str, default: bool) -> bool:
    value = get_env(key)
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


def get_env_float(key: str, default: float) -> float:
    value = get_env(key)
    if value is None:
        return default
    return float(value)


def get_timestamp():
    """
    ISO 8601 timestamp for API responses.
    """
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def compute_file_hash(file_bytes: bytes) -> str:
    """
    MD5 of the payload, used to correlate log lines for the same upload.
    """
    return hashlib.md5(file_bytes).hexdigest()


def normalize_content_type(content_type) -> str:
    """
    'Image/PNG; charset=binary' -> 'image/png'. Empty string when unknown.
    """
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def upstream_extension(content_type) -> str:
    """
    File extension sent upstream, derived from the MIME subtype and limited to
    the extensions the OCR provider accepts.
    """
    mime = normalize_content_type(content_type)
    subtype = mime.rsplit("/", 1)[-1] if mime else ""
    if subtype in ALLOWED_UPSTREAM_EXTENSIONS:
        return subtype
    return DEFAULT_UPSTREAM_EXTENSION


def upstream_filename(content_type) -> str:
    return f"image.{upstream_extension(content_type)}"


def mask_secret(text, secret) -> str:
    """
    Replace every occurrence of `secret` in `text` with '***'.
    """
    if text is None:
        return None
    text = str(text)
    if secret:
        text = text.replace(secret, "***")
    return text


def extract_file_info(filename: str) -> dict:
    """
    Split a filename into name and lower-cased extension.
    """
    if not filename:
        return {"name": "unknown", "extension": "", "basename": "unknown"}

    basename = os.path.basename(filename)
    name, ext = os.path.splitext(basename)
    if ext.startswith('.'):
        ext = ext[1:]

    return {
        "name": name,
        "extension": ext.lower(),
        "basename": basename
    }
