from functools import lru_cache

from dotenv import load_dotenv

from . import utils
from .schemas import OCRSpaceParams, RelayConfig


def load_relay_config() -> RelayConfig:
    """
    Build the relay settings from the environment (and a `.env` file, if any).
    A missing API key is allowed here; callers decide when it becomes fatal.
    """
    load_dotenv()
    params = OCRSpaceParams(
        language=utils.get_env("OCR_LANGUAGE", "eng"),
        ocr_engine=int(utils.get_env("OCR_ENGINE", "2")),
        detect_orientation=utils.get_env_bool("OCR_DETECT_ORIENTATION", True),
        scale=utils.get_env_bool("OCR_SCALE", True),
        is_table=utils.get_env_bool("OCR_IS_TABLE", True),
    )
    origins = utils.get_env("CORS_ALLOWED_ORIGINS", "*")
    return RelayConfig(
        api_key=utils.get_env("OCR_SPACE_API_KEY"),
        ocr_url=utils.get_env("OCR_SPACE_URL", "https://api.ocr.space/parse/image"),
        timeout=utils.get_env_float("OCR_SPACE_TIMEOUT", 60.0),
        params=params,
        allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )


@lru_cache()
def get_relay_config() -> RelayConfig:
    return load_relay_config()
