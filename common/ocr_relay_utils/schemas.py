from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError


def _flag(value: bool) -> str:
    return "true" if value else "false"


class Upload(BaseModel):
    """
    An image picked by the user: raw bytes plus the declared MIME type and name.
    """
    data: bytes
    content_type: str
    filename: str = "image"

    @property
    def size(self) -> int:
        return len(self.data)


class ExtractionResult(BaseModel):
    """
    Outcome of one upload as seen by the client: either text or an error.
    """
    text: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class ExtractTextResponse(BaseModel):
    text: str  # extracted text, or a sentinel when nothing was found


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    api_key_configured: bool


class OCRSpaceResult(BaseModel):
    """One parsed region/page of an OCR.space response."""
    model_config = ConfigDict(extra="ignore")

    ParsedText: Optional[str] = None
    FileParseExitCode: Optional[Union[int, str]] = None
    ErrorMessage: Optional[str] = None


class OCRSpaceResponse(BaseModel):
    """
    Body of https://api.ocr.space/parse/image. Only the fields the relay reads
    are declared; anything else the provider adds is ignored.
    """
    model_config = ConfigDict(extra="ignore")

    ParsedResults: Optional[List[OCRSpaceResult]] = None
    IsErroredOnProcessing: bool = False
    ErrorMessage: Optional[Union[str, List[str]]] = None
    ErrorDetails: Optional[str] = None
    OCRExitCode: Optional[Union[int, str]] = None
    ProcessingTimeInMilliseconds: Optional[str] = None

    def error_text(self) -> Optional[str]:
        message = self.ErrorMessage
        if isinstance(message, list):
            message = "; ".join(m for m in message if m)
        return message or self.ErrorDetails or None


class OCRSpaceParams(BaseModel):
    """
    Fixed recognition parameters sent with every upstream request.
    """
    model_config = ConfigDict(frozen=True)

    language: str = "eng"
    ocr_engine: int = 2
    detect_orientation: bool = True
    scale: bool = True
    is_table: bool = True
    is_overlay_required: bool = False
    is_create_searchable_pdf: bool = False
    is_searchable_pdf_hide_text_layer: bool = True

    def to_form(self) -> Dict[str, str]:
        return {
            "language": self.language,
            "isOverlayRequired": _flag(self.is_overlay_required),
            "scale": _flag(self.scale),
            "detectOrientation": _flag(self.detect_orientation),
            "isTable": _flag(self.is_table),
            "OCREngine": str(self.ocr_engine),
            "isCreateSearchablePdf": _flag(self.is_create_searchable_pdf),
            "isSearchablePdfHideTextLayer": _flag(self.is_searchable_pdf_hide_text_layer),
        }


class RelayConfig(BaseModel):
    """
    Process-wide, read-only relay settings. Built once from the environment.
    """
    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = Field(default=None, repr=False)
    ocr_url: str = "https://api.ocr.space/parse/image"
    timeout: float = 60.0
    params: OCRSpaceParams = OCRSpaceParams()
    allowed_origins: List[str] = ["*"]

    @property
    def api_key_configured(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("Server configuration error: OCR API key not found")
        return self.api_key
