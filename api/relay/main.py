# api/relay/main.py
# ------------------------------------------------------------
# FastAPI entrypoint for the OCR relay
# ------------------------------------------------------------
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers

from ocr_relay_utils import utils
from ocr_relay_utils.config import get_relay_config
from ocr_relay_utils.errors import ClientValidationError, OCRRelayError
from ocr_relay_utils.schemas import ErrorResponse, ExtractTextResponse, HealthResponse, RelayConfig
from .ocr_space_client import OCRSpaceClient

utils.setup_logging()
logger = logging.getLogger(__name__)

EXTRACT_TEXT_PATH = "/api/extract-text"
IMAGE_FIELD = "image"


class RelayCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware whose successful pre-flight answer has an empty body.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        if response.status_code != 200:
            return response
        headers = {
            k: v for k, v in response.headers.items()
            if k.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def cors_headers(config: RelayConfig) -> dict:
    origins = config.allowed_origins
    return {
        "Access-Control-Allow-Origin": "*" if "*" in origins or not origins else origins[0],
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def create_app(config: Optional[RelayConfig] = None, session=None) -> FastAPI:
    """
    Build the relay app. `config` defaults to the environment; `session`
    replaces the HTTP transport used for the upstream call.
    """
    config = config or get_relay_config()

    app = FastAPI(title="OCR-Relay", version="0.1.0")
    app.state.config = config
    app.state.session = session

    # the browser client is usually served from a different origin
    app.add_middleware(
        RelayCORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(OCRRelayError)
    async def relay_error_handler(request: Request, exc: OCRRelayError):
        body = ErrorResponse(error=exc.message, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        # runs outside the CORS middleware, so the headers are added here
        relay_config: RelayConfig = request.app.state.config
        details = utils.mask_secret(str(exc), relay_config.api_key) or None
        logger.error("Unexpected error handling %s: %s: %s", request.url.path, type(exc).__name__, details)
        body = ErrorResponse(error="Internal server error", details=details)
        return JSONResponse(
            status_code=500,
            content=body.model_dump(exclude_none=True),
            headers=cors_headers(relay_config),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = "; ".join(str(e.get("msg", "")) for e in exc.errors())
        logger.warning("Rejected malformed upload: %s", messages)
        body = ErrorResponse(error="No valid image file provided", details=messages or None)
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    @app.post(
        EXTRACT_TEXT_PATH,
        response_model=ExtractTextResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
        summary="Extract text from an uploaded image",
    )
    async def extract_text(request: Request, image: Optional[UploadFile] = File(None)):
        """
        1) Check the relay has an OCR credential
        2) Read the uploaded `image` field
        3) Forward it to OCR.space (one attempt)
        4) Return the joined text, or an error with the upstream status
        """
        relay_config: RelayConfig = request.app.state.config
        relay_config.require_api_key()

        if image is None:
            logger.warning("Request without an '%s' file field", IMAGE_FIELD)
            raise ClientValidationError("No valid image file provided")

        raw = await image.read()
        if not raw:
            logger.warning("Empty upload: %s", image.filename)
            raise ClientValidationError("No valid image file provided", details="The uploaded file is empty")

        logger.info("Received %s (%s), %d bytes", image.filename, image.content_type, len(raw))

        client = OCRSpaceClient(relay_config, session=request.app.state.session)
        text = await run_in_threadpool(client.parse_image, raw, image.content_type)
        return ExtractTextResponse(text=text)

    @app.options(EXTRACT_TEXT_PATH, include_in_schema=False)
    def extract_text_options(request: Request):
        # pre-flight requests are answered by the middleware; this covers bare OPTIONS
        return Response(status_code=200, headers=cors_headers(request.app.state.config))

    @app.get("/health", response_model=HealthResponse)
    def health_check(request: Request):
        """Health check endpoint"""
        return HealthResponse(
            status="ok",
            timestamp=utils.get_timestamp(),
            api_key_configured=request.app.state.config.api_key_configured,
        )

    return app


def serve():
    """
    Console entrypoint: refuse to start without an API key, then run uvicorn.
    """
    config = get_relay_config()
    config.require_api_key()
    logger.info("Starting OCR relay with API key: ***")
    uvicorn.run(
        create_app(config),
        host=utils.get_env("HOST", "0.0.0.0"),
        port=int(utils.get_env("PORT", "8000")),
    )


app = create_app()
