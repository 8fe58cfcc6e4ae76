# =============================================================================
# Plant Disease Gateway - FastAPI Server Application
# =============================================================================
# Defines the HTTP API: a liveness probe, the leaf-diagnosis upload route
# and a Gemini connectivity probe. The Config and the GeminiInference
# instance are injected through create_app() and reached by the routes via
# app.state.
# =============================================================================

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.datastructures import UploadFile

from config import Config
from server.inference import GeminiInference
from server.uploads import staged_upload
from shared.schemas import DiagnosticResponse, ErrorResponse, PredictResponse

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "🌱 Plant Disease Detection Server is running ✅"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup/shutdown; all resources are built in create_app()."""
    config: Config = app.state.config
    logger.info(
        "Server ready: model=%s, uploads in %s.",
        app.state.inference.model_id,
        config.upload_dir,
    )
    yield
    logger.info("Shutting down server...")


def get_app_config(request: Request) -> Config:
    """Config injected through create_app()."""
    return request.app.state.config


def get_inference(request: Request) -> GeminiInference:
    """GeminiInference injected through create_app()."""
    return request.app.state.inference


def _error(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def liveness():
    """Static acknowledgement; never touches Gemini."""
    logger.info("Health check hit")
    return PlainTextResponse(LIVENESS_TEXT)


async def _form_upload(request: Request) -> Optional[UploadFile]:
    """Return the ``file`` part of the request if it is a named upload."""
    try:
        form = await request.form()
    except Exception as exc:
        logger.warning("Unreadable form body on %s: %s", request.url.path, exc)
        return None
    upload = form.get("file")
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    return upload


async def predict(
    request: Request,
    config: Config = Depends(get_app_config),
    inference: GeminiInference = Depends(get_inference),
):
    """
    Diagnose an uploaded leaf image.

    Any request without a named ``file`` upload (no body, malformed
    multipart, a plain text field, an empty filename) gets the 400 envelope.
    The upload is staged to a temporary file which is removed before the
    response is returned, on success and on failure alike.
    """
    file = await _form_upload(request)
    if file is None:
        return _error(400, "No file uploaded.")

    logger.info("Received file: %s", file.filename)
    try:
        async with staged_upload(file, config.upload_dir) as artifact:
            image_bytes = await artifact.read_bytes()
            logger.info("Image buffer read successfully.")
            result = await inference.diagnose_leaf(image_bytes, artifact.mime_type)
    except Exception as exc:
        logger.exception("Error during prediction")
        return _error(500, "Error processing the prediction", str(exc))

    return PredictResponse(result=result)


async def test_gemini(inference: GeminiInference = Depends(get_inference)):
    """Exercise the Gemini API with a text-only prompt."""
    try:
        result = await inference.test_connection()
    except Exception as exc:
        logger.exception("Error during Gemini API test interaction")
        return _error(500, "Error testing the Gemini API", str(exc))

    return DiagnosticResponse(message="Gemini API is working correctly.", result=result)


def create_app(config: Config, inference: Optional[GeminiInference] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config:    Resolved configuration.
        inference: Gemini gateway to use; built from ``config`` when omitted.

    Returns:
        The configured FastAPI app.
    """
    if inference is None:
        inference = GeminiInference.from_config(config)

    app = FastAPI(
        title="Plant Disease Detection Gateway",
        description=(
            "Accepts a plant leaf image, asks Gemini for a diagnosis "
            "(disease name, causes, prevention & remedies) and relays the text."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.inference = inference

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_api_route("/", liveness, methods=["GET"], response_class=PlainTextResponse)
    app.add_api_route("/predict", predict, methods=["POST"], response_model=PredictResponse)
    app.add_api_route("/test-gemini", test_gemini, methods=["GET"], response_model=DiagnosticResponse)
    return app
