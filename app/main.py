"""FastAPI application exposing the transcription endpoint and the single-page UI."""

import logging
import os
from collections.abc import AsyncIterator
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import load_config
from .exceptions import ConfigurationError, InputValidationError, TranscriptionError
from .logging import setup_logging
from .models import TranscriptionRequest
from .pipeline import MisconfiguredPipeline, TranscriptionPipeline
from .response_shaper import error_response, shape_error, to_response

setup_logging()
logger = logging.getLogger(__name__)

INDEX_PATH = os.path.join(os.path.dirname(__file__), "static", "index.html")

app = FastAPI(title="Video to Text")


async def get_pipeline() -> AsyncIterator[TranscriptionPipeline | MisconfiguredPipeline]:
    """
    Builds a pipeline from the current environment, one per request.

    A broken configuration is reported by the pipeline itself, so a bad
    request body is still rejected with 400 first.
    """
    try:
        config = load_config()
    except ConfigurationError as e:
        yield MisconfiguredPipeline(e)
        return
    async with httpx.AsyncClient(timeout=config.http.timeout_seconds) as client:
        yield TranscriptionPipeline(config, client)


PipelineDep = Annotated[TranscriptionPipeline | MisconfiguredPipeline, Depends(get_pipeline)]


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Reshape framework errors (404, 405) into ``{"error": ...}``."""
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    response = error_response(message, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject bad bodies with 400 instead of FastAPI's default 422."""
    missing = any(err.get("type") in ("missing", "string_too_short") for err in exc.errors())
    message = "Missing video URL" if missing else "A valid http(s) video URL is required"
    logger.info("Rejected transcription request", extra={"reason": message, "path": request.url.path})
    return to_response(shape_error(InputValidationError(message)))


@app.exception_handler(TranscriptionError)
async def transcription_exception_handler(request: Request, exc: TranscriptionError) -> JSONResponse:
    """Errors raised outside the pipeline, e.g. while loading configuration."""
    logger.critical("Request failed before transcription", extra={"error": str(exc)})
    return to_response(shape_error(exc))


@app.get("/")
async def get_index() -> HTMLResponse:
    """Serve the index.html single-page UI."""
    with open(INDEX_PATH, encoding="utf-8") as f:
        return HTMLResponse(f.read())


@app.get("/healthz")
async def healthz() -> dict:
    """Report liveness and the configured provider."""
    return {"status": "ok", "provider": load_config().provider}


@app.post("/api/generate")
async def generate(payload: TranscriptionRequest, pipeline: PipelineDep) -> JSONResponse:
    """Transcribe the video behind ``payload.url``."""
    logger.info("Received transcription request", extra={"source_url": payload.url})
    outcome = await pipeline.run(payload)
    return to_response(outcome)
