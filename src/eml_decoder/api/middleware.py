"""
FastAPI middleware for request context, logging and error handling.

Every request gets a request id (taken from ``X-Request-ID`` or generated)
bound into structlog's context variables, so log lines emitted while
decoding an upload carry it. Decoder errors that escape a route are mapped
to JSON responses here instead of in each endpoint.
"""

import time
import uuid
from typing import Callable, Dict, Optional, Type
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import structlog

from ..errors import DecodeIOError, EmlDecoderError

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# Status for decoder errors escaping a route; anything else derived from
# EmlDecoderError is a problem with the uploaded message itself.
DECODER_ERROR_STATUS: Dict[Type[EmlDecoderError], int] = {
    DecodeIOError: 500,
}
DEFAULT_DECODER_ERROR_STATUS = 422


def _content_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    if value is None or not value.isdigit():
        return None
    return int(value)


def decoder_error_status(exc: EmlDecoderError) -> int:
    for error_type, status_code in DECODER_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return DEFAULT_DECODER_ERROR_STATUS


def setup_request_context_middleware(app: FastAPI) -> None:
    """
    Setup request context and access logging middleware.

    Binds request_id, method and path into structlog context variables,
    logs the upload size when a body is sent, and echoes the request id
    and processing time in response headers.
    """

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start_time = time.perf_counter()
        upload_bytes = _content_length(request)
        if upload_bytes:
            logger.info("request_started", upload_bytes=upload_bytes)
        else:
            logger.debug("request_started")

        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        logger.info(
            "request_completed",
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{process_time:.6f}"
        return response


def setup_error_handling_middleware(app: FastAPI) -> None:
    """
    Setup global error handling.

    Decoder errors become a JSON body naming the error type, with the status
    from DECODER_ERROR_STATUS. Any other unhandled exception becomes a 500.
    """

    @app.exception_handler(EmlDecoderError)
    async def handle_decoder_error(request: Request, exc: EmlDecoderError) -> JSONResponse:
        status_code = decoder_error_status(exc)
        logger.warning(
            "decoder_error",
            error_type=type(exc).__name__,
            error=str(exc),
            status_code=status_code,
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": type(exc).__name__,
                "detail": str(exc),
            },
        )

    @app.middleware("http")
    async def handle_errors(request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "unhandled_exception",
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "detail": str(e) if app.debug else "An unexpected error occurred",
                },
            )
