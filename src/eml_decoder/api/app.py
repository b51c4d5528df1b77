"""
FastAPI application for the EML decoding service.

Wires the decode, health and version routers together with request context
logging and decoder error handling.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..version import API_VERSION, get_component_versions
from ..config import settings
from ..logging_config import setup_logging
from .routes import health, version, decode
from .middleware import (
    PROCESS_TIME_HEADER,
    REQUEST_ID_HEADER,
    setup_error_handling_middleware,
    setup_request_context_middleware,
)

# Setup logging on module import
setup_logging()
logger = structlog.get_logger(__name__)

# (router, prefix, tag)
ROUTERS = (
    (health.router, "", "Health"),
    (version.router, "/api/v1", "Version"),
    (decode.router, "/api/v1/decode", "Decoding"),
)

# Settings worth seeing in the startup log line
_STARTUP_SETTINGS = {
    "max_email_size_mb",
    "input_encoding",
    "input_errors",
    "log_level",
    "summary_max_text_chars",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs the decoder components and decoding limits on startup.
    """
    logger.info(
        "api_starting",
        version=API_VERSION,
        components=get_component_versions(),
        **settings.model_dump(include=_STARTUP_SETTINGS),
    )
    yield
    logger.info("api_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="EML Decoder",
        description="Decodes .eml files into headers, a MIME part tree and decoded part content",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, PROCESS_TIME_HEADER],
    )

    # Last added is outermost: request context wraps error handling
    setup_error_handling_middleware(app)
    setup_request_context_middleware(app)

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=prefix, tags=[tag])

    return app


# Create app instance
app = create_app()


def main() -> None:
    """
    Entry point for running the API server directly.

    Auto-reload is off unless EML_DECODER_API_RELOAD is set.
    """
    import uvicorn

    uvicorn.run(
        "eml_decoder.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
