"""
Health check endpoint for monitoring.

Reports "degraded" when the configured input encoding is not a usable text
codec, since every upload would then fail to decode.
"""

import codecs
import time
from fastapi import APIRouter

from ...config import settings
from ...models.api_models import HealthResponse
from ...version import API_VERSION, DECODER_VERSION

router = APIRouter()

_start_time = time.time()


def _input_encoding_usable(name: str) -> bool:
    try:
        info = codecs.lookup(name)
    except LookupError:
        return False
    return getattr(info, "_is_text_encoding", True)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for monitoring.

    Returns:
        Health status, uptime and the decoding limits in effect
    """
    status = "healthy" if _input_encoding_usable(settings.input_encoding) else "degraded"
    return HealthResponse(
        status=status,
        version=API_VERSION,
        decoder_version=DECODER_VERSION,
        uptime_seconds=time.time() - _start_time,
        max_email_size_mb=settings.max_email_size_mb,
        input_encoding=settings.input_encoding,
    )
