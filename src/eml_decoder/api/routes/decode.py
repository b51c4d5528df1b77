"""
EML decoding endpoints - upload a .eml file, get its part tree back.
"""

from time import time
from urllib.parse import quote
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import PlainTextResponse, Response
import structlog

from ...config import settings
from ...eml_file import EmlFile
from ...models.api_models import DecodeEmlResponse
from ...summary import find_part_by_path, summarize_message

logger = structlog.get_logger(__name__)
router = APIRouter()


async def _read_upload(file: UploadFile) -> bytes:
    """
    Validate and read an uploaded .eml file.

    Raises:
        HTTPException: 400 for a non-.eml filename, 413 when over the size limit
    """
    if not file.filename or not file.filename.lower().endswith(".eml"):
        raise HTTPException(status_code=400, detail="File must be .eml format")

    eml_bytes = await file.read()

    size_mb = len(eml_bytes) / (1024 * 1024)
    if size_mb > settings.max_email_size_mb:
        raise HTTPException(
            status_code=413,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum ({settings.max_email_size_mb}MB)",
        )
    return eml_bytes


def _content_disposition(name: str) -> str:
    """Quote the filename when it is safe as a quoted-string, else use the RFC 5987 form."""
    if name.isascii() and name.isprintable() and '"' not in name and "\\" not in name:
        return f'attachment; filename="{name}"'
    return f"attachment; filename*=UTF-8''{quote(name, safe='')}"


def _decode_upload(eml_bytes: bytes, filename: str) -> EmlFile:
    eml = EmlFile.from_bytes(eml_bytes, name=filename)
    if not eml.decode():
        raise HTTPException(status_code=422, detail="Message could not be decoded")
    return eml


@router.post("/eml", response_model=DecodeEmlResponse)
async def decode_eml_file(
    file: UploadFile = File(..., description=".eml file to decode"),
    include_content: bool = Query(default=False, description="Include decoded text of text parts"),
) -> DecodeEmlResponse:
    """
    Decode a .eml file and return its headers and MIME part tree.

    Args:
        file: Uploaded .eml file
        include_content: Whether to include decoded text of text parts

    Returns:
        DecodeEmlResponse with the message summary or an error
    """
    start_time = time()
    eml_bytes = await _read_upload(file)

    logger.info("decode_started", filename=file.filename, size_bytes=len(eml_bytes))

    try:
        with EmlFile.from_bytes(eml_bytes, name=file.filename) as eml:
            summary = summarize_message(eml, include_content=include_content)
    except Exception as e:
        logger.error("decode_failed", filename=file.filename, error=str(e), exc_info=True)
        return DecodeEmlResponse(success=False, error=f"Decoding failed: {str(e)}")

    processing_time_ms = (time() - start_time) * 1000
    logger.info(
        "decode_completed",
        filename=file.filename,
        decoded_okay=summary.decoded_okay,
        parts_count=len(summary.parts),
        processing_time_ms=processing_time_ms,
    )

    return DecodeEmlResponse(
        success=summary.decoded_okay,
        message=summary,
        processing_time_ms=processing_time_ms,
        error=None if summary.decoded_okay else "Message could not be fully decoded",
    )


@router.post("/eml/debug", response_class=PlainTextResponse)
async def debug_eml_file(
    file: UploadFile = File(..., description=".eml file to dump"),
) -> PlainTextResponse:
    """
    Return the human-readable debug dump of a .eml file.
    """
    eml_bytes = await _read_upload(file)
    with _decode_upload(eml_bytes, file.filename) as eml:
        return PlainTextResponse(eml.to_debug_string())


@router.post("/eml/parts/{path}")
async def get_part_content(
    path: str,
    file: UploadFile = File(..., description=".eml file containing the part"),
) -> Response:
    """
    Return the decoded bytes of one part, addressed by its dotted path (e.g. "2.1").

    The response media type is the part's content type without parameters.
    Malformed content surfaces as InvalidEncodingError, mapped to 422 by the
    decoder error handler.
    """
    eml_bytes = await _read_upload(file)
    with _decode_upload(eml_bytes, file.filename) as eml:
        part = find_part_by_path(eml, path)
        if part is None:
            raise HTTPException(status_code=404, detail=f"No part at path {path}")
        data = part.get_content_bytes()

        content_type = part.content_type() or "application/octet-stream"
        media_type = content_type.split(";", 1)[0].strip() or "application/octet-stream"
        headers = {}
        name = part.get_content_name()
        if name:
            headers["Content-Disposition"] = _content_disposition(name)
        return Response(content=data, media_type=media_type, headers=headers)
