"""
Serializable summaries of decoded messages.

Builds the Pydantic models used by the API and the CLI. Content decoding
errors are recorded on the part summary instead of being raised, so one bad
attachment never hides the rest of the tree.
"""

from typing import Optional

import structlog

from .config import settings
from .decoding.charsets import detect_charset
from .eml_file import EmlFile
from .errors import InvalidEncodingError
from .models.api_models import MessageSummary, PartSummary
from .models.part_tree import Part

logger = structlog.get_logger(__name__)


def is_text_part(part: Part) -> bool:
    content_type = part.content_type()
    return content_type is None or content_type.lower().startswith("text/")


def summarize_part(part: Part, path: str, include_content: bool = False) -> PartSummary:
    """
    Summarize one part and its subparts.

    Args:
        part: Decoded part
        path: Dotted position of the part, e.g. "2.1"
        include_content: Include decoded text of text parts

    Returns:
        PartSummary
    """
    summary = PartSummary(
        path=path,
        content_type=part.content_type(),
        transfer_encoding=part.content_transfer_encoding(),
        charset=part.get_charset(),
        name=part.get_content_name(),
        type_label=part.type_label(),
        headers=part.headers.to_dict(),
        boundary=part.unique_boundary,
        subparts=[
            summarize_part(sub, f"{path}.{index}", include_content)
            for index, sub in enumerate(part.subparts, 1)
        ],
    )

    if not part.has_content():
        return summary

    try:
        data = part.get_content_bytes()
        summary.size_bytes = len(data)
        if summary.charset is None:
            summary.detected_charset = detect_charset(data)
        if include_content and is_text_part(part):
            summary.text = part.get_content()[: settings.summary_max_text_chars]
    except InvalidEncodingError as e:
        logger.warning("part_content_undecodable", path=path, error=str(e))
        summary.error = str(e)

    return summary


def summarize_message(eml: EmlFile, include_content: bool = False) -> MessageSummary:
    """
    Summarize a decoded EmlFile (decoding it first if needed).

    Args:
        eml: The message
        include_content: Include decoded text of text parts

    Returns:
        MessageSummary
    """
    eml.decode()
    return MessageSummary(
        filename=eml.filename,
        filesize=eml.filesize,
        decoded_okay=eml.decoded_okay,
        decoded_size=eml.decoded_size,
        subject=eml.header_value("subject"),
        date=eml.header_value("date"),
        from_address=eml.from_address(),
        to_addresses=eml.to_addresses(),
        cc_addresses=eml.cc_addresses(),
        headers=eml.headers.to_dict() if eml.headers is not None else {},
        boundary=eml.unique_boundary,
        parts=[
            summarize_part(part, str(index), include_content)
            for index, part in enumerate(eml.parts, 1)
        ],
    )


def find_part_by_path(eml: EmlFile, path: str) -> Optional[Part]:
    """
    Look up a part by its dotted summary path.

    Args:
        eml: Decoded message
        path: Path such as "2.1"

    Returns:
        The Part, or None if the path does not exist
    """
    parts = eml.parts
    part = None
    for piece in path.split("."):
        try:
            index = int(piece) - 1
        except ValueError:
            return None
        if index < 0 or index >= len(parts):
            return None
        part = parts[index]
        parts = part.subparts
    return part
