# Decoding components: charsets, transfer encodings, header words, parameters.
# The engine lives in .engine (it depends on the part tree model).

from .charsets import decode_text, detect_charset, resolve_charset
from .transfer import (
    decode_base64,
    decode_content_bytes,
    decode_content_text,
    decode_quoted_printable,
    decode_quoted_printable_bytes,
)
from .header_words import decode_header_line
from .params import extract_boundary, extract_charset, extract_name, find_parameter

__all__ = [
    "resolve_charset",
    "decode_text",
    "detect_charset",
    "decode_base64",
    "decode_quoted_printable",
    "decode_quoted_printable_bytes",
    "decode_content_bytes",
    "decode_content_text",
    "decode_header_line",
    "find_parameter",
    "extract_boundary",
    "extract_charset",
    "extract_name",
]
