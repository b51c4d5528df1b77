"""
eml_decoder: decode .eml message files into headers, a MIME part tree and
per-part decoded content.
"""

from .eml_file import EmlFile
from .addresses import EmailAddress, parse_address, parse_addresses
from .decoding import (
    decode_base64,
    decode_header_line,
    decode_quoted_printable,
    decode_quoted_printable_bytes,
    resolve_charset,
)
from .errors import (
    DecodeIOError,
    EmlDecoderError,
    InvalidEncodingError,
    UnsupportedCharsetError,
)
from .models import HeaderMap, Part
from .version import API_VERSION

__version__ = API_VERSION

__all__ = [
    "EmlFile",
    "Part",
    "HeaderMap",
    "EmailAddress",
    "parse_address",
    "parse_addresses",
    "decode_base64",
    "decode_header_line",
    "decode_quoted_printable",
    "decode_quoted_printable_bytes",
    "resolve_charset",
    "EmlDecoderError",
    "DecodeIOError",
    "InvalidEncodingError",
    "UnsupportedCharsetError",
]
