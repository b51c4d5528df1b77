"""
RFC 2047 encoded-word decoding for header values.

Only the ``Q`` and ``B`` sub-encodings are understood. Tokens that cannot be
decoded are left in the value as literal text so a single bad word never
loses the rest of the header.
"""

import re

import structlog

from ..errors import InvalidEncodingError
from .charsets import decode_text
from .transfer import decode_base64, decode_quoted_printable_bytes

logger = structlog.get_logger(__name__)

# =?charset?X?payload?=  (payload ends at the first "?=")
ENCODED_WORD_PATTERN = re.compile(r"=\?([^?]*)\?([^?])\?(.*?)\?=", re.DOTALL)


def _decode_word(match: re.Match) -> str:
    charset, encoding, payload = match.group(1), match.group(2).upper(), match.group(3)
    # RFC 2231 language suffix: =?utf-8*en?Q?...?=
    charset = charset.split("*", 1)[0]

    if encoding == "Q":
        data = decode_quoted_printable_bytes(payload.replace("_", " "))
    elif encoding == "B":
        try:
            data = decode_base64(payload)
        except InvalidEncodingError:
            logger.debug("encoded_word_invalid_base64", word=match.group(0))
            return match.group(0)
    else:
        return match.group(0)

    return decode_text(data, charset)


def decode_header_line(raw: str) -> str:
    """
    Decode every RFC 2047 encoded word in a header value.

    Text outside encoded words, including whitespace between two adjacent
    words, is copied unchanged. A value without encoded words is returned as is.

    Args:
        raw: Header value (or one folded line of it)

    Returns:
        Decoded header value
    """
    if "=?" not in raw:
        return raw
    return ENCODED_WORD_PATTERN.sub(_decode_word, raw)
