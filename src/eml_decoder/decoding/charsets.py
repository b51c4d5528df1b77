"""
Charset name resolution.

Maps the charset names found in Content-Type parameters and RFC 2047 encoded
words to Python codecs. The lookup table reproduces the workarounds real mail
clients need rather than a strict IANA mapping.
"""

import codecs
from typing import Optional

import charset_normalizer
import structlog

from ..errors import UnsupportedCharsetError

logger = structlog.get_logger(__name__)

DEFAULT_CHARSET = "utf-8"
LATIN1_CHARSET = "latin-1"

_WINDOWS_PREFIX = "windows-"


def resolve_charset(name: Optional[str]) -> codecs.CodecInfo:
    """
    Resolve a charset name to a codec.

    Rules, in order:
    - None or blank: UTF-8
    - "ISO-2022-JP": Shift-JIS (legacy client workaround)
    - "Windows-XXXX": XXXX parsed as hexadecimal code page, Latin-1 on failure
    - anything containing "ASCII": 7-bit ASCII
    - otherwise the generic codec lookup

    Args:
        name: Charset name as written in the message

    Returns:
        codecs.CodecInfo for the charset

    Raises:
        UnsupportedCharsetError: If the name cannot be resolved
    """
    if name is None:
        return codecs.lookup(DEFAULT_CHARSET)
    name = name.strip()
    if not name:
        return codecs.lookup(DEFAULT_CHARSET)

    lowered = name.lower()
    if lowered == "iso-2022-jp":
        return codecs.lookup("shift_jis")

    if lowered.startswith(_WINDOWS_PREFIX):
        try:
            codepage = int(name[len(_WINDOWS_PREFIX):], 16)
            return codecs.lookup(f"cp{codepage}")
        except (ValueError, LookupError):
            return codecs.lookup(LATIN1_CHARSET)

    if "ascii" in lowered:
        return codecs.lookup("ascii")

    try:
        info = codecs.lookup(name)
    except LookupError as e:
        raise UnsupportedCharsetError(name) from e

    # bytes-to-bytes transforms (hex, zlib, base64, rot13) are codecs but not charsets
    if not getattr(info, "_is_text_encoding", True) or info.name == "undefined":
        raise UnsupportedCharsetError(name)
    return info


def decode_text(data: bytes, charset_name: Optional[str] = None) -> str:
    """
    Decode bytes with a message charset, falling back to UTF-8.

    Unresolvable charsets are logged and replaced by UTF-8; undecodable bytes
    are replaced rather than raised.

    Args:
        data: Raw bytes
        charset_name: Charset name from the message, may be None

    Returns:
        Decoded text
    """
    try:
        codec = resolve_charset(charset_name)
    except UnsupportedCharsetError:
        logger.debug("charset_fallback", charset=charset_name, fallback=DEFAULT_CHARSET)
        codec = codecs.lookup(DEFAULT_CHARSET)
    try:
        return codec.decode(data, "replace")[0]
    except UnicodeError as e:
        # codecs such as idna ignore the errors argument
        logger.debug("charset_decode_failed", charset=charset_name, error=str(e))
        return data.decode(DEFAULT_CHARSET, "replace")


def detect_charset(data: bytes) -> Optional[str]:
    """
    Guess the charset of undeclared content using charset-normalizer.

    Args:
        data: Decoded content bytes

    Returns:
        Detected encoding name, or None if nothing plausible was found
    """
    if not data:
        return None
    detected = charset_normalizer.from_bytes(data).best()
    return detected.encoding if detected else None
