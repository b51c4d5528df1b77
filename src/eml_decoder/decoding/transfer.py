"""
Content-Transfer-Encoding decoders.

Raw part content is kept as text read from the .eml stream. These functions
turn it into bytes (and text) according to the part's transfer encoding:
base64, quoted-printable, or identity.
"""

import base64
import binascii
from typing import Optional

from ..errors import InvalidEncodingError
from .charsets import decode_text

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_WHITESPACE_TABLE = {ord(c): None for c in " \t\r\n\f\v"}


def decode_quoted_printable_bytes(text: str) -> bytes:
    """
    Decode quoted-printable text to bytes.

    ``=`` followed by a line break is a soft break and is dropped, ``=XX``
    becomes the byte 0xXX, and every other character is copied as a single
    byte (truncated to its low 8 bits). A ``=`` that starts neither form is
    copied verbatim.

    Args:
        text: Quoted-printable encoded text

    Returns:
        Decoded bytes
    """
    output = bytearray()
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char == "=":
            if text.startswith("\r\n", i + 1):
                i += 3
                continue
            if text.startswith("\n", i + 1):
                i += 2
                continue
            if i + 2 < length and text[i + 1] in _HEX_DIGITS and text[i + 2] in _HEX_DIGITS:
                output.append(int(text[i + 1:i + 3], 16))
                i += 3
                continue
        output.append(ord(char) & 0xFF)
        i += 1
    return bytes(output)


def decode_quoted_printable(text: str, charset_name: Optional[str] = None) -> str:
    """
    Decode quoted-printable text to a string in the given charset.

    Args:
        text: Quoted-printable encoded text
        charset_name: Charset of the decoded bytes (UTF-8 if not given)

    Returns:
        Decoded string
    """
    return decode_text(decode_quoted_printable_bytes(text), charset_name)


def decode_base64(text: str) -> bytes:
    """
    Decode base64 text, ignoring line breaks and other whitespace.

    Args:
        text: Base64 encoded text

    Returns:
        Decoded bytes

    Raises:
        InvalidEncodingError: On characters outside the base64 alphabet or bad padding
    """
    compact = text.translate(_WHITESPACE_TABLE)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"Invalid base64 content: {e}") from e


def is_base64(transfer_encoding: Optional[str]) -> bool:
    return bool(transfer_encoding) and "base64" in transfer_encoding.lower()


def is_quoted_printable(transfer_encoding: Optional[str]) -> bool:
    return bool(transfer_encoding) and "quoted-printable" in transfer_encoding.lower()


def decode_content_bytes(content: Optional[str], transfer_encoding: Optional[str]) -> bytes:
    """
    Decode raw part content to bytes according to its transfer encoding.

    The encoding value is matched by case-insensitive substring, so any value
    containing "base64" or "quoted-printable" selects that decoder. Anything
    else is identity (UTF-8 bytes of the raw text).

    Args:
        content: Raw part content
        transfer_encoding: Content-Transfer-Encoding header value

    Returns:
        Decoded bytes

    Raises:
        InvalidEncodingError: If base64 content is malformed
    """
    if content is None:
        return b""
    if is_base64(transfer_encoding):
        return decode_base64(content)
    if is_quoted_printable(transfer_encoding):
        return decode_quoted_printable_bytes(content)
    return content.encode("utf-8", errors="surrogateescape")


def decode_content_text(
    content: Optional[str],
    transfer_encoding: Optional[str],
    charset_name: Optional[str] = None,
) -> str:
    """
    Decode raw part content to text according to its transfer encoding.

    Identity-encoded content is returned unchanged, whatever the charset.

    Args:
        content: Raw part content
        transfer_encoding: Content-Transfer-Encoding header value
        charset_name: Charset used for base64 and quoted-printable bytes

    Returns:
        Decoded text

    Raises:
        InvalidEncodingError: If base64 content is malformed
    """
    if content is None:
        return ""
    if is_base64(transfer_encoding):
        return decode_text(decode_base64(content), charset_name)
    if is_quoted_printable(transfer_encoding):
        return decode_quoted_printable(content, charset_name)
    return content
