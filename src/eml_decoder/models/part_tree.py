"""
MIME part tree.

A Part is one node of the MIME tree: its headers plus either raw content (a
leaf) or subparts (a multipart container). Structural fields are fixed when
the decode engine builds the part; decoded content, charset and name are
computed on first access and cached.
"""

import re
import weakref
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

from ..decoding.params import extract_charset, extract_name
from ..decoding.transfer import decode_content_bytes, decode_content_text
from ..errors import InvalidEncodingError
from .headers import HeaderMap

if TYPE_CHECKING:
    from ..eml_file import EmlFile

CONTENT_TYPE = "content-type"
CONTENT_TRANSFER_ENCODING = "content-transfer-encoding"

DEBUG_TOP = "_______________________________"
DEBUG_CONTENT = "+-----------------------------+"
DEBUG_BOTTOM = "L_____________________________|"

# (label, pattern) checked in order against the content type
TYPE_LABELS: Tuple[Tuple[str, str], ...] = (
    ("HTML", r"^text/html"),
    ("Text", r"^text/"),
    ("Image", r"^image/"),
    ("PDF", r"(?i)application/.*pdf"),
    ("MIME", r"^multipart/"),
    ("RFC822", r"^message/rfc822"),
    ("MP4", r"(?i)application/.*mp4"),
)


class HeaderQueryMixin:
    """
    Header queries shared by EmlFile and Part.

    Subclasses provide ``headers`` and may provide a fallback object that is
    consulted when a header is missing locally.
    """

    headers: HeaderMap

    def _header_fallback(self) -> Optional["HeaderQueryMixin"]:
        return None

    def _local_values(self, name: str) -> List[str]:
        if self.headers is None:
            return []
        return self.headers.get_all(name)

    def header_value(self, name: str) -> Optional[str]:
        """
        Return the first value of a header.

        Args:
            name: Header name, any case (e.g. "Subject", "content-type")

        Returns:
            First value, or None if the header is absent
        """
        values = self._local_values(name)
        if values:
            return values[0]
        fallback = self._header_fallback()
        return fallback.header_value(name) if fallback is not None else None

    def content_type(self) -> Optional[str]:
        return self.header_value(CONTENT_TYPE)

    def content_transfer_encoding(self) -> Optional[str]:
        return self.header_value(CONTENT_TRANSFER_ENCODING)

    def regex_matches_header(self, name: str, pattern: str) -> bool:
        """
        Check whether any value of a header matches a regular expression.

        Uses ``re.search``, so the pattern may match anywhere in the value.
        """
        values = self._local_values(name)
        if values:
            return any(re.search(pattern, value) for value in values)
        fallback = self._header_fallback()
        return fallback.regex_matches_header(name, pattern) if fallback is not None else False

    def starts_with_content_type(self, content_type: str) -> bool:
        values = self._local_values(CONTENT_TYPE)
        if values:
            return any(value.startswith(content_type) for value in values)
        fallback = self._header_fallback()
        return fallback.starts_with_content_type(content_type) if fallback is not None else False

    def ends_with_content_type(self, content_type: str) -> bool:
        values = self._local_values(CONTENT_TYPE)
        if values:
            return any(value.strip().endswith(content_type) for value in values)
        fallback = self._header_fallback()
        return fallback.ends_with_content_type(content_type) if fallback is not None else False

    def _debug_headers(self, indent: str) -> List[str]:
        lines = []
        if self.headers:
            for name, values in self.headers.items():
                lines.extend(f"{indent}{name}: {value}" for value in values)
        return lines


def find_parts(parts: Sequence["Part"], predicate) -> List["Part"]:
    """Depth-first search; a matching part comes before its own matches."""
    matches = []
    for part in parts:
        if part is None:
            continue
        if predicate(part):
            matches.append(part)
        if part.subparts:
            matches.extend(find_parts(part.subparts, predicate))
    return matches


class Part(HeaderQueryMixin):
    """
    One MIME part of an .eml message.

    If the message does not use MIME boundaries, a single Part holds the
    whole body and inherits the message headers through ``header_value``.
    """

    def __init__(
        self,
        headers: Optional[HeaderMap] = None,
        content: Optional[str] = None,
        subparts: Sequence["Part"] = (),
        unique_boundary: Optional[str] = None,
        eml: Optional["EmlFile"] = None,
    ):
        self._headers = headers if headers is not None else HeaderMap()
        self._content = content
        self._subparts: Tuple["Part", ...] = tuple(subparts)
        self._unique_boundary = unique_boundary
        self._eml_ref = weakref.ref(eml) if eml is not None else None

        # Write-once caches
        self._charset: Optional[str] = None
        self._name: Optional[str] = None
        self._decoded_content: Optional[str] = None
        self._decoded_bytes: Optional[bytes] = None

    @property
    def headers(self) -> HeaderMap:
        return self._headers

    @property
    def content(self) -> Optional[str]:
        """Raw content, before transfer decoding. Only set on leaf parts."""
        return self._content

    @property
    def subparts(self) -> Tuple["Part", ...]:
        return self._subparts

    @property
    def unique_boundary(self) -> Optional[str]:
        return self._unique_boundary

    @property
    def eml(self) -> Optional["EmlFile"]:
        """Owning EmlFile, or None once it is gone or this part is disposed."""
        return self._eml_ref() if self._eml_ref is not None else None

    def _header_fallback(self) -> Optional[HeaderQueryMixin]:
        return self.eml

    def is_multipart(self) -> bool:
        return len(self._subparts) > 0

    def has_content(self) -> bool:
        """True if there is content after the headers. Does not decode anything."""
        return bool(self._content)

    def is_empty(self) -> bool:
        return not self._headers and not self._content and not self._subparts

    def get_charset(self) -> Optional[str]:
        """
        Return the charset parameter of this part's Content-Type.

        Returns:
            Charset name, or None if not declared
        """
        if self._charset is None:
            self._charset = extract_charset(self.content_type())
        return self._charset

    def get_content_name(self) -> Optional[str]:
        """
        Return the name parameter of this part's Content-Type.

        Returns:
            Name (usually the attachment filename), or None if not declared
        """
        if self._name is None:
            self._name = extract_name(self.content_type())
        return self._name

    def get_content(self, charset_name: Optional[str] = None) -> str:
        """
        Return the content decoded from its transfer encoding and charset.

        An unknown charset falls back to UTF-8.

        Args:
            charset_name: Decode with this charset instead of the declared
                one. The result is not cached.

        Returns:
            Decoded text ("" for parts without content)

        Raises:
            InvalidEncodingError: If base64 content is malformed
        """
        if charset_name is not None:
            return decode_content_text(
                self._content, self.content_transfer_encoding(), charset_name
            )
        if self._decoded_content is None:
            self._decoded_content = decode_content_text(
                self._content, self.content_transfer_encoding(), self.get_charset()
            )
        return self._decoded_content

    def get_content_bytes(self) -> bytes:
        """
        Return the content decoded from its transfer encoding, as bytes.

        Raises:
            InvalidEncodingError: If base64 content is malformed
        """
        if self._decoded_bytes is None:
            self._decoded_bytes = decode_content_bytes(
                self._content, self.content_transfer_encoding()
            )
        return self._decoded_bytes

    def type_label(self) -> Optional[str]:
        """Short human label for the part type, e.g. "HTML" or "PDF"."""
        for label, pattern in TYPE_LABELS:
            if self.regex_matches_header(CONTENT_TYPE, pattern):
                return label
        return None

    def walk(self) -> Iterator["Part"]:
        """Yield every descendant part, depth first."""
        for part in self._subparts:
            yield part
            yield from part.walk()

    def parts_with_content_type(self, content_type: str) -> List["Part"]:
        """Descendant parts whose Content-Type starts with ``content_type``."""
        return find_parts(self._subparts, lambda p: p.starts_with_content_type(content_type))

    def parts_matching_header_regex(self, name: str, pattern: str) -> List["Part"]:
        """Descendant parts with a ``name`` header matching ``pattern``."""
        return find_parts(self._subparts, lambda p: p.regex_matches_header(name, pattern))

    def dispose(self) -> None:
        """Release headers, content, caches and the back-reference, recursively."""
        for part in self._subparts:
            part.dispose()
        self._eml_ref = None
        self._headers = HeaderMap()
        self._content = None
        self._subparts = ()
        self._charset = None
        self._name = None
        self._decoded_content = None
        self._decoded_bytes = None

    def to_debug_string(self, indent: str = "") -> str:
        """
        Human-readable dump of this part and its subparts.

        Not a byte-exact reconstruction of the source: headers are not folded
        and only text content is written.
        """
        lines = [indent + DEBUG_TOP]
        lines.extend(self._debug_headers(indent))
        if self._subparts:
            for part in self._subparts:
                if self._unique_boundary is not None:
                    lines.append(f"\n--{self._unique_boundary}")
                lines.append(part.to_debug_string(indent + indent).rstrip("\n"))
            if self._unique_boundary is not None:
                lines.append(f"\n--{self._unique_boundary}--")
        lines.append("")
        lines.append(indent + DEBUG_CONTENT)

        content_type = self.content_type()
        if content_type is None or content_type.lower().startswith("text/"):
            try:
                lines.append(self.get_content().rstrip("\r\n"))
            except InvalidEncodingError as e:
                lines.append(f"[undecodable content: {e}]")
        lines.append(indent + DEBUG_BOTTOM)
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return (
            f"Part(content_type={self.content_type()!r}, "
            f"subparts={len(self._subparts)}, has_content={self.has_content()})"
        )
