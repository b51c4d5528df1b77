"""
Boundary-aware decode engine.

A single pass over a line-oriented text stream. Each message or part is read
as a header block (folded lines, RFC 2047 words decoded) followed by a body.
Multipart bodies are split by recursive descent on their boundary markers;
everything else becomes leaf content.

The engine favors partial results: truncated or malformed input produces
fewer parts instead of an error. Only I/O faults (including a stop request)
raise, as DecodeIOError.
"""

import threading
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, TextIO, Tuple

import structlog

from ..errors import DecodeIOError
from ..models.headers import HeaderMap
from ..models.part_tree import CONTENT_TYPE, Part
from .header_words import decode_header_line
from .params import extract_boundary

if TYPE_CHECKING:
    from ..eml_file import EmlFile

logger = structlog.get_logger(__name__)

# Added to decoded_size for every line read. Assumes CRLF line endings.
LINE_TERMINATOR_ESTIMATE = 2


class BoundaryMarker(str, Enum):
    """Kind of boundary line: ``--X`` (delimiter) or ``--X--`` (close)."""

    DELIMITER = "delimiter"
    CLOSE = "close"


def classify_boundary_line(line: str, boundary: Optional[str]) -> Optional[BoundaryMarker]:
    """
    Classify a body line against a boundary by prefix match.

    Args:
        line: Body line without its terminator
        boundary: Boundary parameter value (without the leading dashes)

    Returns:
        BoundaryMarker, or None if the line is not a marker for this boundary
    """
    if not boundary:
        return None
    marker = "--" + boundary
    if not line.startswith(marker):
        return None
    if line.startswith("--", len(marker)):
        return BoundaryMarker.CLOSE
    return BoundaryMarker.DELIMITER


class DecodeCancellation:
    """
    Cooperative cancellation handle for one decode run.

    The engine registers its input stream here. ``cancel()`` closes that
    stream, so a blocked or subsequent read faults, and ``check()`` raises
    DecodeIOError before the next read.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stream: Optional[TextIO] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach(self, stream: TextIO) -> None:
        with self._lock:
            self._stream = stream
            if self._cancelled:
                stream.close()

    def detach(self) -> None:
        with self._lock:
            self._stream = None

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()

    def check(self) -> None:
        if self._cancelled:
            raise DecodeIOError("Decoding was stopped")


class HeaderCollector:
    """
    Accumulates header lines into a HeaderMap.

    A header is stored when the next header starts or the block ends. A
    continuation line is decoded and appended to the value as is, without a
    separator. Lines without a colon and orphan continuation lines are
    dropped, as are headers with an empty value.
    """

    def __init__(self) -> None:
        self.headers = HeaderMap()
        self._name: Optional[str] = None
        self._value: Optional[str] = None

    def feed(self, line: str) -> None:
        if line[0].isspace():
            self._continue(line.lstrip())
            return

        self.flush()
        colon = line.find(":")
        if colon > 0:
            self._name = line[:colon].strip()
            self._value = decode_header_line(line[colon + 1:].lstrip())

    def _continue(self, raw: str) -> None:
        if self._value is not None:
            self._value += decode_header_line(raw)

    def flush(self) -> None:
        if self._name and self._value:
            self.headers.add(self._name, self._value)
        self._name = None
        self._value = None


class EmlDecoder:
    """
    Decodes one .eml stream into an EmlFile.

    Args:
        eml: The EmlFile to populate (headers, boundary, parts, decoded_size)
        stream: Text stream positioned at the start of the message
        cancellation: Handle checked before every read
        line_terminator: Appended to each stored body line
    """

    def __init__(
        self,
        eml: "EmlFile",
        stream: TextIO,
        cancellation: Optional[DecodeCancellation] = None,
        line_terminator: str = "\r\n",
    ):
        self.eml = eml
        self.stream = stream
        self.cancellation = cancellation or DecodeCancellation()
        self.line_terminator = line_terminator
        self.last_marker: Optional[BoundaryMarker] = None

    def _read_line(self) -> Optional[str]:
        self.cancellation.check()
        try:
            line = self.stream.readline()
        except (OSError, ValueError) as e:
            raise DecodeIOError(f"Failed to read message stream: {e}") from e
        if not line:
            return None
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        self.eml._add_decoded_size(len(line) + LINE_TERMINATOR_ESTIMATE)
        return line

    def _is_marker(self, line: str, boundary: Optional[str]) -> bool:
        marker = classify_boundary_line(line, boundary)
        if marker is None:
            return False
        # Both kinds end the current part; the tag is kept for callers and logs
        self.last_marker = marker
        if marker is BoundaryMarker.CLOSE:
            logger.debug("boundary_closed", boundary=boundary)
        return True

    def _join(self, lines: List[str]) -> str:
        return "".join(line + self.line_terminator for line in lines)

    def decode(self) -> None:
        """
        Decode the whole stream into ``self.eml``.

        Raises:
            DecodeIOError: If reading fails or the decode is cancelled
        """
        self.cancellation.attach(self.stream)
        try:
            self._decode_message()
        finally:
            self.cancellation.detach()

    def _decode_message(self) -> None:
        collector = HeaderCollector()
        line = self._read_line()
        while line is not None and line != "":
            collector.feed(line)
            line = self._read_line()
        collector.flush()
        self.eml._set_headers(collector.headers)

        if line is None:
            logger.debug("message_without_body")
            return

        boundary = extract_boundary(collector.headers.get_first(CONTENT_TYPE))
        self.eml._set_unique_boundary(boundary)

        line = self._read_line()
        while line == "":
            line = self._read_line()
        if line is None:
            return

        if self._is_marker(line, boundary):
            part = self.decode_part(boundary, None)
            while part is not None:
                self.eml._append_part(part)
                part = self.decode_part(boundary, None)
            return

        # Body does not open with a marker: everything left is one part
        if boundary is not None:
            logger.debug("body_not_split", boundary=boundary)
        body: List[str] = []
        while line is not None:
            body.append(line)
            line = self._read_line()
        self.eml._append_part(Part(content=self._join(body), eml=self.eml))

    def decode_part(self, boundary: str, outer_boundary: Optional[str]) -> Optional[Part]:
        """
        Decode the next part of a multipart body.

        Must be called with the stream positioned just after a ``--boundary``
        line. Parts without headers, content or subparts are skipped.

        Args:
            boundary: Boundary of the part list this part belongs to
            outer_boundary: Boundary of the enclosing list, if any; meeting
                it before the body starts means this list is finished

        Returns:
            The decoded Part, or None when there are no more parts (end of
            stream or enclosing boundary reached)
        """
        while True:
            part, finished = self._read_part(boundary, outer_boundary)
            if part is not None or finished:
                return part
            logger.debug("empty_part_skipped", boundary=boundary)

    def _read_part(self, boundary: str, outer_boundary: Optional[str]) -> Tuple[Optional[Part], bool]:
        """Read one part. Returns (part or None if empty, whether the list is finished)."""
        collector = HeaderCollector()
        line = self._read_line()
        while True:
            if line is None:
                return None, True
            if self._is_marker(line, outer_boundary):
                return None, True
            if line == "":
                break
            collector.feed(line)
            line = self._read_line()
        collector.flush()
        headers = collector.headers

        line = self._read_line()
        if line is not None and self._is_marker(line, outer_boundary):
            return None, True

        own_boundary = extract_boundary(headers.get_first(CONTENT_TYPE))
        if own_boundary is not None:
            while line is not None and not self._is_marker(line, own_boundary):
                line = self._read_line()

            subparts = []
            if line is not None:
                subpart = self.decode_part(own_boundary, boundary)
                while subpart is not None:
                    subparts.append(subpart)
                    subpart = self.decode_part(own_boundary, boundary)

            # own_boundary came from a Content-Type header, so headers is never empty
            part = Part(headers=headers, subparts=subparts, unique_boundary=own_boundary, eml=self.eml)
            return part, False

        content: List[str] = []
        while line is not None and not self._is_marker(line, boundary):
            content.append(line)
            line = self._read_line()

        part = Part(headers=headers, content=self._join(content), eml=self.eml)
        if part.is_empty():
            return None, line is None
        return part, False
