"""
EmlFile: a decoded .eml message.

An EmlFile is created empty from a path (or bytes), decoded once by the
boundary-aware engine, and then queried: headers, the MIME part tree, and
per-part decoded content.

Example:
    with EmlFile.decode_file("message.eml") as eml:
        print(eml.header_value("subject"))
        for part in eml.parts_with_content_type("text/"):
            print(part.get_content())
"""

import io
import os
import threading
from typing import IO, Iterator, List, Optional

import structlog

from .addresses import EmailAddress, parse_address, parse_addresses
from .config import settings
from .decoding.engine import DecodeCancellation, EmlDecoder
from .errors import DecodeIOError
from .models.headers import HeaderMap
from .models.part_tree import CONTENT_TYPE, HeaderQueryMixin, Part, find_parts

logger = structlog.get_logger(__name__)


class EmlFile(HeaderQueryMixin):
    """
    An .eml message: headers, top-level boundary and MIME parts.

    Reading does not start until ``decode()`` (or ``decode_async()``) is
    called. Decoding happens at most once per instance; later calls return
    the first result.

    Args:
        filename: Path of the .eml file

    Raises:
        FileNotFoundError: If the file does not exist
    """

    def __init__(self, filename: str):
        if not os.path.isfile(filename):
            raise FileNotFoundError(f"EML file not found: {filename}")
        self._init_state()
        self._filename = os.path.abspath(filename)
        self._filesize = os.path.getsize(self._filename)

    def _init_state(self) -> None:
        self._filename: Optional[str] = None
        self._filesize = 0
        self._data: Optional[bytes] = None
        self._headers: Optional[HeaderMap] = None
        self._parts: List[Part] = []
        self._unique_boundary: Optional[str] = None
        self._decoded_size = 0
        self._decoded_file = False
        self._decoded_okay = False
        self._decode_lock = threading.Lock()
        self._cancellation: Optional[DecodeCancellation] = None

    @classmethod
    def from_bytes(cls, data: bytes, name: Optional[str] = None) -> "EmlFile":
        """
        Create an EmlFile over in-memory message bytes.

        Args:
            data: Raw .eml bytes
            name: Optional display name (e.g. the uploaded filename)

        Returns:
            Undecoded EmlFile
        """
        eml = cls.__new__(cls)
        eml._init_state()
        eml._filename = name
        eml._filesize = len(data)
        eml._data = data
        return eml

    @classmethod
    def decode_file(cls, filename: str) -> "EmlFile":
        """
        Create and decode an EmlFile in one call.

        Check ``decoded_okay`` on the result to see whether decoding succeeded.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        eml = cls(filename)
        eml.decode()
        return eml

    @classmethod
    async def decode_file_async(cls, filename: str) -> "EmlFile":
        return cls.decode_file(filename)

    # ------------------------------------------------------------------
    # State

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @property
    def filesize(self) -> int:
        """Size of the source in bytes, for progress reporting."""
        return self._filesize

    @property
    def headers(self) -> Optional[HeaderMap]:
        return self._headers

    @property
    def parts(self) -> List[Part]:
        """Top-level parts. A message without MIME boundaries has a single part."""
        return self._parts

    @property
    def unique_boundary(self) -> Optional[str]:
        return self._unique_boundary

    @property
    def decoded_size(self) -> int:
        """
        Estimate of characters read so far.

        Counts characters (not bytes) and assumes CRLF line endings, so it is
        only roughly comparable to ``filesize``.
        """
        return self._decoded_size

    @property
    def decoded_file(self) -> bool:
        return self._decoded_file

    @property
    def decoded_okay(self) -> bool:
        return self._decoded_okay

    def progress(self) -> float:
        """Fraction of the source read so far, between 0 and 1."""
        if self._filesize <= 0:
            return 0.0
        return min(1.0, self._decoded_size / self._filesize)

    # Called by the decode engine only
    def _set_headers(self, headers: HeaderMap) -> None:
        self._headers = headers

    def _set_unique_boundary(self, boundary: Optional[str]) -> None:
        self._unique_boundary = boundary

    def _append_part(self, part: Part) -> None:
        self._parts.append(part)

    def _add_decoded_size(self, count: int) -> None:
        self._decoded_size += count

    # ------------------------------------------------------------------
    # Decoding

    def _open_stream(self) -> IO[str]:
        if self._data is not None:
            return io.TextIOWrapper(
                io.BytesIO(self._data),
                encoding=settings.input_encoding,
                errors=settings.input_errors,
            )
        return open(
            self._filename,
            "r",
            encoding=settings.input_encoding,
            errors=settings.input_errors,
        )

    def decode(self) -> bool:
        """
        Decode the message.

        Thread-safe and memoized: a concurrent call waits for the running
        decode, and any later call returns the stored result without reading
        the source again.

        Returns:
            True if the whole source was decoded, False on error or stop()
        """
        with self._decode_lock:
            if self._decoded_file:
                return self._decoded_okay

            cancellation = DecodeCancellation()
            self._cancellation = cancellation
            try:
                with self._open_stream() as stream:
                    EmlDecoder(
                        self, stream, cancellation, line_terminator=settings.line_terminator
                    ).decode()
                self._decoded_okay = True
                logger.debug(
                    "eml_decoded",
                    filename=self._filename,
                    parts=len(self._parts),
                    decoded_size=self._decoded_size,
                )
            except DecodeIOError as e:
                self._decoded_okay = False
                logger.error("eml_decode_io_error", filename=self._filename, error=str(e))
            except Exception as e:
                self._decoded_okay = False
                logger.error(
                    "eml_decode_failed",
                    filename=self._filename,
                    error=str(e),
                    exc_info=True,
                )
            finally:
                self._cancellation = None
                self._decoded_file = True
            return self._decoded_okay

    async def decode_async(self) -> bool:
        """Awaitable wrapper around decode(); the work itself is synchronous."""
        return self.decode()

    def stop(self) -> None:
        """Stop an in-flight decode by closing its input stream."""
        cancellation = self._cancellation
        if cancellation is not None:
            cancellation.cancel()
            logger.info("eml_decode_stopped", filename=self._filename)

    def close(self) -> None:
        """Stop decoding and release headers, parts and cached content."""
        self.stop()
        for part in self._parts:
            part.dispose()
        self._parts = []
        if self._headers is not None:
            self._headers.clear()
        self._data = None

    def __enter__(self) -> "EmlFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Queries

    def subject_starts_with(self, prefix: str) -> bool:
        subject = self.header_value("subject")
        return bool(subject) and subject.lower().startswith(prefix.lower())

    def walk(self) -> Iterator[Part]:
        """Yield every part in the tree, depth first."""
        for part in self._parts:
            yield part
            yield from part.walk()

    def parts_with_content_type(self, content_type: str) -> List[Part]:
        """All parts whose Content-Type starts with ``content_type`` (e.g. "image/")."""
        return find_parts(self._parts, lambda p: p.starts_with_content_type(content_type))

    def parts_with_content_type_regex(self, pattern: str) -> List[Part]:
        """All parts whose Content-Type matches the regular expression ``pattern``."""
        return self.parts_matching_header_regex(CONTENT_TYPE, pattern)

    def parts_matching_header_regex(self, name: str, pattern: str) -> List[Part]:
        return find_parts(self._parts, lambda p: p.regex_matches_header(name, pattern))

    def from_address(self) -> Optional[EmailAddress]:
        return parse_address(self.header_value("from"))

    def to_addresses(self) -> List[EmailAddress]:
        return parse_addresses(self.header_value("to"))

    def cc_addresses(self) -> List[EmailAddress]:
        return parse_addresses(self.header_value("cc"))

    def to_debug_string(self, indent: Optional[str] = None) -> str:
        """
        Boundary-delimited dump of headers and text content.

        Meant for humans; it is not a byte-exact copy of the source.
        """
        if indent is None:
            indent = settings.debug_indent
        lines = self._debug_headers(indent)
        if self._headers is not None:
            lines.append("")
        for part in self._parts:
            if self._unique_boundary is not None:
                lines.append(f"\n--{self._unique_boundary}")
            lines.append(part.to_debug_string(indent + indent).rstrip("\n"))
        if self._unique_boundary is not None:
            lines.append(f"\n--{self._unique_boundary}--")
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return (
            f"EmlFile(filename={self._filename!r}, decoded={self._decoded_file}, "
            f"parts={len(self._parts)})"
        )
