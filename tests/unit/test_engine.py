"""
Unit tests for the boundary-aware decode engine (engine.py).

Tests cover:
- Boundary line classification
- Header folding and RFC 2047 words in headers
- Flat, nested and malformed multipart bodies
- decoded_size accounting
- Cancellation
"""

import io

import pytest

from eml_decoder.decoding.engine import (
    BoundaryMarker,
    DecodeCancellation,
    EmlDecoder,
    HeaderCollector,
    classify_boundary_line,
)
from eml_decoder.eml_file import EmlFile
from eml_decoder.errors import DecodeIOError
from tests.fixtures.emails import SAMPLE_EMAILS


def decode_bytes(data: bytes) -> EmlFile:
    eml = EmlFile.from_bytes(data)
    assert eml.decode() is True
    return eml


class TestClassifyBoundaryLine:
    """Tests for classify_boundary_line() function."""

    @pytest.mark.unit
    def test_delimiter(self):
        assert classify_boundary_line("--XYZ", "XYZ") is BoundaryMarker.DELIMITER

    @pytest.mark.unit
    def test_close(self):
        assert classify_boundary_line("--XYZ--", "XYZ") is BoundaryMarker.CLOSE

    @pytest.mark.unit
    def test_prefix_match(self):
        assert classify_boundary_line("--XYZ trailing", "XYZ") is BoundaryMarker.DELIMITER

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "line,boundary",
        [("XYZ", "XYZ"), ("-XYZ", "XYZ"), ("--XY", "XYZ"), ("--XYZ", None), ("--XYZ", "")],
    )
    def test_not_a_marker(self, line, boundary):
        assert classify_boundary_line(line, boundary) is None


class TestHeaderCollector:
    """Tests for header block accumulation."""

    @pytest.mark.unit
    def test_folded_value_concatenated_without_separator(self):
        collector = HeaderCollector()
        collector.feed("Subject: Hello")
        collector.feed("\tworld")
        collector.flush()
        assert collector.headers.get_first("subject") == "Helloworld"

    @pytest.mark.unit
    def test_folded_encoded_words_joined_without_space(self):
        collector = HeaderCollector()
        collector.feed("Subject: =?utf-8?Q?Caf?=")
        collector.feed(" =?utf-8?Q?=C3=A9?=")
        collector.flush()
        assert collector.headers.get_first("subject") == "Café"

    @pytest.mark.unit
    def test_value_starting_on_continuation(self):
        collector = HeaderCollector()
        collector.feed("Subject:")
        collector.feed("   on the next line  ")
        collector.flush()
        assert collector.headers.get_first("subject") == "on the next line  "

    @pytest.mark.unit
    def test_empty_and_malformed_lines_dropped(self):
        collector = HeaderCollector()
        collector.feed(" orphan continuation")
        collector.feed("X-Empty:")
        collector.feed("no colon here")
        collector.feed(": no name")
        collector.feed("To: a@x.com")
        collector.flush()
        assert collector.headers.to_dict() == {"to": ["a@x.com"]}

    @pytest.mark.unit
    def test_repeated_headers_kept_in_order(self):
        collector = HeaderCollector()
        collector.feed("Received: first")
        collector.feed("Received: second")
        collector.flush()
        assert collector.headers.get_all("received") == ["first", "second"]


class TestDecodeMessage:
    """Tests for top-level message decoding."""

    @pytest.mark.unit
    def test_single_part_message(self):
        eml = decode_bytes(SAMPLE_EMAILS["simple_plain_text"])
        assert eml.unique_boundary is None
        assert len(eml.parts) == 1
        part = eml.parts[0]
        assert not part.headers
        assert part.content == "Hello, this is a simple test email.\r\n\r\nThank you.\r\n"

    @pytest.mark.unit
    def test_two_top_level_parts_in_order(self):
        eml = decode_bytes(SAMPLE_EMAILS["multipart_mixed"])
        assert eml.unique_boundary == "XYZ"
        assert [p.content_type() for p in eml.parts] == [
            'text/plain; charset="utf-8"',
            'text/html; charset="utf-8"',
        ]
        assert eml.parts[0].content == "Plain body\r\n"
        assert eml.parts[1].content == "<p>HTML body</p>\r\n"

    @pytest.mark.unit
    def test_nested_boundary_produces_subparts(self):
        eml = decode_bytes(SAMPLE_EMAILS["nested_multipart"])
        assert len(eml.parts) == 2

        container, attachment = eml.parts
        assert container.unique_boundary == "inner"
        assert container.content is None
        assert [p.content for p in container.subparts] == [
            "Plain alternative\r\n",
            "<p>HTML alternative</p>\r\n",
        ]
        assert attachment.content == "JVBERi0xLjQK\r\n"
        assert attachment.header_value("Content-Disposition") == 'attachment; filename="report.pdf"'

    @pytest.mark.unit
    def test_encoded_headers(self):
        eml = decode_bytes(SAMPLE_EMAILS["encoded_headers"])
        assert eml.header_value("subject") == "Hello World and more"
        assert eml.header_value("from") == "André <andre@example.com>"

    @pytest.mark.unit
    def test_missing_boundary_keeps_body_as_one_part(self):
        eml = decode_bytes(SAMPLE_EMAILS["missing_boundary"])
        assert eml.unique_boundary == "missing"
        assert len(eml.parts) == 1
        assert eml.parts[0].content == "Just text\r\nwithout any marker\r\n"

    @pytest.mark.unit
    def test_body_not_opening_with_marker_is_one_part(self):
        eml = decode_bytes(SAMPLE_EMAILS["preamble"])
        assert eml.unique_boundary == "X"
        assert len(eml.parts) == 1
        part = eml.parts[0]
        assert not part.headers
        assert part.subparts == ()
        assert part.content.startswith("preamble text\r\n--X\r\n")
        assert part.content.endswith("--X--\r\n")

    @pytest.mark.unit
    def test_blank_lines_before_first_marker_are_skipped(self):
        data = SAMPLE_EMAILS["multipart_mixed"].replace(b"\n\n--XYZ\n", b"\n\n\n\n--XYZ\n", 1)
        eml = decode_bytes(data)
        assert [p.content for p in eml.parts] == ["Plain body\r\n", "<p>HTML body</p>\r\n"]

    @pytest.mark.unit
    def test_nested_container_without_markers_is_kept(self):
        data = (
            b"Content-Type: multipart/mixed; boundary=outer\n"
            b"\n"
            b"--outer\n"
            b"Content-Type: multipart/alternative; boundary=inner\n"
            b"\n"
            b"no inner marker here\n"
            b"--outer--\n"
        )
        eml = decode_bytes(data)
        assert len(eml.parts) == 1
        container = eml.parts[0]
        assert container.unique_boundary == "inner"
        assert container.subparts == ()
        assert container.header_value("Content-Type") == "multipart/alternative; boundary=inner"

    @pytest.mark.unit
    def test_headers_only(self):
        eml = decode_bytes(SAMPLE_EMAILS["headers_only"])
        assert eml.header_value("subject") == "No body"
        assert eml.parts == []

    @pytest.mark.unit
    def test_empty_body(self):
        eml = decode_bytes(b"Subject: Empty\n\n\n\n")
        assert eml.header_value("subject") == "Empty"
        assert eml.parts == []

    @pytest.mark.unit
    def test_empty_input(self):
        eml = decode_bytes(b"")
        assert not eml.headers
        assert eml.parts == []

    @pytest.mark.unit
    def test_malformed_input_is_lenient(self):
        eml = decode_bytes(SAMPLE_EMAILS["malformed"])
        assert eml.decoded_okay is True
        assert not eml.headers
        assert eml.parts == []

    @pytest.mark.unit
    def test_crlf_line_endings(self):
        eml = decode_bytes(SAMPLE_EMAILS["multipart_mixed"].replace(b"\n", b"\r\n"))
        assert [p.content for p in eml.parts] == ["Plain body\r\n", "<p>HTML body</p>\r\n"]

    @pytest.mark.unit
    def test_empty_parts_discarded(self):
        data = (
            b"Content-Type: multipart/mixed; boundary=b\n"
            b"\n"
            b"--b\n"
            b"\n"
            b"--b\n"
            b"Content-Type: text/plain\n"
            b"\n"
            b"kept\n"
            b"--b--\n"
        )
        eml = decode_bytes(data)
        assert len(eml.parts) == 1
        assert eml.parts[0].content == "kept\r\n"

    @pytest.mark.unit
    def test_truncated_multipart_keeps_parts_read(self):
        data = (
            b"Content-Type: multipart/mixed; boundary=b\n"
            b"\n"
            b"--b\n"
            b"Content-Type: text/plain\n"
            b"\n"
            b"first\n"
            b"--b\n"
            b"Content-Type: text/plain\n"
            b"\n"
            b"second, never closed\n"
        )
        eml = decode_bytes(data)
        assert [p.content for p in eml.parts] == ["first\r\n", "second, never closed\r\n"]

    @pytest.mark.unit
    def test_decoded_size_counts_every_line(self):
        data = SAMPLE_EMAILS["nested_multipart"]
        eml = decode_bytes(data)
        expected = sum(len(line) + 2 for line in data.decode("utf-8").splitlines())
        assert eml.decoded_size == expected


class TestCancellation:
    """Tests for DecodeCancellation and stop()."""

    @pytest.mark.unit
    def test_cancelled_before_start(self):
        cancellation = DecodeCancellation()
        cancellation.cancel()
        stream = io.StringIO("Subject: x\n\nbody\n")
        eml = EmlFile.from_bytes(b"")
        with pytest.raises(DecodeIOError):
            EmlDecoder(eml, stream, cancellation).decode()
        assert stream.closed

    @pytest.mark.unit
    def test_cancel_closes_attached_stream(self):
        cancellation = DecodeCancellation()
        stream = io.StringIO("Subject: x\n")
        cancellation.attach(stream)
        cancellation.cancel()
        assert cancellation.cancelled
        assert stream.closed
        with pytest.raises(DecodeIOError):
            cancellation.check()

    @pytest.mark.unit
    def test_read_failure_becomes_decode_io_error(self):
        stream = io.StringIO("Subject: x\n")
        stream.close()
        eml = EmlFile.from_bytes(b"")
        with pytest.raises(DecodeIOError):
            EmlDecoder(eml, stream).decode()

    @pytest.mark.unit
    def test_custom_line_terminator(self):
        eml = EmlFile.from_bytes(b"")
        EmlDecoder(eml, io.StringIO("Subject: x\n\none\ntwo\n"), line_terminator="\n").decode()
        assert eml.parts[0].content == "one\ntwo\n"
