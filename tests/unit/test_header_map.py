"""
Unit tests for the header multimap (headers.py).
"""

import pytest

from eml_decoder.models.headers import HeaderMap


@pytest.fixture
def headers() -> HeaderMap:
    result = HeaderMap()
    result.add("Subject", "Hello")
    result.add("Received", "from a")
    result.add("received", "from b")
    result.add("From", "a@x.com")
    return result


class TestHeaderMap:
    """Tests for HeaderMap."""

    @pytest.mark.unit
    def test_case_insensitive_lookup(self, headers):
        assert headers.get_first("SUBJECT") == "Hello"
        assert "subject" in headers
        assert "Subject" in headers

    @pytest.mark.unit
    def test_values_keep_order(self, headers):
        assert headers.get_all("Received") == ["from a", "from b"]
        assert headers.get_first("received") == "from a"

    @pytest.mark.unit
    def test_missing(self, headers):
        assert headers.get_first("cc") is None
        assert headers.get_all("cc") == []
        assert "cc" not in headers

    @pytest.mark.unit
    def test_get_all_returns_copy(self, headers):
        headers.get_all("received").append("tampered")
        assert headers.get_all("received") == ["from a", "from b"]

    @pytest.mark.unit
    def test_keys_sorted(self, headers):
        assert list(headers) == ["from", "received", "subject"]
        assert [name for name, _ in headers.items()] == ["from", "received", "subject"]

    @pytest.mark.unit
    def test_to_dict(self, headers):
        assert headers.to_dict() == {
            "from": ["a@x.com"],
            "received": ["from a", "from b"],
            "subject": ["Hello"],
        }

    @pytest.mark.unit
    def test_len_and_clear(self, headers):
        assert len(headers) == 3
        assert headers
        headers.clear()
        assert len(headers) == 0
        assert not headers
