"""
Unit tests for address list parsing (addresses.py).
"""

import pytest
from pydantic import ValidationError

from eml_decoder.addresses import EmailAddress, parse_address, parse_addresses


class TestParseAddresses:
    """Tests for parse_addresses() function."""

    @pytest.mark.unit
    def test_quoted_comma_in_name(self):
        result = parse_addresses('"Doe, Jane" <jane@x.com>, bob@y.com')
        assert result == [
            EmailAddress(name="Doe, Jane", address="jane@x.com"),
            EmailAddress(name=None, address="bob@y.com"),
        ]

    @pytest.mark.unit
    def test_all_separators(self):
        result = parse_addresses("a@x.com; b@x.com / c@x.com, d@x.com")
        assert [a.address for a in result] == ["a@x.com", "b@x.com", "c@x.com", "d@x.com"]

    @pytest.mark.unit
    def test_invalid_segments_dropped(self):
        result = parse_addresses("undisclosed-recipients:, @x.com, ok@x.com,,")
        assert [a.address for a in result] == ["ok@x.com"]

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert parse_addresses(value) == []

    @pytest.mark.unit
    def test_escaped_quote_in_name(self):
        result = parse_addresses('"Jane \\"JJ\\", Doe" <j@x.com>, k@x.com')
        assert len(result) == 2
        assert result[0].address == "j@x.com"
        assert result[1].address == "k@x.com"


class TestParseAddress:
    """Tests for parse_address() function."""

    @pytest.mark.unit
    def test_name_and_address(self):
        address = parse_address("Jane Doe <jane@x.com>")
        assert address.name == "Jane Doe"
        assert address.address == "jane@x.com"

    @pytest.mark.unit
    def test_angle_brackets_only(self):
        address = parse_address("<jane@x.com>")
        assert address.name is None
        assert address.address == "jane@x.com"

    @pytest.mark.unit
    def test_bare_address(self):
        assert parse_address("  jane@x.com ") == EmailAddress(address="jane@x.com")

    @pytest.mark.unit
    def test_angle_bracket_inside_quoted_name(self):
        address = parse_address('"a <b>" <c@x.com>')
        assert address.name == "a <b>"
        assert address.address == "c@x.com"

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "no at sign", "@x.com", "Name <>"])
    def test_rejected(self, value):
        assert parse_address(value) is None


class TestEmailAddress:
    """Tests for the EmailAddress model."""

    @pytest.mark.unit
    def test_str_with_name(self):
        assert str(EmailAddress(name="Doe, Jane", address="jane@x.com")) == '"Doe, Jane" <jane@x.com>'

    @pytest.mark.unit
    def test_str_without_name(self):
        assert str(EmailAddress(address="jane@x.com")) == "jane@x.com"

    @pytest.mark.unit
    def test_immutable(self):
        address = EmailAddress(address="jane@x.com")
        with pytest.raises(ValidationError):
            address.address = "other@x.com"
