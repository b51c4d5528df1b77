"""
Email address list parsing.

Splits To/From/Cc style header values into display-name/address pairs. The
parser is deliberately small: it only understands quoted strings and angle
brackets, which covers what real clients write.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

SEPARATORS = (",", ";", "/")


class EmailAddress(BaseModel):
    """A single display-name/address pair."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(None, description="Display name, if any")
    address: str = Field(description="Mailbox address")

    def __str__(self) -> str:
        if self.name:
            return f'"{self.name}" <{self.address}>'
        return self.address


def _skip_quoted(s: str, i: int) -> int:
    """Return the index of the closing quote for the quote at ``i`` (or len(s))."""
    i += 1
    while i < len(s):
        if s[i] == "\\":
            i += 1
        elif s[i] == '"':
            break
        i += 1
    return i


def parse_address(s: Optional[str]) -> Optional[EmailAddress]:
    """
    Parse a single address such as ``"Doe, Jane" <jane@x.com>``.

    Args:
        s: One segment of an address list

    Returns:
        EmailAddress, or None if no plausible address is present
    """
    if not s:
        return None

    addr_start = -1
    addr_end = -1
    i = 0
    while i < len(s):
        if s[i] == '"':
            i = _skip_quoted(s, i)
        elif addr_start == -1 and s[i] == "<":
            addr_start = i
        elif s[i] == ">":
            addr_end = i
        i += 1

    name = None
    if addr_start >= 0 and addr_end > addr_start:
        name = s[:addr_start].strip()
        address = s[addr_start + 1:addr_end].strip()
        if len(name) > 1 and name[0] == '"' and name[-1] == '"':
            name = name[1:-1].strip()
        name = name or None
    else:
        address = s.strip()

    if address.find("@") <= 0:
        return None
    return EmailAddress(name=name, address=address)


def parse_addresses(s: Optional[str]) -> List[EmailAddress]:
    """
    Parse an address list, splitting on top-level ``,`` ``;`` and ``/``.

    Separators inside double quotes are ignored, so
    ``"Doe, Jane" <jane@x.com>, bob@y.com`` yields two addresses.

    Args:
        s: Raw header value

    Returns:
        Parsed addresses in order, invalid segments dropped
    """
    if not s:
        return []

    addresses = []
    sep = 0
    i = 0
    while i < len(s):
        if s[i] == '"':
            i = _skip_quoted(s, i)
        elif s[i] in SEPARATORS:
            parsed = parse_address(s[sep:i].strip())
            if parsed is not None:
                addresses.append(parsed)
            sep = i + 1
        i += 1

    parsed = parse_address(s[sep:].strip())
    if parsed is not None:
        addresses.append(parsed)
    return addresses
