"""
Content-Type parameter scanning.

This is a lexical search, not a parameter grammar: every case-insensitive
occurrence of the key is tried in order, and the first one followed by
``=`` and a non-empty value wins.
"""

from typing import Optional


def _skip_whitespace(value: str, index: int) -> int:
    while index < len(value) and value[index].isspace():
        index += 1
    return index


def _read_quoted(value: str, start: int, quote: str) -> Optional[str]:
    """Read up to the closing quote, stepping over backslash-escaped characters."""
    end = start
    while end < len(value) and value[end] != quote:
        if value[end] == "\\":
            end += 1
        end += 1
    if end >= len(value) or end == start:
        return None
    return value[start:end]


def _read_token(value: str, start: int) -> Optional[str]:
    end = start
    while end < len(value) and not value[end].isspace() and value[end] != ";":
        end += 1
    if end == start:
        return None
    return value[start:end]


def _parse_value_at(value: str, index: int) -> Optional[str]:
    index = _skip_whitespace(value, index)
    if index >= len(value) or value[index] != "=":
        return None
    index = _skip_whitespace(value, index + 1)
    if index >= len(value):
        return None
    if value[index] in ('"', "'"):
        return _read_quoted(value, index + 1, value[index])
    return _read_token(value, index)


def find_parameter(value: Optional[str], key: str, word_boundary: bool = False) -> Optional[str]:
    """
    Find a parameter value in a raw header value.

    Args:
        value: Raw header value, e.g. 'multipart/mixed; boundary="abc"'
        key: Parameter name to search for (case-insensitive)
        word_boundary: Reject occurrences at index 0 or preceded by a letter
            or digit (so "name" does not fire inside "filename")

    Returns:
        The parameter value without its quotes, or None if no occurrence parses
    """
    if not value:
        return None

    haystack = value.lower()
    needle = key.lower()
    at = haystack.find(needle)
    while at >= 0:
        if not word_boundary or (at > 0 and not value[at - 1].isalnum()):
            found = _parse_value_at(value, at + len(needle))
            if found is not None:
                return found
        at = haystack.find(needle, at + len(needle))
    return None


def extract_boundary(content_type: Optional[str]) -> Optional[str]:
    """Return the multipart boundary declared in a Content-Type value."""
    return find_parameter(content_type, "boundary")


def extract_charset(content_type: Optional[str]) -> Optional[str]:
    """Return the charset declared in a Content-Type value."""
    return find_parameter(content_type, "charset")


def extract_name(content_type: Optional[str]) -> Optional[str]:
    """Return the name parameter declared in a Content-Type value."""
    return find_parameter(content_type, "name", word_boundary=True)
