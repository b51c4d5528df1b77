"""
Header multimap shared by messages and parts.
"""

from typing import Dict, Iterator, List, Optional, Tuple


class HeaderMap:
    """
    Case-insensitive multimap of header name to values.

    Names are stored lower-cased and iterate in sorted order; the values of a
    name keep the order in which they appeared in the message.
    """

    __slots__ = ("_values",)

    def __init__(self) -> None:
        self._values: Dict[str, List[str]] = {}

    def add(self, name: str, value: str) -> None:
        self._values.setdefault(name.lower(), []).append(value)

    def get_first(self, name: str) -> Optional[str]:
        values = self._values.get(name.lower())
        return values[0] if values else None

    def get_all(self, name: str) -> List[str]:
        return list(self._values.get(name.lower(), ()))

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for name in self:
            yield name, list(self._values[name])

    def clear(self) -> None:
        self._values.clear()

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: values for name, values in self.items()}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self._values.get(name.lower()))

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __repr__(self) -> str:
        return f"HeaderMap({self.to_dict()!r})"
