"""Case-insensitive, multi-valued HTTP header map."""

from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

HeaderValues = Union[str, List[str]]


def canonical_key(key: str) -> str:
    """Return the canonical form of a header name (``content-type`` -> ``Content-Type``)."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.strip().split("-"))


class HeaderMap:
    """Maps header names to an ordered list of values.

    Keys are compared case-insensitively and stored in canonical form. The
    order of values within a key is the order they were added.
    """

    def __init__(self, headers: Optional[Union["HeaderMap", Mapping[str, HeaderValues]]] = None):
        self._values: Dict[str, List[str]] = {}
        if headers:
            self.update(headers)

    def set(self, key: str, value: str) -> None:
        self._values[canonical_key(key)] = [value]

    def add(self, key: str, value: str) -> None:
        self._values.setdefault(canonical_key(key), []).append(value)

    def get(self, key: str) -> str:
        values = self._values.get(canonical_key(key))
        return values[0] if values else ""

    def values(self, key: str) -> List[str]:
        return list(self._values.get(canonical_key(key), []))

    def delete(self, key: str) -> None:
        self._values.pop(canonical_key(key), None)

    def update(self, headers: Union["HeaderMap", Mapping[str, HeaderValues]]) -> None:
        """Overwrite keys from another HeaderMap or a plain mapping.

        A plain mapping may hold either a single string or a list of strings
        per key.
        """
        for key, value in headers.items():
            if isinstance(value, str):
                self.set(key, value)
            else:
                self._values[canonical_key(key)] = list(value)

    def copy(self) -> "HeaderMap":
        return HeaderMap(self)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for key, values in self._values.items():
            yield key, list(values)

    def to_request_headers(self) -> Dict[str, str]:
        # Multiple values are folded into one field, as allowed by RFC 9110.
        return {key: ", ".join(values) for key, values in self._values.items() if values}

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and canonical_key(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"HeaderMap({self._values!r})"
