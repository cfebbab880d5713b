"""Immutable query string parameters.

Implements ``Mapping[str, str]`` and the ``MultiValueMapping`` protocol.
"""

from collections.abc import Iterable, Iterator, Mapping
from urllib.parse import parse_qsl, urlencode


class SearchParams(Mapping[str, str]):
    """Immutable, ordered query string parameters.

    Attributes:
        _data: Parsed query string as key -> list of values, in first-seen
            key order with values in the order they appeared.

    ``get`` and ``__getitem__`` return the first value for a key.
    ``get_all`` returns every value for a key::

        params = SearchParams("name=betty&name=sofia&name=sandra")
        params.get("name")      # "betty"
        params.get_all("name")  # ["betty", "sofia", "sandra"]
    """

    _data: dict[str, list[str]]

    __slots__ = ("_data",)

    def __init__(
        self,
        query: str | bytes | Iterable[tuple[str, str]] | None = None,
    ) -> None:
        if query is None:
            pairs: Iterable[tuple[str, str]] = ()
        elif isinstance(query, bytes):
            pairs = parse_qsl(query.decode("latin-1"), keep_blank_values=True)
        elif isinstance(query, str):
            pairs = parse_qsl(query.removeprefix("?"), keep_blank_values=True)
        else:
            pairs = query

        data: dict[str, list[str]] = {}
        for key, value in pairs:
            data.setdefault(key, []).append(value)
        object.__setattr__(self, "_data", data)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "SearchParams is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SearchParams({self.to_query_string()!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SearchParams):
            return self._data == other._data
        if isinstance(other, Mapping):
            return dict(self.items()) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self.multi_items()))

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_all(self, key: str) -> list[str]:
        """Return all values for *key*, in order. Empty if missing."""
        return list(self._data.get(key, []))

    def multi_items(self) -> list[tuple[str, str]]:
        """Return every (key, value) pair, repeated keys included."""
        return [(key, value) for key, values in self._data.items() for value in values]

    def to_query_string(self) -> str:
        """Encode back to a query string (without the leading ``?``)."""
        return urlencode(self.multi_items())
