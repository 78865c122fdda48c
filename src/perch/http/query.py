"""Query string parameters."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Parsed ``?query`` of a request.

    Blank values are kept (``?flag=`` gives ``{"flag": ""}``). Indexing
    returns the first value of a repeated key.
    """

    __slots__ = ("_multi", "_raw")

    def __init__(self, query_string: bytes | str = b"") -> None:
        if isinstance(query_string, str):
            query_string = query_string.encode("latin-1")
        multi: dict[str, list[str]] = {}
        for key, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
            multi.setdefault(key, []).append(value)
        self._raw = query_string
        self._multi = multi

    def __getitem__(self, key: str) -> str:
        return self._multi[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._multi)

    def __len__(self) -> int:
        return len(self._multi)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw.decode('latin-1')!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._multi.get(key, ()))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """The first value for *key* as an int; *default* if absent or not an integer."""
        try:
            return int(self[key])
        except (KeyError, ValueError):
            return default

    @property
    def raw(self) -> bytes:
        return self._raw
