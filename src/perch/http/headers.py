"""Case-insensitive request headers.

Names are lower-cased and values decoded (latin-1, as ASGI requires)
once, when the headers are built. Repeated headers keep every value in
arrival order.
"""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only header mapping.

    Lookups return the first value sent for a name; ``get_list`` returns
    all of them.
    """

    __slots__ = ("_pairs", "_values")

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        pairs = tuple((name, value) for name, value in raw)
        values: dict[str, list[str]] = {}
        for name, value in pairs:
            values.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._pairs = pairs
        self._values = values

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | None) -> "Headers":
        """Build headers from a plain ``{name: value}`` mapping."""
        return cls(
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        )

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        first = {name: values[0] for name, values in self._values.items()}
        return f"Headers({first!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._values.get(key.lower())
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        return list(self._values.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Header pairs exactly as received."""
        return self._pairs
