"""Request headers as an immutable, case-insensitive mapping."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    Names are lower-cased on the way in. Repeated headers keep every value
    in arrival order: indexing returns the first, ``get_list`` all of them.
    """

    __slots__ = ("_values",)

    def __init__(self, raw: Iterable[tuple[str, str]] = ()) -> None:
        values: dict[str, list[str]] = {}
        for name, value in raw:
            values.setdefault(name.lower(), []).append(value)
        frozen = MappingProxyType({name: tuple(vals) for name, vals in values.items()})
        object.__setattr__(self, "_values", frozen)

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        """Decode ASGI ``(bytes, bytes)`` header pairs."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | None) -> Headers:
        return cls((headers or {}).items())

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Headers are immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in arrival order."""
        return list(self._values.get(key.lower(), ()))
