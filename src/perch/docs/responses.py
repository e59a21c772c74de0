"""Response specs — documented (status, type, mime) outcomes of an endpoint.

Entries are merged from three sources, always in this order:

1. Inference from the declared return shape, innermost first:
   ``Result<T, E>`` gives 200 T and 500 E, ``Option<T>`` gives 200 T and
   404 with no body, anything else gives 200 T.
2. Explicit ``Return`` declarations, keyed by status code. The last
   declaration for a code wins.
3. ``ReturnOverride`` declarations, keyed by type. Every entry whose type
   matches is replaced; an optional code narrows it to one entry. An
   override that matches nothing is ignored with an ``UnmatchedOverride``
   warning.

``Json<MyType>``, ``MyType`` with ``mime="json"`` and ``MyType`` with
``mime="application/json"`` all normalize to the same entry.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from perch.docs.mime import DEFAULT_REGISTRY, MimeRegistry
from perch.docs.shapes import EMPTY, OptionOf, ResultOf, Shape, Wrapped, as_shape
from perch.errors import UnmatchedOverride

logger = logging.getLogger("perch.docs")


@dataclass(frozen=True, slots=True)
class ResponseEntry:
    """One documented outcome."""

    code: int
    shape: Shape = EMPTY
    mime: str | None = None

    @property
    def type_name(self) -> str:
        return str(self.shape)


@dataclass(frozen=True, slots=True)
class Return:
    """Declare that an endpoint may answer *code* with *type*.

    ``code`` may be a single status or several that share a type::

        Return(200, "Json<User>")
        Return((404, 500), "ApiError", mime="json")
    """

    code: int | tuple[int, ...]
    type: Shape | str | None = None
    mime: str | None = None

    @property
    def codes(self) -> tuple[int, ...]:
        if isinstance(self.code, int):
            return (self.code,)
        return tuple(self.code)


@dataclass(frozen=True, slots=True)
class ReturnOverride:
    """Correct the mime (and type) of entries documented for *type*."""

    type: Shape | str
    mime: str | None = None
    code: int | None = None


Declaration = Return | ReturnOverride


def normalize_entry(
    code: int,
    type_: Shape | str | None,
    mime: str | None = None,
    registry: MimeRegistry = DEFAULT_REGISTRY,
) -> ResponseEntry:
    """Build a canonical entry: wrappers unwrapped, mime resolved.

    An explicit mime beats the wrapper's mime, which beats the type-level
    mime registered for a plain named type.
    """
    shape = as_shape(type_, registry.wrapper_names)
    resolved = registry.resolve(mime) if mime else None
    while isinstance(shape, Wrapped):
        if resolved is None:
            resolved = registry.wrapper_mime(shape.wrapper)
        shape = shape.inner
    if resolved is None:
        resolved = registry.type_mime(shape)
    return ResponseEntry(code=code, shape=shape, mime=resolved)


def _infer(shape: Shape, entries: dict[int, ResponseEntry], registry: MimeRegistry) -> None:
    match shape:
        case ResultOf(ok=ok, err=err):
            _infer(ok, entries, registry)
            entries[500] = normalize_entry(500, err, registry=registry)
        case OptionOf(inner=inner):
            _infer(inner, entries, registry)
            entries[404] = normalize_entry(404, EMPTY, registry=registry)
        case _:
            entries[200] = normalize_entry(200, shape, registry=registry)


def infer_entries(
    returns: Shape | str | None,
    registry: MimeRegistry = DEFAULT_REGISTRY,
) -> dict[int, ResponseEntry]:
    """Default entries for a declared return shape. ``None`` infers nothing."""
    entries: dict[int, ResponseEntry] = {}
    if returns is None:
        return entries
    _infer(as_shape(returns, registry.wrapper_names), entries, registry)
    return entries


def apply_return(
    entries: dict[int, ResponseEntry],
    declaration: Return,
    registry: MimeRegistry = DEFAULT_REGISTRY,
) -> None:
    for code in declaration.codes:
        entries[code] = normalize_entry(code, declaration.type, declaration.mime, registry)


def apply_override(
    entries: dict[int, ResponseEntry],
    override: ReturnOverride,
    registry: MimeRegistry = DEFAULT_REGISTRY,
) -> int:
    """Replace matching entries in place. Returns how many were replaced."""
    target = normalize_entry(0, override.type, override.mime, registry)
    replaced = 0
    for code, entry in list(entries.items()):
        if override.code is not None and code != override.code:
            continue
        if entry.shape != target.shape:
            continue
        entries[code] = ResponseEntry(code=code, shape=target.shape, mime=target.mime)
        replaced += 1
    return replaced


@dataclass(frozen=True, slots=True)
class ResponseSpec:
    """The merged, code-ordered response entries of one endpoint."""

    entries: tuple[ResponseEntry, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        returns: Shape | str | None = None,
        declarations: Sequence[Declaration] = (),
        *,
        registry: MimeRegistry = DEFAULT_REGISTRY,
        warn_unmatched: bool = True,
        label: str = "",
    ) -> ResponseSpec:
        """Merge inference, ``Return`` and ``ReturnOverride`` into a spec.

        *label* names the endpoint in warnings.
        """
        entries = infer_entries(returns, registry)

        for declaration in declarations:
            if isinstance(declaration, Return):
                apply_return(entries, declaration, registry)

        for declaration in declarations:
            if not isinstance(declaration, ReturnOverride):
                continue
            if apply_override(entries, declaration, registry) == 0 and warn_unmatched:
                where = f" on {label}" if label else ""
                msg = (
                    f"return_override for {str(as_shape(declaration.type))!r}"
                    f"{where} matched no response entry"
                )
                logger.warning(msg)
                warnings.warn(msg, UnmatchedOverride, stacklevel=2)

        return cls(tuple(entries[code] for code in sorted(entries)))

    def get(self, code: int) -> ResponseEntry | None:
        for entry in self.entries:
            if entry.code == code:
                return entry
        return None

    @property
    def codes(self) -> tuple[int, ...]:
        return tuple(entry.code for entry in self.entries)

    def __iter__(self) -> Iterator[ResponseEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
