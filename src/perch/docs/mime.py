"""Mime inference registry.

Maps known wrapper shapes, well-known plain types and short aliases to
canonical media types. A registry is frozen at construction; ``extend()``
returns a new one, so the process-wide ``DEFAULT_REGISTRY`` is never
mutated and lookups need no locking.

Usage::

    registry = DEFAULT_REGISTRY.extend({"MyError": "json"})
    registry.resolve("json")           # "application/json"
    registry.wrapper_mime("Form")      # "application/x-www-form-urlencoded"
    registry.type_mime(Named("MyError"))  # "application/json"
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from perch.docs.shapes import Named, Shape
from perch.errors import UnknownMimeAlias

logger = logging.getLogger("perch.docs")

JSON = "application/json"
FORM = "application/x-www-form-urlencoded"
HTML = "text/html"
TEXT = "text/plain"
OCTET = "application/octet-stream"

_BUILTIN_WRAPPERS: dict[str, str] = {
    "Json": JSON,
    "Form": FORM,
    "Html": HTML,
}

_BUILTIN_TYPES: dict[str, str] = {
    "String": TEXT,
    "str": TEXT,
    "&str": TEXT,
    "&'static str": TEXT,
    "Bytes": OCTET,
    "bytes": OCTET,
    "Vec<u8>": OCTET,
}

_BUILTIN_ALIASES: dict[str, str] = {
    "json": JSON,
    "form": FORM,
    "html": HTML,
    "text": TEXT,
    "plain": TEXT,
    "bytes": OCTET,
    "binary": OCTET,
    "xml": "application/xml",
}


@dataclass(frozen=True, slots=True, eq=False)
class MimeRegistry:
    """Read-only lookup tables for mime inference."""

    wrappers: Mapping[str, str]
    aliases: Mapping[str, str]
    types: Mapping[str, str]

    @classmethod
    def builtin(cls) -> MimeRegistry:
        return cls(
            wrappers=MappingProxyType(dict(_BUILTIN_WRAPPERS)),
            aliases=MappingProxyType(dict(_BUILTIN_ALIASES)),
            types=MappingProxyType(dict(_BUILTIN_TYPES)),
        )

    def extend(
        self,
        types: Mapping[str, str] | None = None,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> MimeRegistry:
        """Return a new registry with extra type-level mimes and aliases.

        Type mimes may themselves be aliases (``{"MyError": "json"}``); they
        are resolved against the combined alias table.
        """
        new_aliases = {**self.aliases, **{k.lower(): v for k, v in (aliases or {}).items()}}
        staged = MimeRegistry(
            wrappers=self.wrappers,
            aliases=MappingProxyType(new_aliases),
            types=self.types,
        )
        new_types = {**self.types}
        for name, mime in (types or {}).items():
            new_types[name.split("::")[-1].strip()] = staged.resolve(mime)
        return MimeRegistry(
            wrappers=self.wrappers,
            aliases=staged.aliases,
            types=MappingProxyType(new_types),
        )

    @property
    def wrapper_names(self) -> frozenset[str]:
        return frozenset(self.wrappers)

    def resolve(self, mime: str) -> str:
        """Normalize a mime alias to a full media type.

        Full media types (anything containing ``/``) pass through. Unknown
        aliases pass through verbatim with an ``UnknownMimeAlias`` warning.
        """
        mime = mime.strip()
        if "/" in mime:
            return mime
        known = self.aliases.get(mime.lower())
        if known is not None:
            return known
        logger.warning("Unknown mime alias %r, using it verbatim", mime)
        warnings.warn(f"Unknown mime alias {mime!r}", UnknownMimeAlias, stacklevel=2)
        return mime

    def wrapper_mime(self, wrapper: str) -> str | None:
        return self.wrappers.get(wrapper)

    def type_mime(self, shape: Shape) -> str | None:
        """The declared or well-known mime for a plain named type."""
        if isinstance(shape, Named):
            return self.types.get(shape.name)
        return None


DEFAULT_REGISTRY = MimeRegistry.builtin()
"""Process-wide registry of built-in wrappers, types and aliases."""
