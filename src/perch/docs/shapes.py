"""Type-shape descriptors for response documentation.

A closed set of frozen variants describes what an endpoint returns. The
authoring layer maps its own types onto this vocabulary, either with the
constructors below or with the compact string form::

    parse_shape("Result<Option<String>, MyError>")
    # ResultOf(ok=OptionOf(inner=Named("String")), err=Named("MyError"))

Path-qualified names (``self::MyType``, ``crate::models::MyType``) reduce
to their last component. Strings starting with ``[``, ``{`` or ``(`` are raw
structural descriptions; the empty string (or ``()``) is ``Empty``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from perch.errors import ConfigurationError

# Wrappers whose inner type is documented with a fixed mime type
KNOWN_WRAPPERS: frozenset[str] = frozenset({"Json", "Form", "Html"})

_OPENERS = {"<": ">", "[": "]", "{": "}", "(": ")"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


@dataclass(frozen=True, slots=True)
class Named:
    """A named type, possibly generic (``MyType``, ``Vec<MyType>``)."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Wrapped:
    """A known responder wrapper around an inner type (``Json<MyType>``)."""

    wrapper: str
    inner: Shape

    def __str__(self) -> str:
        return f"{self.wrapper}<{self.inner}>"


@dataclass(frozen=True, slots=True)
class ResultOf:
    """Success-or-error: documented as 200 for ``ok`` and 500 for ``err``."""

    ok: Shape
    err: Shape

    def __str__(self) -> str:
        return f"Result<{self.ok}, {self.err}>"


@dataclass(frozen=True, slots=True)
class OptionOf:
    """Value-or-nothing: documented as 200 for ``inner`` and 404 for nothing."""

    inner: Shape

    def __str__(self) -> str:
        return f"Option<{self.inner}>"


@dataclass(frozen=True, slots=True)
class Raw:
    """A raw structural description, e.g. ``[{code: String, name: String}]``."""

    description: str

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True, slots=True)
class Empty:
    """No body."""

    def __str__(self) -> str:
        return ""


Shape: TypeAlias = Named | Wrapped | ResultOf | OptionOf | Raw | Empty

EMPTY = Empty()


def _short_name(name: str) -> str:
    return name.split("::")[-1].strip()


def _split_args(text: str, source: str) -> list[str]:
    """Split *text* on top-level commas, honoring nested brackets."""
    args: list[str] = []
    stack: list[str] = []
    start = 0
    for index, char in enumerate(text):
        if char in _OPENERS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[char]:
                msg = f"Unbalanced brackets in type {source!r}"
                raise ConfigurationError(msg)
            stack.pop()
        elif char == "," and not stack:
            args.append(text[start:index].strip())
            start = index + 1
    if stack:
        msg = f"Unbalanced brackets in type {source!r}"
        raise ConfigurationError(msg)
    args.append(text[start:].strip())
    return args


def parse_shape(text: str, wrappers: frozenset[str] = KNOWN_WRAPPERS) -> Shape:
    """Parse a compact type string into a ``Shape``.

    Raises ``ConfigurationError`` on unbalanced brackets.
    """
    source = text
    text = text.strip()
    if not text or text == "()":
        return EMPTY
    if text[0] in "[{(":
        return Raw(text)

    open_at = text.find("<")
    if open_at == -1:
        if ">" in text:
            msg = f"Unbalanced brackets in type {source!r}"
            raise ConfigurationError(msg)
        return Named(_short_name(text))
    if not text.endswith(">"):
        msg = f"Unbalanced brackets in type {source!r}"
        raise ConfigurationError(msg)

    head = _short_name(text[:open_at])
    args = _split_args(text[open_at + 1 : -1], source)

    if head == "Result" and len(args) == 2:
        return ResultOf(parse_shape(args[0], wrappers), parse_shape(args[1], wrappers))
    if head == "Option" and len(args) == 1:
        return OptionOf(parse_shape(args[0], wrappers))
    if head in wrappers and len(args) == 1:
        return Wrapped(head, parse_shape(args[0], wrappers))
    rendered = ", ".join(str(parse_shape(arg, wrappers)) for arg in args)
    return Named(f"{head}<{rendered}>")


def as_shape(value: Shape | str | None, wrappers: frozenset[str] = KNOWN_WRAPPERS) -> Shape:
    """Accept a ``Shape``, a type string, or ``None`` (empty)."""
    if value is None:
        return EMPTY
    if isinstance(value, str):
        return parse_shape(value, wrappers)
    return value
