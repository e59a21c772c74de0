"""Path templates — parsing and matching.

A template such as ``/users/<id>/files/<rest..>`` parses into a frozen
``Pattern`` of segments:

    Static:   ``users``     (is_param=False)
    Param:    ``<id>``      (is_param=True, param_name="id")
    Wildcard: ``<rest..>``  (is_param=True, is_wildcard=True), last only
"""

import re
from dataclasses import dataclass

from perch.errors import MalformedPath

_PARAM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a path template."""

    value: str
    is_param: bool = False
    param_name: str | None = None
    is_wildcard: bool = False

    @property
    def shape(self) -> str:
        """Segment identity with the parameter name erased."""
        if self.is_wildcard:
            return "<..>"
        if self.is_param:
            return "<>"
        return self.value


@dataclass(frozen=True, slots=True)
class Pattern:
    """An ordered, matchable sequence of path segments."""

    segments: tuple[PathSegment, ...] = ()

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(s.param_name for s in self.segments if s.param_name is not None)

    @property
    def has_wildcard(self) -> bool:
        return bool(self.segments) and self.segments[-1].is_wildcard

    @property
    def shape(self) -> tuple[str, ...]:
        """Structure used for conflict detection: ``/a/<x>`` and ``/a/<y>`` share one."""
        return tuple(s.shape for s in self.segments)

    def match(self, path: str) -> dict[str, str] | None:
        return match_path(self, path)

    def openapi_path(self) -> str:
        """Render with ``{name}`` placeholders."""
        parts = [f"{{{s.param_name}}}" if s.is_param else s.value for s in self.segments]
        return "/" + "/".join(parts)

    def __str__(self) -> str:
        return "/" + "/".join(s.value for s in self.segments)


def split_path(path: str) -> list[str]:
    """Split a path into components, dropping empty ones."""
    return [p for p in path.split("/") if p]


def _parse_segment(part: str, path: str) -> PathSegment:
    if part.startswith("{") and part.endswith("}"):
        msg = f"use <param>, not {{param}} (segment {part!r})"
        raise MalformedPath(path, msg)

    if "<" not in part and ">" not in part:
        return PathSegment(value=part)

    if part.count("<") != 1 or part.count(">") != 1:
        raise MalformedPath(path, f"unbalanced parameter delimiters in {part!r}")
    if not (part.startswith("<") and part.endswith(">")):
        raise MalformedPath(path, f"parameter must span the whole segment in {part!r}")

    inner = part[1:-1]
    is_wildcard = inner.endswith("..")
    name = inner[:-2] if is_wildcard else inner
    if not name:
        raise MalformedPath(path, f"empty parameter name in {part!r}")
    if not _PARAM_NAME.match(name):
        raise MalformedPath(path, f"invalid parameter name {name!r}")
    return PathSegment(value=part, is_param=True, param_name=name, is_wildcard=is_wildcard)


def parse_path(path: str) -> Pattern:
    """Parse a path template into a ``Pattern``.

    Examples::

        "/users"           -> [PathSegment("users")]
        "/users/<id>"      -> [PathSegment("users"), PathSegment("<id>", is_param=True, ...)]
        "/static/<file..>" -> [..., PathSegment("<file..>", is_wildcard=True, ...)]

    Raises ``MalformedPath`` on empty or duplicate parameter names,
    unbalanced delimiters, or a wildcard that is not the last segment.
    """
    segments: list[PathSegment] = []
    seen: set[str] = set()
    for part in split_path(path):
        if segments and segments[-1].is_wildcard:
            raise MalformedPath(path, "a wildcard must be the last segment")
        seg = _parse_segment(part, path)
        if seg.param_name is not None:
            if seg.param_name in seen:
                raise MalformedPath(path, f"duplicate parameter name {seg.param_name!r}")
            seen.add(seg.param_name)
        segments.append(seg)
    return Pattern(tuple(segments))


def match_path(pattern: Pattern, path: str) -> dict[str, str] | None:
    """Match a request path against *pattern*.

    Returns the parameter bindings, or ``None`` when the path does not match.
    Static segments compare case-sensitively. A trailing wildcard consumes
    the remainder of the path but needs at least one component.
    """
    parts = split_path(path)
    params: dict[str, str] = {}

    for index, seg in enumerate(pattern.segments):
        if index >= len(parts):
            return None
        if seg.is_wildcard:
            params[seg.param_name or ""] = "/".join(parts[index:])
            return params
        if seg.is_param:
            params[seg.param_name or ""] = parts[index]
        elif seg.value != parts[index]:
            return None

    if len(parts) != len(pattern.segments):
        return None
    return params
