"""Perch exception and warning hierarchy.

Shared across the router, the documentation builder, the guard chain and
the request pipeline so every module raises and catches the same types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.http.response import Response


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when the registered controllers are invalid.

    Raised during ``App.freeze()``. A failed freeze aborts startup and the
    app refuses to serve any request afterwards.
    """


class MalformedPath(ConfigurationError):  # noqa: N818 — reads as a condition, like NotFound
    """A path template could not be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed path {path!r}: {reason}")


class RouteConflict(ConfigurationError):  # noqa: N818
    """Two endpoints resolve to the same (method, pattern) pair."""

    def __init__(self, method: str, pattern: str, other: str) -> None:
        self.method = method
        self.pattern = pattern
        self.other = other
        detail = f"Route conflict: {method} {pattern}"
        if other != pattern:
            detail = f"{detail} overlaps {method} {other}"
        else:
            detail = f"{detail} is registered twice"
        super().__init__(detail)


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatch table, guards, or handlers. The request pipeline
    catches these and turns them into a response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class GuardFailure(HTTPError):  # noqa: N818
    """A guard rejected the request.

    Raise it from a guard to stop the chain. When *response* is given it is
    sent as-is; otherwise a plain response is built from status and detail.
    """

    def __init__(
        self,
        status: int = 403,
        detail: str = "Forbidden",
        *,
        headers: tuple[tuple[str, str], ...] = (),
        response: Response | None = None,
    ) -> None:
        super().__init__(status=status, detail=detail, headers=headers)
        object.__setattr__(self, "response", response)


# -- Warnings --


class PerchWarning(UserWarning):
    """Base for non-fatal authoring-time problems."""


class UnknownMimeAlias(PerchWarning):  # noqa: N818
    """A mime alias is neither a known shorthand nor a full media type."""


class UnmatchedOverride(PerchWarning):  # noqa: N818
    """A ``ReturnOverride`` matched no response entry and was ignored."""
