"""Request-scoped context.

Every invocation builds a fresh ``RequestContext`` holding the request, its
path parameters, the matched endpoint and the owning controller instance.
Guards and handlers receive it explicitly; ``get_context()`` reaches it from
deeper call sites through a ``ContextVar``.

Thread safety:
    ``ContextVar`` is task-local under asyncio and trio. A context belongs
    to exactly one request and is discarded with it.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch.http.request import Request

if TYPE_CHECKING:
    from perch.controller import Endpoint


@dataclass(slots=True)
class RequestContext:
    """Per-request state handed to guards and handlers."""

    request: Request
    params: Mapping[str, str]
    endpoint: Endpoint | None = None
    owner: Any = None
    state: dict[str, Any] = field(default_factory=dict)
    _cookies: Mapping[str, str] | None = field(default=None, repr=False)

    @property
    def cookies(self) -> Mapping[str, str]:
        """Parsed request cookies.

        Raises ``LookupError`` unless the endpoint was registered with
        ``requires_cookies=True``.
        """
        if self._cookies is None:
            msg = "Cookies were not parsed for this endpoint; register it with requires_cookies=True"
            raise LookupError(msg)
        return self._cookies

    @cookies.setter
    def cookies(self, value: Mapping[str, str]) -> None:
        self._cookies = value

    @property
    def cookies_parsed(self) -> bool:
        return self._cookies is not None

    def param(self, name: str) -> str:
        """A path parameter by name. Raises ``KeyError`` if absent."""
        return self.params[name]


context_var: ContextVar[RequestContext] = ContextVar("perch_context")
"""The context of the request being handled in the current task."""


def get_context() -> RequestContext:
    """Return the current request context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
