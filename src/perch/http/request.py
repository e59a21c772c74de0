"""Immutable HTTP request.

Frozen metadata with async body access. The transport builds it, either
from an ASGI scope (``from_asgi``) or directly (``Request.build``).
Cookies are deliberately not parsed here: endpoints that need them opt in
with ``requires_cookies=True``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl

from perch._internal.asgi import Receive, Scope
from perch.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.text()``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query_string: str = ""
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable body cache (the dict is mutable, the field is not)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def query(self) -> Mapping[str, str]:
        """Query parameters; the first value wins for repeated keys."""
        if "_query" not in self._cache:
            parsed: dict[str, str] = {}
            for key, value in parse_qsl(self.query_string, keep_blank_values=True):
                parsed.setdefault(key, value)
            self._cache["_query"] = MappingProxyType(parsed)
        return self._cache["_query"]

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    # -- Body --

    async def body(self) -> bytes:
        """The complete body. Read from the transport once, then cached."""
        cached = self._cache.get("_body")
        if cached is None:
            buffer = bytearray()
            async for chunk in self.stream():
                buffer += chunk
            cached = self._cache["_body"] = bytes(buffer)
        return cached

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield non-empty body chunks until the client signals the last one."""
        if self._receive is None:
            return
        more = True
        while more:
            message = await self._receive()
            more = message.get("more_body", False)
            if chunk := message.get("body", b""):
                yield chunk

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def text(self, encoding: str = "utf-8") -> str:
        return (await self.body()).decode(encoding)

    # -- Factories --

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Request:
        """Create a request without a transport (tests, in-process dispatch)."""
        path, _, query_string = path.partition("?")
        sent = False

        async def receive() -> dict[str, Any]:
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        return cls(
            method=method.upper(),
            path=path or "/",
            headers=Headers.from_mapping(headers),
            query_string=query_string,
            _receive=receive,
        )

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers.from_asgi(scope.get("headers", ())),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
