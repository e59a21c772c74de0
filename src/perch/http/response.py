"""Immutable HTTP response.

Handlers and guards return a ``Response`` (or a plain value that the
negotiation step turns into one). Adjustments go through the ``with_*``
methods, each of which returns a copy.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Response:
    """Status, content type, headers and a str or bytes body.

    Usage::

        Response("created", status=201).with_header("Location", "/items/7")
        Response.json({"error": "expired"}, status=401)
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def json(cls, data: Any, *, status: int = 200) -> Response:
        return cls(
            body=json_module.dumps(data, default=str),
            status=status,
            content_type="application/json",
        )

    # -- Copies with one field changed --

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Append a header; existing headers of the same name are kept."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    # -- Reading --

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of a header, case-insensitive."""
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), default)

    def json_body(self) -> Any:
        return json_module.loads(self.body_bytes)
