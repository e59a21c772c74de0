"""Shared type aliases used across perch modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Endpoint handler — receives the RequestContext, returns a response value
Handler: TypeAlias = Callable[..., Any]

# Guard — (owner, ctx, data) -> None | True | PROCEED | False | Response
Guard: TypeAlias = Callable[..., Any]

# Guard data initializer — (owner) -> data handed to its guard
Initializer: TypeAlias = Callable[..., Any]
