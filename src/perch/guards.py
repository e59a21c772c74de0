"""Guard chains — ordered pre-request checks.

A guard is any callable shaped like::

    async def authenticated(owner, ctx, data) -> None | Response: ...

``owner`` is the controller instance, ``ctx`` the ``RequestContext`` and
``data`` whatever the step's initializer returned (``None`` without one).
Sync and async callables both work.

A guard lets the request through by returning ``None``, ``True`` or
``PROCEED``. It stops the request by returning a ``Response``, returning
``False`` (403), or raising ``GuardFailure``. The first failure wins:
later guards and the handler never run.

Usage::

    from perch.guards import guard

    users.endpoint(
        "GET",
        "/<id>",
        show_user,
        guards=[guard(authenticated), guard(has_role, data=admin_role)],
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import anyio.lowlevel

from perch._internal.invoke import invoke
from perch._internal.types import Guard, Initializer
from perch.context import RequestContext
from perch.errors import GuardFailure
from perch.http.cookies import parse_cookies
from perch.http.response import Response

logger = logging.getLogger("perch.guards")


class _Proceed:
    __slots__ = ()

    def __repr__(self) -> str:
        return "PROCEED"


PROCEED = _Proceed()
"""Explicit "let the request through" result for guards."""


@dataclass(frozen=True, slots=True)
class GuardStep:
    """One guard with its optional per-request data initializer."""

    guard: Guard
    data: Initializer | None = None

    @property
    def name(self) -> str:
        return getattr(self.guard, "__name__", repr(self.guard))


def guard(func: Guard, *, data: Initializer | None = None) -> GuardStep:
    """Declare a guard step. *data* is called as ``data(owner)`` per request."""
    return GuardStep(guard=func, data=data)


def parse_request_cookies(owner: Any, ctx: RequestContext, data: Any) -> None:
    """Implicit first step for endpoints that require cookies. Never fails."""
    ctx.cookies = parse_cookies(ctx.request.headers.get("cookie", ""))


COOKIE_STEP = GuardStep(guard=parse_request_cookies)


def failure_response(exc: GuardFailure) -> Response:
    """The terminal response for a raised ``GuardFailure``."""
    if exc.response is not None:
        return exc.response
    response = Response(body=exc.detail, status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


@dataclass(frozen=True, slots=True)
class GuardChain:
    """An immutable, ordered sequence of guard steps."""

    steps: tuple[GuardStep, ...] = ()

    @classmethod
    def build(
        cls,
        guards: Iterable[GuardStep | Guard] = (),
        *,
        requires_cookies: bool = False,
    ) -> GuardChain:
        """Build a chain, prepending the cookie step when required.

        Bare callables are accepted as guards without data.
        """
        steps = [g if isinstance(g, GuardStep) else GuardStep(guard=g) for g in guards]
        if requires_cookies:
            steps.insert(0, COOKIE_STEP)
        return cls(tuple(steps))

    @property
    def requires_cookies(self) -> bool:
        return bool(self.steps) and self.steps[0] is COOKIE_STEP

    @property
    def names(self) -> tuple[str, ...]:
        """Names of the declared guards (the cookie step excluded)."""
        return tuple(s.name for s in self.steps if s is not COOKIE_STEP)

    async def run(self, owner: Any, ctx: RequestContext) -> Response | None:
        """Run every step in order.

        Returns ``None`` when the request may proceed to the handler, or
        the failure response of the first guard that rejected it.
        """
        for step in self.steps:
            # Cancellation point between steps, so sync guards cannot
            # run a cancelled request to completion.
            await anyio.lowlevel.checkpoint()
            data = await invoke(step.data, owner) if step.data is not None else None
            try:
                result = await invoke(step.guard, owner, ctx, data)
            except GuardFailure as exc:
                logger.debug("Guard %s rejected %s %s: %s", step.name, ctx.request.method, ctx.request.path, exc)
                return failure_response(exc)

            if result is None or result is True or result is PROCEED:
                continue
            if result is False:
                logger.debug("Guard %s rejected %s %s", step.name, ctx.request.method, ctx.request.path)
                return failure_response(GuardFailure())
            if isinstance(result, Response):
                logger.debug(
                    "Guard %s rejected %s %s with %d",
                    step.name,
                    ctx.request.method,
                    ctx.request.path,
                    result.status,
                )
                return result

            msg = (
                f"Guard {step.name} returned {type(result).__name__}; expected "
                "None, True, PROCEED, False or a Response"
            )
            raise TypeError(msg)
        return None

    def __len__(self) -> int:
        return len(self.steps)
