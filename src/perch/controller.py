"""Controllers and endpoints — the registration side.

A ``ControllerBuilder`` collects endpoint declarations during setup.
``build()`` turns it into a frozen ``Controller`` whose ``Endpoint``\\ s carry
absolute patterns, guard chains and merged response specs. Builders seal
themselves once built; nothing is added afterwards.

Usage::

    users = app.register_controller(UserController(), prefix="api", version=1)

    @users.get("/<id>", returns="Result<Option<Json<User>>, ApiError>")
    async def show(ctx):
        ...

    users.endpoint("DELETE", "/<id>", "destroy", guards=[guard(is_admin)])
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from perch._internal.types import Guard, Handler
from perch.docs.mime import DEFAULT_REGISTRY, MimeRegistry
from perch.docs.responses import Declaration, ResponseSpec
from perch.docs.shapes import Shape, as_shape
from perch.errors import ConfigurationError
from perch.guards import GuardChain, GuardStep
from perch.routing.compose import base_segment, compose
from perch.routing.pattern import Pattern, parse_path

ANY = "ANY"
"""Method wildcard: the endpoint accepts every HTTP method."""


def normalize_methods(methods: str | Iterable[str]) -> frozenset[str]:
    """Upper-case a method or method list. ``ANY`` absorbs everything else."""
    if isinstance(methods, str):
        methods = [methods]
    result = frozenset(m.strip().upper() for m in methods)
    if not result or "" in result:
        msg = f"An endpoint needs at least one HTTP method, got {methods!r}"
        raise ConfigurationError(msg)
    if ANY in result:
        return frozenset({ANY})
    return result


def controller_identifier(owner: Any) -> str:
    """The identifier a controller defaults its base segment from."""
    if owner is None:
        return ""
    if isinstance(owner, str):
        return owner
    if isinstance(owner, type):
        return owner.__name__
    return type(owner).__name__


def _summary(handler: Handler) -> str:
    doc = inspect.getdoc(handler) or ""
    return doc.strip().splitlines()[0] if doc.strip() else ""


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A compiled endpoint. Immutable and shared across requests."""

    methods: frozenset[str]
    pattern: Pattern
    relative: Pattern
    handler: Handler
    guards: GuardChain
    responses: ResponseSpec
    requires_cookies: bool = False
    returns: Shape | None = None
    controller: str = ""
    owner: Any = field(default=None, compare=False, repr=False)
    name: str = ""
    summary: str = ""

    @property
    def accepts_any(self) -> bool:
        return ANY in self.methods

    def allows(self, method: str) -> bool:
        return self.accepts_any or method.upper() in self.methods

    @property
    def label(self) -> str:
        return f"{'|'.join(sorted(self.methods))} {self.pattern}"


@dataclass(slots=True)
class EndpointHandle:
    """A declared endpoint, mutable until its controller is built."""

    methods: frozenset[str]
    path: str
    func: Handler | str | None = None
    guards: tuple[GuardStep | Guard, ...] = ()
    requires_cookies: bool = False
    returns: Shape | str | None = None
    responses: tuple[Declaration, ...] = ()
    name: str | None = None

    def handler(self, func: Handler) -> Handler:
        """Attach the handler later, decorator style."""
        if self.func is not None:
            msg = f"Endpoint {sorted(self.methods)} {self.path!r} already has a handler"
            raise ConfigurationError(msg)
        self.func = func
        return func


@dataclass(frozen=True, slots=True)
class Controller:
    """A frozen controller: scope plus its compiled endpoints."""

    identifier: str
    owner: Any
    prefix: str | None
    version: int | None
    name: str | None
    endpoints: tuple[Endpoint, ...]

    @property
    def base(self) -> str:
        return base_segment(self.identifier, self.name)


class ControllerBuilder:
    """Collects endpoints for one controller during setup."""

    __slots__ = ("_built", "_handles", "identifier", "name", "owner", "prefix", "version")

    def __init__(
        self,
        owner: Any = None,
        *,
        prefix: str | None = None,
        version: int | None = None,
        name: str | None = None,
    ) -> None:
        if version is not None and (isinstance(version, bool) or not isinstance(version, int) or version < 0):
            msg = f"Controller version must be a non-negative integer, got {version!r}"
            raise ConfigurationError(msg)
        self.owner = None if isinstance(owner, str) else owner
        self.identifier = controller_identifier(owner)
        self.prefix = prefix
        self.version = version
        self.name = name
        self._handles: list[EndpointHandle] = []
        self._built: Controller | None = None

    def _check_not_built(self) -> None:
        if self._built is not None:
            msg = f"Controller {self.identifier or self.name!r} is already built; register endpoints before freeze."
            raise ConfigurationError(msg)

    # -- Endpoint registration --

    def endpoint(
        self,
        methods: str | Iterable[str],
        path: str,
        handler: Handler | str | None = None,
        *,
        guards: Sequence[GuardStep | Guard] = (),
        requires_cookies: bool = False,
        returns: Shape | str | None = None,
        responses: Sequence[Declaration] = (),
        name: str | None = None,
    ) -> EndpointHandle:
        """Declare an endpoint.

        Args:
            methods: One verb, several, or ``"ANY"``. Custom verbs are allowed.
            path: Path relative to the controller, ``<param>`` for parameters.
            handler: Callable receiving the ``RequestContext``, or the name of
                a method on the controller instance. May be attached later
                via ``EndpointHandle.handler``.
            guards: Guard steps (or bare guard callables), run in order.
            requires_cookies: Parse the ``Cookie`` header before the guards.
            returns: Declared return shape used to infer default responses.
            responses: ``Return`` and ``ReturnOverride`` declarations.
            name: Operation name for documentation; defaults to the handler name.
        """
        self._check_not_built()
        handle = EndpointHandle(
            methods=normalize_methods(methods),
            path=path,
            func=handler,
            guards=tuple(guards),
            requires_cookies=requires_cookies,
            returns=returns,
            responses=tuple(responses),
            name=name,
        )
        self._handles.append(handle)
        return handle

    def route(
        self,
        path: str,
        *,
        methods: str | Iterable[str] = ("GET",),
        guards: Sequence[GuardStep | Guard] = (),
        requires_cookies: bool = False,
        returns: Shape | str | None = None,
        responses: Sequence[Declaration] = (),
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a handler via decorator."""
        handle = self.endpoint(
            methods,
            path,
            guards=guards,
            requires_cookies=requires_cookies,
            returns=returns,
            responses=responses,
            name=name,
        )
        return handle.handler

    def get(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods="GET", **kwargs)

    def post(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods="POST", **kwargs)

    def put(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods="PUT", **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods="PATCH", **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods="DELETE", **kwargs)

    def any(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=ANY, **kwargs)

    # -- Compilation --

    def _resolve_handler(self, handle: EndpointHandle) -> Handler:
        func = handle.func
        if func is None:
            msg = f"Endpoint {sorted(handle.methods)} {handle.path!r} on {self.identifier!r} has no handler"
            raise ConfigurationError(msg)
        if isinstance(func, str):
            bound = getattr(self.owner, func, None)
            if not callable(bound):
                msg = f"Controller {self.identifier!r} has no callable {func!r}"
                raise ConfigurationError(msg)
            return bound
        return func

    def build(
        self,
        *,
        registry: MimeRegistry = DEFAULT_REGISTRY,
        warn_unmatched: bool = True,
    ) -> Controller:
        """Compile every declared endpoint into a frozen ``Controller``.

        Idempotent: later calls return the first result. Raises
        ``MalformedPath`` for bad templates and ``ConfigurationError`` for
        endpoints without a handler.
        """
        if self._built is not None:
            return self._built

        endpoints: list[Endpoint] = []
        for handle in self._handles:
            handler = self._resolve_handler(handle)
            relative = parse_path(handle.path)
            pattern = compose(self.prefix, self.version, self.name, self.identifier, handle.path)
            label = f"{'|'.join(sorted(handle.methods))} {pattern}"
            returns = as_shape(handle.returns, registry.wrapper_names) if handle.returns is not None else None
            endpoints.append(
                Endpoint(
                    methods=handle.methods,
                    pattern=pattern,
                    relative=relative,
                    handler=handler,
                    guards=GuardChain.build(handle.guards, requires_cookies=handle.requires_cookies),
                    responses=ResponseSpec.build(
                        returns,
                        handle.responses,
                        registry=registry,
                        warn_unmatched=warn_unmatched,
                        label=label,
                    ),
                    requires_cookies=handle.requires_cookies,
                    returns=returns,
                    controller=self.identifier,
                    owner=self.owner,
                    name=handle.name or getattr(handler, "__name__", ""),
                    summary=_summary(handler),
                )
            )

        self._built = Controller(
            identifier=self.identifier,
            owner=self.owner,
            prefix=self.prefix,
            version=self.version,
            name=self.name,
            endpoints=tuple(endpoints),
        )
        return self._built

    def __len__(self) -> int:
        return len(self._handles)
