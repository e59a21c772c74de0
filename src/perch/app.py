"""Perch application class.

Mutable during setup (controller and endpoint registration).
Frozen on ``freeze()``, on ASGI lifespan startup, or on the first request.
"""

import logging
import threading
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch.config import AppConfig
from perch.controller import Controller, ControllerBuilder, Endpoint
from perch.docs.document import Document, synthesize_document
from perch.docs.mime import DEFAULT_REGISTRY, MimeRegistry
from perch.errors import ConfigurationError
from perch.http.request import Request
from perch.http.response import Response
from perch.routing.table import DispatchTable, RouteMatch
from perch.server.handler import handle_request, invoke_endpoint
from perch.server.sender import send_response

logger = logging.getLogger("perch.server")


class App:
    """The perch application.

    Usage::

        app = App(AppConfig(title="Inventory"))
        items = app.register_controller(ItemController(), prefix="api", version=1)

        @items.get("/<id>", returns="Option<Json<Item>>")
        async def show(ctx):
            ...

        app.freeze()
        app.document.to_openapi()

    Thread safety:
        The setup phase is single-threaded. The freeze transition uses a
        Lock + double-check so exactly one caller builds the dispatch table
        and the document. Afterwards both are read-only and shared by every
        request without locking. A failed freeze is remembered: the app
        re-raises the original error instead of serving.
    """

    __slots__ = (
        "_builders",
        "_controllers",
        "_document",
        "_freeze_error",
        "_freeze_lock",
        "_frozen",
        "_table",
        "config",
        "registry",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        registry: MimeRegistry | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.registry: MimeRegistry = registry or DEFAULT_REGISTRY
        self._builders: list[ControllerBuilder] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._freeze_error: ConfigurationError | None = None

        # Compiled state — set during _freeze()
        self._controllers: tuple[Controller, ...] = ()
        self._table: DispatchTable | None = None
        self._document: Document | None = None

    # -- Registration --

    def register_controller(
        self,
        owner: Any = None,
        *,
        prefix: str | None = None,
        version: int | None = None,
        name: str | None = None,
    ) -> ControllerBuilder:
        """Start declaring a controller.

        Args:
            owner: The controller instance handed to guards and initializers,
                a class, or just an identifier string. Its (class) name sets
                the default base segment: ``UserController`` mounts at ``/user``.
            prefix: Path prefix placed before everything else.
            version: Inserts a ``/v{version}`` segment after the prefix.
            name: Base segment replacing the owner-derived one. ``""`` mounts
                the controller's endpoints directly under prefix/version.
        """
        self._check_not_frozen()
        builder = ControllerBuilder(owner, prefix=prefix, version=version, name=name)
        self._builders.append(builder)
        return builder

    # -- Freeze --

    def freeze(self) -> None:
        """Build the dispatch table and the documentation. Idempotent.

        Raises ``MalformedPath``, ``RouteConflict`` or another
        ``ConfigurationError`` if the registrations are invalid.
        """
        self._ensure_frozen()

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            if self._freeze_error is not None:
                raise self._freeze_error
            try:
                self._freeze()
            except ConfigurationError as exc:
                logger.error("Startup aborted: %s", exc)
                self._freeze_error = exc
                raise

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        controllers = tuple(
            builder.build(
                registry=self.registry,
                warn_unmatched=self.config.warn_unmatched_overrides,
            )
            for builder in self._builders
        )
        table = DispatchTable.build(controllers)
        document = synthesize_document(controllers, self.config)

        self._controllers = controllers
        self._table = table
        self._document = document
        self._frozen = True
        logger.info(
            "Frozen %d controllers, %d endpoints, %d documented operations",
            len(controllers),
            len(table),
            len(document.operations),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen or self._freeze_error is not None:
            msg = "Cannot register controllers after the app has been frozen."
            raise ConfigurationError(msg)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def controllers(self) -> tuple[Controller, ...]:
        self._ensure_frozen()
        return self._controllers

    @property
    def table(self) -> DispatchTable:
        self._ensure_frozen()
        assert self._table is not None
        return self._table

    @property
    def document(self) -> Document:
        self._ensure_frozen()
        assert self._document is not None
        return self._document

    # -- Dispatch --

    def lookup(self, method: str, path: str) -> RouteMatch | None:
        """Find the endpoint and path parameters for a request."""
        return self.table.lookup(method, path)

    async def invoke(
        self,
        endpoint: Endpoint,
        params: dict[str, str],
        request: Request,
    ) -> Response:
        """Run an endpoint's guard chain, then its handler."""
        self._ensure_frozen()
        return await invoke_endpoint(endpoint, params, request, config=self.config)

    async def handle(self, request: Request) -> Response:
        """Look up and invoke; 404 and 405 for unmatched requests."""
        return await handle_request(self.table, request, config=self.config)

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point for ``http`` and ``lifespan`` scopes."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        response = await self.handle(request)
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Freeze at startup so a bad registration stops the server from serving."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except ConfigurationError as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
