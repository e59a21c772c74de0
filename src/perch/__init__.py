"""Perch — controller-oriented routing with guard chains and self-documenting endpoints.

Controllers group endpoints under a shared prefix, version and base
segment. Each endpoint carries an ordered guard chain and declarative
response documentation that is merged into an API document when the app
freezes.

Basic usage::

    from perch import App, Return, ReturnOverride, guard

    app = App()
    users = app.register_controller(UserController(), prefix="api", version=1)

    @users.get(
        "/<id>",
        guards=[guard(authenticated)],
        returns="Result<Option<Json<User>>, ApiError>",
        responses=[ReturnOverride("ApiError", mime="json")],
    )
    async def show(ctx):
        ...

    app.freeze()
    app.document.to_openapi()
"""

__version__ = "0.1.0"
__all__ = [
    "ANY",
    "PROCEED",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Controller",
    "ControllerBuilder",
    "DispatchTable",
    "Document",
    "Endpoint",
    "GuardFailure",
    "HTTPError",
    "MalformedPath",
    "MethodNotAllowed",
    "MimeRegistry",
    "NotFound",
    "PerchError",
    "Request",
    "RequestContext",
    "Response",
    "Return",
    "ReturnOverride",
    "RouteConflict",
    "get_context",
    "guard",
    "parse_path",
    "parse_shape",
    "synthesize_document",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name in ("ANY", "Controller", "ControllerBuilder", "Endpoint"):
        from perch import controller as _controller

        return getattr(_controller, name)

    if name in ("PROCEED", "guard"):
        from perch import guards as _guards

        return getattr(_guards, name)

    if name in ("RequestContext", "get_context"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name in ("Return", "ReturnOverride"):
        from perch.docs import responses as _responses

        return getattr(_responses, name)

    if name in ("Document", "synthesize_document"):
        from perch.docs import document as _document

        return getattr(_document, name)

    if name == "MimeRegistry":
        from perch.docs.mime import MimeRegistry

        return MimeRegistry

    if name == "parse_shape":
        from perch.docs.shapes import parse_shape

        return parse_shape

    if name == "parse_path":
        from perch.routing.pattern import parse_path

        return parse_path

    if name == "DispatchTable":
        from perch.routing.table import DispatchTable

        return DispatchTable

    if name in (
        "ConfigurationError",
        "GuardFailure",
        "HTTPError",
        "MalformedPath",
        "MethodNotAllowed",
        "NotFound",
        "PerchError",
        "RouteConflict",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
