"""Request pipeline — guard chain, handler, negotiation.

``invoke_endpoint`` runs one matched endpoint; ``handle_request`` adds the
dispatch-table lookup in front. Each call builds its own
``RequestContext`` and drops it when done; nothing is shared between
requests except the frozen table and endpoints.

Cancellation (for example a client disconnect) propagates: the running
guard or handler stops at its next suspension point and the request's
context is discarded.
"""

from collections.abc import Mapping
from types import MappingProxyType

import anyio.lowlevel

from perch._internal.invoke import invoke
from perch.config import AppConfig
from perch.context import RequestContext, context_var
from perch.controller import Endpoint
from perch.docs.shapes import OptionOf, ResultOf, Shape
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response
from perch.routing.table import DispatchTable
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.negotiation import negotiate


def _none_status(returns: Shape | None) -> int:
    """Status for a handler returning ``None``: 404 when the shape is optional."""
    match returns:
        case OptionOf():
            return 404
        case ResultOf(ok=OptionOf()):
            return 404
        case _:
            return 204


async def invoke_endpoint(
    endpoint: Endpoint,
    params: Mapping[str, str],
    request: Request,
    *,
    config: AppConfig,
) -> Response:
    """Run the guard chain, then the handler, and return the response.

    A guard failure becomes the response and the handler is never called.
    ``HTTPError`` raised anywhere maps to its status; any other exception
    is logged and becomes a 500.
    """
    ctx = RequestContext(
        request=request,
        params=MappingProxyType(dict(params)),
        endpoint=endpoint,
        owner=endpoint.owner,
    )
    token = context_var.set(ctx)
    try:
        failure = await endpoint.guards.run(endpoint.owner, ctx)
        if failure is not None:
            return failure

        await anyio.lowlevel.checkpoint()
        result = await invoke(endpoint.handler, ctx)
        return negotiate(
            result,
            none_status=_none_status(endpoint.returns),
            text_content_type=config.default_content_type,
        )
    except HTTPError as exc:
        return handle_http_error(exc, request, config.debug)
    except Exception as exc:
        return handle_internal_error(exc, request, config.debug)
    finally:
        context_var.reset(token)


async def handle_request(
    table: DispatchTable,
    request: Request,
    *,
    config: AppConfig,
) -> Response:
    """Look the request up and invoke the matched endpoint.

    Unmatched paths answer 404; matched paths without the method answer 405.
    """
    try:
        match = table.match(request.method, request.path)
    except HTTPError as exc:
        return handle_http_error(exc, request, config.debug)
    return await invoke_endpoint(match.endpoint, match.params, request, config=config)
