"""Error handling for the request pipeline.

Maps HTTPError exceptions and unexpected failures to Response objects.
Nothing raised by a guard or handler escapes: every request ends with a
well-formed response.
"""

import logging

from perch.errors import GuardFailure, HTTPError
from perch.guards import failure_response
from perch.http.request import Request
from perch.http.response import Response

logger = logging.getLogger("perch.server")


def handle_http_error(exc: HTTPError, request: Request, debug: bool) -> Response:
    """Map an HTTPError to its status response."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)

    if isinstance(exc, GuardFailure):
        return failure_response(exc)

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    response = Response(body=detail, status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, debug: bool) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    if debug:
        return Response(body=f"Internal Server Error: {type(exc).__name__}: {exc}", status=500)
    return Response(body="Internal Server Error", status=500)
