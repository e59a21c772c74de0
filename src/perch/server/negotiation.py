"""Content negotiation — maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from typing import Any

from perch.errors import ConfigurationError
from perch.http.response import Response


def negotiate(
    value: Any,
    *,
    none_status: int = 204,
    text_content_type: str = "text/plain; charset=utf-8",
) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``Response``             -> pass through
    2. ``None``                 -> empty body with *none_status*
    3. ``str``                  -> 200, *text_content_type*
    4. ``bytes``                -> 200, application/octet-stream
    5. ``dict`` / ``list``      -> 200, application/json
    6. ``(value, int)``         -> negotiate value, override status
    7. ``(value, int, dict)``   -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case None:
            return Response(body="", status=none_status)
        case str():
            return Response(body=value, content_type=text_content_type)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json(value)
        case (body, int() as status):
            return negotiate(body, text_content_type=text_content_type).with_status(status)
        case (body, int() as status, dict() as headers):
            response = negotiate(body, text_content_type=text_content_type)
            return response.with_status(status).with_headers(headers)
        case _:
            msg = f"Cannot convert {type(value).__name__} to a response"
            raise ConfigurationError(msg)
