"""ASGI response sending — one ``http.response.start`` plus one body message."""

from perch._internal.asgi import Send
from perch.http.response import Response

# Statuses that never carry a message body
_NO_BODY = frozenset({204, 304})


def _encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    pairs = [
        ("content-type", response.content_type),
        *((name.lower(), value) for name, value in response.headers),
        ("content-length", str(content_length)),
    ]
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send) -> None:
    """Send a perch Response through the ASGI ``send`` callable."""
    status = response.status
    body = b"" if status < 200 or status in _NO_BODY else response.body_bytes
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": _encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": body})
