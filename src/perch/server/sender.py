"""Response to ASGI messages."""

from perch._internal.asgi import Message, Send
from perch.http.response import Response

# Statuses that never carry a message body
_BODYLESS = frozenset({204, 304})


def response_messages(response: Response) -> tuple[Message, Message]:
    """The ``http.response.start`` and ``http.response.body`` messages for *response*."""
    status = response.status
    body = b"" if status < 200 or status in _BODYLESS else response.body_bytes
    headers = [(b"content-type", response.content_type.encode("latin-1"))]
    headers.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
    )
    headers.append((b"content-length", str(len(body)).encode("latin-1")))
    start: Message = {"type": "http.response.start", "status": status, "headers": headers}
    return start, {"type": "http.response.body", "body": body}


async def send_response(response: Response, send: Send) -> None:
    for message in response_messages(response):
        await send(message)
