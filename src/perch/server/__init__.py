"""ASGI boundary — reads the request, runs the synchronous dispatch off the
event loop, and sends the response."""
