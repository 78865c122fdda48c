"""``perch call`` — dispatch a single request and print the response.

Useful for poking at routes without starting a server::

    perch call myapp:app GET /users/42 -H "Authorization: Bearer t0k"
"""

import argparse
import json
import sys

from perch.cli._resolve import resolve_app


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            print(f"Error: malformed header {value!r}; expected NAME:VALUE", file=sys.stderr)
            raise SystemExit(2)
        headers[name.strip()] = content.strip()
    return headers


def run_call(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    headers = _parse_headers(args.header)
    body = None
    if args.json_body is not None:
        try:
            json.loads(args.json_body)
        except ValueError as exc:
            print(f"Error: --json is not valid JSON: {exc}", file=sys.stderr)
            raise SystemExit(2) from exc
        body = args.json_body.encode("utf-8")
        headers.setdefault("content-type", "application/json")

    response = app.request(args.method, args.uri, headers=headers, body=body)

    print(f"HTTP {response.status}")
    for name, value in response.headers:
        print(f"{name}: {value}")
    print()
    print(response.text)
    if response.status >= 400:
        raise SystemExit(1)
