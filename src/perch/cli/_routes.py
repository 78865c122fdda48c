"""``perch routes`` — list declared routes.

Runs the app's route declarations once and prints a table of METHOD,
PATH, MIDDLEWARE, and HANDLER in registration order.
"""

import argparse
import sys

from perch.cli._resolve import resolve_app
from perch.errors import PerchError


def run_routes(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        routes = app.check().routes
    except PerchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not routes:
        print("No routes registered.")
        return

    rows = [
        (route.method.value, route.path, ", ".join(route.middleware) or "-", route.handler_name)
        for route in routes
    ]

    headers = ("METHOD", "PATH", "MIDDLEWARE", "HANDLER")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers[:3])]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format(*headers))
    sep_len = sum(widths) + 6 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
