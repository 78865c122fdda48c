"""Perch CLI — route listing and one-off dispatch.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch — a request-dispatch core for JSON APIs.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List declared routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- perch call -------------------------------------------------------
    call_parser = subparsers.add_parser("call", help="Dispatch one request and print the response")
    call_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    call_parser.add_argument("method", help="HTTP method (GET, POST, ...)")
    call_parser.add_argument("uri", help="Request path, optionally with a query string")
    call_parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Request header (repeatable)",
    )
    call_parser.add_argument("--json", dest="json_body", default=None, help="JSON request body")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from perch.cli._routes import run_routes

        run_routes(args)
    elif args.command == "call":
        from perch.cli._call import run_call

        run_call(args)
