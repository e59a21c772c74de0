"""Perch CLI — inspect an app's dispatch table and documentation.

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
        description="Perch — controller routing with guard chains and self-documenting endpoints.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered endpoints")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- perch docs -------------------------------------------------------
    docs_parser = subparsers.add_parser("docs", help="Print the OpenAPI document as JSON")
    docs_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    docs_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (0 for compact output)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from perch.cli._routes import run_routes

        run_routes(args)
    elif args.command == "docs":
        from perch.cli._docs import run_docs

        run_docs(args)
