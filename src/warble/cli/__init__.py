"""Warble CLI — serve an app or inspect its module set.

Entry point registered as ``warble`` in ``pyproject.toml``::

    [project.scripts]
    warble = "warble.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``warble`` command."""
    parser = argparse.ArgumentParser(
        prog="warble",
        description="Warble — module discovery and dispatch for modular web apps.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (debug, info, warning, error)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- warble run -------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the server")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument("--workers", type=int, default=None, help="Worker count")
    run_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # -- warble modules ---------------------------------------------------
    modules_parser = subparsers.add_parser(
        "modules", help="List admitted and excluded modules"
    )
    modules_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from warble.cli._run import run_server

        run_server(args)
    elif args.command == "modules":
        from warble.cli._modules import list_modules

        list_modules(args)
