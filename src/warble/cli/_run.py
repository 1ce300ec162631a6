"""``warble run`` — start the server for an app import string."""

import argparse
import sys

from warble.cli._logging import configure_logging
from warble.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it; CLI flags override app config."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(args.log_level or app.config.log_level)

    from warble.server.dev import run_dev_server

    app._ensure_frozen()
    run_dev_server(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        workers=args.workers if args.workers is not None else app.config.workers,
        reload=args.reload or app.config.debug,
        app_path=args.app,
    )
