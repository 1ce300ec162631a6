"""Development server.

Starts a pounce ASGI server with the live warble App object.
"""

from __future__ import annotations


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    workers: int = 1,
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Start a pounce server with the given warble App.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but warble has a live ``App`` object. We use ``pounce.Server``
    directly with the ASGI callable.

    Args:
        app: ASGI callable (warble App instance).
        host: Bind host address.
        port: Bind port number.
        workers: Worker count.
        reload: Enable auto-reload on file changes.
        app_path: Optional ``"module:attribute"`` import string so
            pounce can reimport the app on each reload cycle.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        reload=reload,
    )
    server = Server(config, app, app_path=app_path)
    server.run()
