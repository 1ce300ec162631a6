"""Warble — the dispatch core of a modular web framework.

Discovers pluggable modules on disk, admits those whose dependencies are
installed, and routes each request to the first module whose domain
prefixes the URL and that produces a response.

Basic usage::

    from warble import App, AppConfig

    app = App(AppConfig(modules_path="modules"))
    app.run()

A module is a directory with a ``manifest.json`` and an ``actions.py``::

    # modules/shop/actions.py
    from warble import ActionTable

    actions = ActionTable()

    @actions.get("/items/{id:int}")
    def item(id: int):
        return {"id": id}
"""

__version__ = "0.1.0"
__all__ = [
    "ActionTable",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Dispatcher",
    "FilterFailure",
    "FilterManager",
    "HTTPError",
    "Module",
    "ModuleLoadError",
    "ModuleStack",
    "NotFound",
    "Request",
    "Response",
    "WarbleError",
    "current_module",
    "get_request",
    "module_stack_path",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warble`` fast while providing a clean top-level API.
    """
    if name == "App":
        from warble.app import App

        return App

    if name == "AppConfig":
        from warble.config import AppConfig

        return AppConfig

    if name == "Request":
        from warble.http.request import Request

        return Request

    if name == "Response":
        from warble.http.response import Response

        return Response

    if name in ("ActionTable", "Module", "ModuleStack"):
        from warble import modules as _modules

        return getattr(_modules, name)

    if name == "Dispatcher":
        from warble.routing.dispatcher import Dispatcher

        return Dispatcher

    if name == "FilterManager":
        from warble.filters import FilterManager

        return FilterManager

    if name in ("current_module", "get_request", "module_stack_path"):
        from warble import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "FilterFailure",
        "HTTPError",
        "ModuleLoadError",
        "NotFound",
        "WarbleError",
    ):
        from warble import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
