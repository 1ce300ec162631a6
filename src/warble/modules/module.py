"""Module — one pluggable unit of routing behavior.

A module lives in its own directory::

    modules/
      shop/
        manifest.json   # {"name": "shop", "domain": "/shop", "dependencies": ["users"]}
        actions.py      # actions = ActionTable()

Construction reads only the manifest. The handler code in ``actions.py``
is imported the first time the module executes.
"""

from __future__ import annotations

import importlib.util
import inspect
import json as json_module
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from warble._internal.invoke import invoke
from warble.context import filters_var
from warble.errors import ConfigurationError, ModuleLoadError
from warble.filters import Filter
from warble.http.request import Request
from warble.http.response import Response
from warble.injections import InjectionRegistry
from warble.modules.actions import ActionTable
from warble.routing.route import Action
from warble.routing.router import ActionRouter
from warble.routing.url import normalize_url, strip_domain
from warble.server.negotiation import negotiate

logger = logging.getLogger("warble.modules")

MANIFEST_FILE = "manifest.json"
ACTIONS_FILE = "actions.py"


class Module:
    """A discovered module: identity, routing domain, and dependencies.

    Immutable after construction except for the action router, which is
    built once (under a lock) on the first ``exec``.
    """

    __slots__ = (
        "_filters",
        "_injections",
        "_json_indent",
        "_load_lock",
        "_manifest_actions",
        "_router",
        "_table",
        "dependencies",
        "domain",
        "name",
        "namespace",
        "path",
        "version",
    )

    def __init__(
        self,
        name: str,
        *,
        namespace: str | None = None,
        domain: str | None = None,
        dependencies: Iterable[str] = (),
        version: str = "0.0.0",
        path: Path | None = None,
        actions: ActionTable | None = None,
        manifest_actions: Iterable[Mapping[str, Any]] = (),
        injections: InjectionRegistry | None = None,
        json_indent: int | None = None,
    ) -> None:
        self.name = name
        self.namespace = namespace or name
        self.domain = normalize_url(domain if domain is not None else f"/{self.namespace}")
        self.dependencies: tuple[str, ...] = tuple(dependencies)
        self.version = version
        self.path = path
        self._table = actions
        self._manifest_actions: tuple[Mapping[str, Any], ...] = tuple(manifest_actions)
        self._injections = injections
        self._json_indent = json_indent
        self._load_lock = threading.Lock()
        self._router: ActionRouter | None = None
        self._filters: tuple[Filter, ...] = ()

    @classmethod
    def from_directory(
        cls,
        path: str | Path,
        *,
        injections: InjectionRegistry | None = None,
        json_indent: int | None = None,
    ) -> Module:
        """Build a Module from a directory's ``manifest.json``.

        Every manifest key is optional. A missing manifest is treated as
        ``{}``, so the directory name becomes the module name.

        Raises:
            ModuleLoadError: If the manifest is unreadable, is not a JSON
                object, or has fields of the wrong type.
        """
        directory = Path(path)
        manifest = _read_manifest(directory)

        name = manifest.get("name", directory.name)
        namespace = manifest.get("namespace", name)
        domain = manifest.get("domain", f"/{namespace}")
        dependencies = manifest.get("dependencies", [])
        version = manifest.get("version", "0.0.0")
        manifest_actions = manifest.get("actions", [])

        for field_name, value in (
            ("name", name),
            ("namespace", namespace),
            ("domain", domain),
            ("version", version),
        ):
            if not isinstance(value, str) or (field_name == "name" and not value):
                raise ModuleLoadError(directory, f"{field_name!r} must be a non-empty string")
        if not isinstance(dependencies, list) or not all(isinstance(d, str) for d in dependencies):
            raise ModuleLoadError(directory, "'dependencies' must be a list of module names")
        if not isinstance(manifest_actions, list) or not all(
            isinstance(a, dict) for a in manifest_actions
        ):
            raise ModuleLoadError(directory, "'actions' must be a list of objects")

        return cls(
            name,
            namespace=namespace,
            domain=domain,
            dependencies=dependencies,
            version=version,
            path=directory,
            manifest_actions=manifest_actions,
            injections=injections,
            json_indent=json_indent,
        )

    # -- Execution --

    def matches(self, url: str) -> bool:
        """Whether this module's domain prefixes the normalized *url*."""
        return url.lower().startswith(self.domain.lower())

    async def exec(self, request: Request) -> Response | None:
        """Run the action addressed by *request*, if this module has one.

        Returns ``None`` when no action matches or a filter rejects the
        request. Filter rejections are recorded on the current
        ``FilterManager`` so the dispatcher can report them.
        """
        router = self._ensure_loaded()

        url = normalize_url(request.path)
        rest = strip_domain(url, self.domain) if self.matches(url) else url
        match = router.match(request.method, rest)
        if match is None:
            return None

        request = request.with_path_params(match.path_params)

        for flt in self._filters:
            failure = await flt.run(request)
            if failure is not None:
                logger.info(
                    "%s %s rejected by filter %s in module %s",
                    request.method,
                    request.path,
                    failure.name,
                    self.name,
                )
                manager = filters_var.get()
                if manager is not None:
                    manager.record(failure)
                return None

        handler = match.action.handler
        kwargs = _build_action_kwargs(handler, request, match.path_params)
        result = await invoke(handler, **kwargs)
        return negotiate(result, json_indent=self._json_indent)

    @property
    def actions(self) -> tuple[Action, ...]:
        """All actions this module exposes (loads the module if needed)."""
        return self._ensure_loaded().actions

    @property
    def loaded(self) -> bool:
        return self._router is not None

    # -- Loading --

    def _ensure_loaded(self) -> ActionRouter:
        """Build the action router once, thread-safely."""
        router = self._router
        if router is not None:
            return router
        with self._load_lock:
            if self._router is None:
                self._load()
            assert self._router is not None
            return self._router

    def _load(self) -> None:
        """Import handler code and compile the action router.

        MUST only be called while holding _load_lock.
        """
        table = self._table
        if table is None:
            table = self._import_actions()

        router = table.compile()
        for entry in self._manifest_actions:
            router.add(self._injected_action(entry))

        self._filters = table.filters
        self._router = router
        logger.debug("Loaded module %s: %d actions", self.name, len(router.actions))

    def _import_actions(self) -> ActionTable:
        if self.path is None:
            return ActionTable()
        actions_file = self.path / ACTIONS_FILE
        if not actions_file.is_file():
            return ActionTable()

        spec = importlib.util.spec_from_file_location(f"_warble_module_{self.name}", actions_file)
        if spec is None or spec.loader is None:
            raise ModuleLoadError(actions_file, "not importable")
        py_module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(py_module)

        table = getattr(py_module, "actions", None)
        if not isinstance(table, ActionTable):
            msg = f"{actions_file} must define 'actions = ActionTable()'"
            raise ConfigurationError(msg)
        return table

    def _injected_action(self, entry: Mapping[str, Any]) -> Action:
        injection = entry.get("injection")
        if not isinstance(injection, str):
            msg = f"Module {self.name!r}: manifest action {dict(entry)!r} has no 'injection'"
            raise ConfigurationError(msg)
        if self._injections is None:
            msg = f"Module {self.name!r} uses injection {injection!r} but no registry is configured"
            raise ConfigurationError(msg)

        factory = self._injections.get(injection)
        handler = factory(self, **entry.get("options", {}))
        methods = entry.get("methods") or [entry.get("method", "GET")]
        return Action(
            path=entry.get("path", "/"),
            handler=handler,
            methods=frozenset(m.upper() for m in methods),
            name=entry.get("name", injection),
        )

    def __repr__(self) -> str:
        return f"<Module {self.name} domain={self.domain!r} deps={list(self.dependencies)}>"


def _read_manifest(directory: Path) -> dict[str, Any]:
    manifest_file = directory / MANIFEST_FILE
    if not manifest_file.exists():
        return {}
    try:
        data = json_module.loads(manifest_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ModuleLoadError(directory, f"invalid {MANIFEST_FILE}: {exc}") from exc
    if not isinstance(data, dict):
        raise ModuleLoadError(directory, f"{MANIFEST_FILE} must contain a JSON object")
    return data


def _build_action_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: Mapping[str, str],
) -> dict[str, Any]:
    """Inspect the handler signature and build kwargs.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Path parameters (by name, converted to the annotated type)
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in path_params:
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value

    return kwargs
