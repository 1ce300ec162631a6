"""Warble application class.

Mutable during setup (injections, code-registered modules, hooks).
Frozen at runtime when app.run() or __call__() is first invoked: modules
are discovered, their dependencies resolved, and the dispatcher built.
"""

import logging
import threading
from collections.abc import Callable

from warble._internal.asgi import Receive, Scope, Send
from warble._internal.invoke import invoke
from warble._internal.types import Hook, InjectionFactory
from warble.config import AppConfig
from warble.injections import InjectionRegistry
from warble.modules.discovery import discover_modules
from warble.modules.module import Module
from warble.modules.resolver import ResolutionReport, resolve_with_report
from warble.routing.dispatcher import Dispatcher
from warble.server.handler import handle_request
from warble.stats import Instrumentation, StatsRecorder

logger = logging.getLogger("warble.server")


class App:
    """The warble application.

    Mutable during setup (injections, modules, hooks).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        Freezing and reloading take ``_freeze_lock`` so exactly one
        thread builds the module set; the dispatcher swaps the result
        in with a single assignment.
    """

    __slots__ = (
        "_code_modules",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_injections",
        "_report",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "stats",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        stats: Instrumentation | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.stats: Instrumentation = stats if stats is not None else StatsRecorder()
        self._injections = InjectionRegistry()
        self._code_modules: list[Module] = []
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Set by _freeze()
        self._dispatcher: Dispatcher | None = None
        self._report: ResolutionReport | None = None

    # -- Setup --

    def injection(self, name: str) -> Callable[[InjectionFactory], InjectionFactory]:
        """Register a named action factory that manifests can reference.

        Usage::

            @app.injection("crud.read")
            def crud_read(module, model):
                def read(id: str):
                    return store.get(model, id)
                return read
        """

        def decorator(func: InjectionFactory) -> InjectionFactory:
            self._check_not_frozen()
            self._injections.register(name, func)
            return func

        return decorator

    def add_module(self, module: Module) -> None:
        """Register a module built in code.

        Code-registered modules are placed before discovered ones, and a
        discovered module with the same name replaces them.
        """
        self._check_not_frozen()
        self._code_modules.append(module)

    def on_startup(self, func: Hook) -> Hook:
        """Register an async or sync startup hook via decorator."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def dispatcher(self) -> Dispatcher:
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    @property
    def resolution(self) -> ResolutionReport:
        """Admitted and excluded modules from the last (re)load."""
        self._ensure_frozen()
        assert self._report is not None
        return self._report

    def installed_modules(self) -> list[Module]:
        return self.dispatcher.installed_modules()

    def get_module_by_namespace(self, namespace: str) -> Module | None:
        return self.dispatcher.get_module_by_namespace(namespace)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce."""
        self._ensure_frozen()
        from warble.server.dev import run_dev_server

        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            workers=self.config.workers,
            reload=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(scope, receive, send, dispatcher=self.dispatcher)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs registered startup/shutdown hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            await invoke(hook)

    # -- Module loading --

    def reload_modules(self) -> ResolutionReport:
        """Rediscover and re-resolve modules, then swap them in atomically.

        In-flight dispatches finish against the module set they started
        with.
        """
        self._ensure_frozen()
        with self._freeze_lock:
            report = self._load_modules()
            assert self._dispatcher is not None
            self._dispatcher.replace_modules(report.modules)
            self._report = report
        return report

    def _load_modules(self) -> ResolutionReport:
        discovered: dict[str, Module] = {m.name: m for m in self._code_modules}
        discovered.update(
            discover_modules(
                *self.config.module_dirs,
                injections=self._injections,
                json_indent=self.config.json_indent,
            )
        )
        report = resolve_with_report(discovered)
        if report.excluded:
            self.stats.increment("modules.excluded", len(report.excluded))
        logger.info(
            "Admitted %d of %d modules", len(report.modules), len(discovered)
        )
        return report

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the module set and dispatcher.

        MUST only be called while holding _freeze_lock.
        """
        report = self._load_modules()
        self._report = report
        self._dispatcher = Dispatcher(
            report.modules,
            stats=self.stats,
            json_indent=self.config.json_indent,
        )
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register injections, modules, and hooks before calling app.run()."
            )
            raise RuntimeError(msg)

