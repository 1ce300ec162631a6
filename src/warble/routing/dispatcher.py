"""Dispatcher — routes a request to the first module that answers it.

Modules are tried in their admitted (discovery) order. A module is a
candidate when its domain prefixes the normalized request URL,
case-insensitively. The first candidate whose ``exec`` returns a
response wins; a candidate returning ``None`` lets the next one try.

Thread safety:
    The admitted module mapping is replaced wholesale by
    ``replace_modules()`` and read once per dispatch, so a reload is
    never observed half-done. The module stack and filter manager are
    per-dispatch context variables, never dispatcher fields.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from contextvars import ContextVar, Token
from types import MappingProxyType
from typing import Any

from warble.context import dispatcher_var, filters_var, module_stack_var
from warble.errors import HTTPError
from warble.filters import FilterManager
from warble.http.request import Request
from warble.http.response import Response
from warble.modules.module import Module
from warble.modules.stack import ModuleStack
from warble.routing.url import normalize_url
from warble.server.fallback import build_error_response, build_safe_response
from warble.stats import Instrumentation, NullStats

logger = logging.getLogger("warble.dispatch")

DISPATCH_ID_KEY = "dispatchingId"
DISPATCH_TIMER = "DispatchingTime"


class Dispatcher:
    """Matches requests against admitted modules and runs the winner.

    Usage::

        dispatcher = Dispatcher(resolve_dependencies(discover_modules("modules")))
        response = await dispatcher.dispatch(request)
    """

    __slots__ = ("_json_indent", "_modules", "_stats")

    def __init__(
        self,
        modules: Mapping[str, Module],
        *,
        stats: Instrumentation | None = None,
        json_indent: int | None = 4,
    ) -> None:
        self._modules: dict[str, Module] = dict(modules)
        self._stats: Instrumentation = stats if stats is not None else NullStats()
        self._json_indent = json_indent

    # -- Module set --

    @property
    def modules(self) -> Mapping[str, Module]:
        """Read-only view of the admitted modules."""
        return MappingProxyType(self._modules)

    @property
    def json_indent(self) -> int | None:
        """Indent used for JSON error bodies."""
        return self._json_indent

    def replace_modules(self, modules: Mapping[str, Module]) -> None:
        """Swap in a new admitted module set (e.g. after a reload)."""
        self._modules = dict(modules)

    def installed_modules(self) -> list[Module]:
        return list(self._modules.values())

    def get_module(self, name: str) -> Module | None:
        return self._modules.get(name)

    def get_module_by_namespace(self, namespace: str) -> Module | None:
        """First module whose namespace equals *namespace*, ignoring case."""
        wanted = namespace.casefold()
        for module in self._modules.values():
            if module.namespace.casefold() == wanted:
                return module
        return None

    # -- Dispatch --

    async def dispatch(self, request: Request) -> Response:
        """Route *request* and always return a response.

        A handler that raises is converted here: ``HTTPError`` keeps its
        status, anything else becomes a logged 500. The module stack is
        unwound either way.
        """
        dispatching_id = uuid.uuid4().hex
        request.set_context(DISPATCH_ID_KEY, dispatching_id)
        timer_key = f"{request.method} {request.url} {dispatching_id}"
        self._record("start", DISPATCH_TIMER, timer_key)
        self._record("increment", "dispatch.requests")

        resets: list[tuple[ContextVar[Any], Token[Any]]] = []
        stack = module_stack_var.get()
        if stack is None:
            stack = ModuleStack()
            resets.append((module_stack_var, module_stack_var.set(stack)))
        filters = filters_var.get()
        if filters is None:
            filters = FilterManager()
            resets.append((filters_var, filters_var.set(filters)))
        resets.append((dispatcher_var, dispatcher_var.set(self)))

        try:
            try:
                response = await self._route(request, stack)
            except HTTPError as exc:
                logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
                response = build_error_response(
                    exc.status, exc.detail or f"Error {exc.status}", indent=self._json_indent
                ).with_headers(dict(exc.headers))
            except Exception:
                logger.exception(
                    "500 %s %s (dispatch %s)", request.method, request.path, dispatching_id
                )
                self._record("increment", "dispatch.errors")
                response = build_error_response(
                    500, "internal server error", indent=self._json_indent
                )

            if response is None:
                self._record("increment", "dispatch.fallback")
            return build_safe_response(response, filters, indent=self._json_indent)
        finally:
            for var, token in reversed(resets):
                var.reset(token)
            self._record("stop", DISPATCH_TIMER, timer_key)

    async def _route(self, request: Request, stack: ModuleStack) -> Response | None:
        modules = self._modules
        url = normalize_url(request.path)

        for module in modules.values():
            if not module.matches(url):
                continue
            with stack.entered(module):
                logger.debug(
                    "%s %s -> %s (stack %s)",
                    request.method,
                    url,
                    module.name,
                    stack.path_string(),
                )
                response = await module.exec(request)
            if response is not None:
                return response
        return None

    def _record(self, method: str, *args: Any) -> None:
        """Forward to the instrumentation sink; a failing sink is only logged."""
        try:
            getattr(self._stats, method)(*args)
        except Exception:
            logger.exception("Instrumentation %s%r failed", method, args)
