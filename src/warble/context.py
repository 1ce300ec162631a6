"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: the request currently being handled.
- ``module_stack_var``: the module stack for the current dispatch chain.
- ``filters_var``: the filter manager collecting failures for this dispatch.
- ``dispatcher_var``: the dispatcher serving the current request.

The dispatcher sets the stack and filter manager on a top-level dispatch
and resets them afterwards; nested dispatches in the same context reuse
them, which is what lets a module see its caller chain.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. Concurrent requests never share a stack.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warble.filters import FilterManager
    from warble.http.request import Request
    from warble.modules.module import Module
    from warble.modules.stack import ModuleStack
    from warble.routing.dispatcher import Dispatcher

request_var: ContextVar[Request] = ContextVar("warble_request")
module_stack_var: ContextVar[ModuleStack | None] = ContextVar("warble_module_stack", default=None)
filters_var: ContextVar[FilterManager | None] = ContextVar("warble_filters", default=None)
dispatcher_var: ContextVar[Dispatcher] = ContextVar("warble_dispatcher")


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def get_dispatcher() -> Dispatcher:
    """Return the dispatcher serving the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return dispatcher_var.get()


def current_module() -> Module | None:
    """The module executing right now, or ``None`` outside any module."""
    stack = module_stack_var.get()
    return stack.current() if stack is not None else None


def module_stack_path() -> str:
    """Namespaces of the executing modules, outermost first (``/shop/cart``)."""
    stack = module_stack_var.get()
    return stack.path_string() if stack is not None else ""


def module_stack_depth() -> int:
    """How many modules are nested in the current dispatch chain."""
    stack = module_stack_var.get()
    return stack.depth() if stack is not None else 0
