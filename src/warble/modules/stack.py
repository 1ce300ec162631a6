"""Module stack — LIFO record of the modules currently executing.

One stack exists per top-level dispatch (held in
``warble.context.module_stack_var``), never per app, so concurrent
requests cannot corrupt each other's chain.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warble.modules.module import Module


class ModuleStack:
    """Modules in the current call chain, bottom (outermost) to top.

    Usage::

        stack = ModuleStack()
        with stack.entered(module):
            response = await module.exec(request)
        # popped here even if exec raised
    """

    __slots__ = ("_modules",)

    def __init__(self) -> None:
        self._modules: list[Module] = []

    def push(self, module: Module) -> None:
        self._modules.append(module)

    def pop(self) -> Module:
        """Remove and return the top module. ``IndexError`` when empty."""
        return self._modules.pop()

    def current(self) -> Module | None:
        """The top of the stack, or ``None`` when nothing is executing."""
        return self._modules[-1] if self._modules else None

    def depth(self) -> int:
        return len(self._modules)

    def path_string(self) -> str:
        """Join namespaces bottom to top: ``/shop/cart``."""
        return "".join(f"/{module.namespace}" for module in self._modules)

    @contextmanager
    def entered(self, module: Module) -> Iterator[Module]:
        """Push *module* for the duration of the block, popping on any exit."""
        self.push(module)
        try:
            yield module
        finally:
            self.pop()

    def __iter__(self) -> Iterator[Module]:
        return iter(tuple(self._modules))

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"<ModuleStack {self.path_string() or '/'}>"
