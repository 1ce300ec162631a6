"""ActionTable — what a module's ``actions.py`` exports.

A module declares its actions and filters on a table named ``actions``::

    from warble.modules.actions import ActionTable

    actions = ActionTable()

    @actions.filter("Auth", message="missing token", status=401)
    def has_token(request):
        return "authorization" in request.headers

    @actions.get("/{id:int}")
    def read(id: int):
        return {"id": id}

Paths are relative to the module's domain. Filters apply to every action
in the table, in declaration order.
"""

from collections.abc import Callable, Sequence

from warble._internal.types import Handler
from warble.filters import Filter
from warble.routing.route import Action
from warble.routing.router import ActionRouter


class ActionTable:
    """Mutable collection of a module's actions and filters."""

    __slots__ = ("_actions", "_filters")

    def __init__(self) -> None:
        self._actions: list[Action] = []
        self._filters: list[Filter] = []

    # -- Actions --

    def add(
        self,
        path: str,
        handler: Handler,
        methods: Sequence[str] = ("GET",),
        *,
        name: str | None = None,
    ) -> None:
        """Register *handler* for *methods* at *path*."""
        self._actions.append(
            Action(
                path=path,
                handler=handler,
                methods=frozenset(m.upper() for m in methods),
                name=name or getattr(handler, "__name__", None),
            )
        )

    def route(
        self,
        path: str,
        *,
        methods: Sequence[str] = ("GET",),
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register an action via decorator."""

        def decorator(func: Handler) -> Handler:
            self.add(path, func, methods, name=name)
            return func

        return decorator

    def get(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("GET",), name=name)

    def post(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("POST",), name=name)

    def put(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PUT",), name=name)

    def delete(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("DELETE",), name=name)

    # -- Filters --

    def filter(
        self,
        name: str,
        *,
        message: str = "",
        status: int = 400,
    ) -> Callable[[Callable[..., object]], Callable[..., object]]:
        """Register a filter check via decorator."""

        def decorator(func: Callable[..., object]) -> Callable[..., object]:
            self._filters.append(Filter(name=name, check=func, message=message, status=status))
            return func

        return decorator

    def add_filter(self, flt: Filter) -> None:
        self._filters.append(flt)

    @property
    def actions(self) -> tuple[Action, ...]:
        return tuple(self._actions)

    @property
    def filters(self) -> tuple[Filter, ...]:
        return tuple(self._filters)

    def compile(self) -> ActionRouter:
        """Build the router for these actions."""
        router = ActionRouter()
        for action in self._actions:
            router.add(action)
        return router

    def __len__(self) -> int:
        return len(self._actions)
