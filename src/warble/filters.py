"""Request filters and the per-dispatch FilterManager.

A ``Filter`` guards a module's actions: its ``check`` runs before the
action and may reject the request. Rejections are recorded on the
``FilterManager`` for the current dispatch; the dispatcher's fallback
turns the first recorded failure into the error response.

Filters are declared on a module's action table::

    @actions.filter("Auth", message="missing token", status=401)
    def has_token(request: Request) -> bool:
        return "authorization" in request.headers
"""

import json as json_module
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from warble._internal.invoke import invoke
from warble.errors import FilterFailure
from warble.http.request import Request


@dataclass(frozen=True, slots=True)
class FailedFilter:
    """A recorded filter rejection."""

    name: str
    message: str
    status: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "message": self.message, "status": self.status}


@dataclass(frozen=True, slots=True)
class Filter:
    """A named request check with the message and status used on rejection."""

    name: str
    check: Callable[..., Any]
    message: str = ""
    status: int = 400

    async def run(self, request: Request) -> FailedFilter | None:
        """Run the check. Returns the failure, or ``None`` when it passes."""
        try:
            passed = await invoke(self.check, request)
        except FilterFailure as exc:
            return FailedFilter(
                name=self.name,
                message=exc.message or self.message,
                status=exc.status or self.status,
            )
        if passed:
            return None
        return FailedFilter(name=self.name, message=self.message, status=self.status)


class FilterManager:
    """Collects filter failures for one dispatch.

    Not shared between requests; the dispatcher creates one per
    top-level dispatch and exposes it through
    ``warble.context.filters_var``.
    """

    __slots__ = ("_failures",)

    def __init__(self) -> None:
        self._failures: list[FailedFilter] = []

    def fail(self, name: str, message: str, status: int = 400) -> None:
        """Record a failure directly (for checks that live outside a Filter)."""
        self._failures.append(FailedFilter(name=name, message=message, status=status))

    def record(self, failure: FailedFilter) -> None:
        self._failures.append(failure)

    def have_errors(self) -> bool:
        return bool(self._failures)

    def failed_filter(self) -> FailedFilter | None:
        """The first recorded failure, or ``None``."""
        return self._failures[0] if self._failures else None

    @property
    def failures(self) -> tuple[FailedFilter, ...]:
        return tuple(self._failures)

    def serialize_errors(self) -> str:
        """All failures as a JSON list."""
        return json_module.dumps([f.to_dict() for f in self._failures])

    def __len__(self) -> int:
        return len(self._failures)
