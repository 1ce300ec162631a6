"""Warble exception hierarchy.

Shared across discovery, modules, the dispatcher, and the ASGI handler
so every layer raises and catches the same types.
"""

from collections.abc import Iterable


class WarbleError(Exception):
    """Base for all warble-specific errors."""


class ConfigurationError(WarbleError):
    """Raised when app or module configuration is invalid.

    Typically surfaces during ``App._freeze()`` or when a module loads
    its action table for the first time.
    """


class ModuleLoadError(WarbleError):
    """Raised when a module directory cannot be turned into a ``Module``.

    Discovery logs and skips these; they only reach the caller when
    ``Module.from_directory()`` is used directly.
    """

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load module at {path}: {reason}")


class HTTPError(WarbleError):
    """An error that maps directly to an HTTP status code.

    Raised by actions or filters. The dispatcher catches these and turns
    them into a JSON error response with the same status.
    """

    def __init__(
        self,
        status: int,
        detail: str = "",
        headers: Iterable[tuple[str, str]] = (),
    ) -> None:
        self.status = status
        self.detail = detail
        self.headers: tuple[tuple[str, str], ...] = tuple(headers)
        super().__init__(status, detail)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — raised by an action when the addressed resource does not exist."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class FilterFailure(WarbleError):  # noqa: N818
    """Raised by a filter check to reject a request with a specific message.

    Equivalent to returning a falsy value from the check, but lets the
    check override the filter's declared message and status.
    """

    def __init__(self, message: str = "", status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)
