"""HTTP request.

Frozen metadata with async body access, plus one deliberately mutable
piece: the ``context`` bag that the dispatcher and modules use to stash
per-dispatch values such as the ``dispatchingId`` correlation id.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qsl

from warble._internal.asgi import Receive, Scope
from warble.http.headers import Headers


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An HTTP request as seen by the dispatcher and by module actions.

    Metadata (method, path, headers, query) is frozen at creation.
    ``path_params`` is filled in by a module when one of its actions
    matches. Body is accessed asynchronously via ``.body()``/``.json()``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query_string: str = ""
    path_params: Mapping[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # Per-dispatch key/value bag, shared by every copy of this request
    context: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def url(self) -> str:
        """Path plus query string, as requested."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def query(self) -> dict[str, str]:
        """Query parameters (last value wins for repeated keys)."""
        return dict(parse_qsl(self.query_string, keep_blank_values=True))

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    # -- Context bag --

    def get_context(self, key: str, default: Any = None) -> Any:
        """Read a per-dispatch context value."""
        return self.context.get(key, default)

    def set_context(self, key: str, value: Any) -> None:
        """Store a per-dispatch context value."""
        self.context[key] = value

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Return a copy carrying matched path params.

        The copy shares ``context`` and the body cache with the original.
        """
        return replace(self, path_params=dict(params))

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body. Cached after the first read."""
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as UTF-8 text."""
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers.from_raw(scope.get("headers", ())),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
