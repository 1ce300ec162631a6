"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response; the original is never changed.
"""

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    Header lookups through ``header()`` are case-insensitive.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def json(cls, data: Any, *, status: int = 200, indent: int | None = None) -> "Response":
        """Build a JSON response from *data*."""
        return cls(
            body=json_module.dumps(data, indent=indent, default=str),
            status=status,
            content_type=JSON_CONTENT_TYPE,
        )

    # -- Chainable transformations --

    def with_status(self, status: int) -> "Response":
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        """Return a new Response with an additional header.

        ``Content-Type`` is routed to ``content_type`` so there is only
        ever one of it.
        """
        if name.lower() == "content-type":
            return replace(self, content_type=value)
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        """Return a new Response with additional headers."""
        response = self
        for name, value in headers.items():
            response = response.with_header(name, value)
        return response

    def with_content_type(self, content_type: str) -> "Response":
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup (first value wins)."""
        key = name.lower()
        if key == "content-type":
            return self.content_type
        for header_name, value in self.headers:
            if header_name.lower() == key:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json_body(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body_bytes)
