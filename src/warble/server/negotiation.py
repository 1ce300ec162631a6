"""Content negotiation — maps action return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

import json as json_module
from typing import Any

from warble.errors import ConfigurationError
from warble.http.response import JSON_CONTENT_TYPE, Response


def negotiate(value: Any, *, json_indent: int | None = None) -> Response | None:
    """Convert an action's return value to a Response.

    Dispatch order:

    1. ``None``                -> ``None`` (the module declines)
    2. ``Response``            -> pass through
    3. ``str``                 -> 200, text/plain
    4. ``bytes``               -> 200, application/octet-stream
    5. ``dict`` / ``list``     -> 200, application/json
    6. ``(value, int)``        -> negotiate value, override status
    7. ``(value, int, dict)``  -> negotiate value, override status + headers
    """
    match value:
        case None:
            return None
        case Response():
            return value
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json_module.dumps(value, indent=json_indent, default=str),
                content_type=JSON_CONTENT_TYPE,
            )
        case (inner, int() as status):
            response = negotiate(inner, json_indent=json_indent) or Response(body="")
            return response.with_status(status)
        case (inner, int() as status, dict() as headers):
            response = negotiate(inner, json_indent=json_indent) or Response(body="")
            return response.with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Action returned {type(value).__name__!r}, which warble cannot "
                "convert to a response. Return a Response, str, bytes, dict, "
                "list, or a (value, status) tuple."
            )
            raise ConfigurationError(msg)
