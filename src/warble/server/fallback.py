"""Fallback responses for dispatches that produced nothing.

Guarantees the dispatcher never hands ``None`` to its caller: "no module
matched" and "a module matched but a filter rejected the request" both
become a JSON error body of the shape::

    {"error": {"message": "<string>", "code": <string|number>}}
"""

import json as json_module

from warble.filters import FilterManager
from warble.http.response import JSON_CONTENT_TYPE, Response

NOT_FOUND_MESSAGE = "action not found"


def build_error_response(
    status: int,
    message: str,
    *,
    code: str | int | None = None,
    indent: int | None = 4,
) -> Response:
    """JSON error response with *status*; ``code`` defaults to the status."""
    body = {"error": {"message": message, "code": status if code is None else code}}
    return Response(
        body=json_module.dumps(body, indent=indent),
        status=status,
        content_type=JSON_CONTENT_TYPE,
    )


def build_safe_response(
    response: Response | None,
    filters: FilterManager | None,
    *,
    indent: int | None = 4,
) -> Response:
    """Return *response* unchanged, or synthesize the fallback for ``None``.

    - A recorded filter failure yields ``[<name>] <message>`` with the
      filter's status as both HTTP status and ``code``.
    - Otherwise the result is ``action not found`` with status 400 and
      ``code`` ``"400"``.
    """
    if response is not None:
        return response

    failed = filters.failed_filter() if filters is not None else None
    if failed is not None:
        return build_error_response(
            failed.status,
            f"[{failed.name}] {failed.message}",
            indent=indent,
        )
    return build_error_response(400, NOT_FOUND_MESSAGE, code="400", indent=indent)
