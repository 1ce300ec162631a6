"""ASGI handler — translates ASGI scope/messages to warble types.

The only component that touches raw ASGI for HTTP. Converts the scope to
a ``Request``, hands it to the dispatcher, and sends the response back
through ASGI ``send()``.
"""

import logging
from contextvars import Token

from warble._internal.asgi import Receive, Scope, Send
from warble.context import request_var
from warble.http.request import Request
from warble.routing.dispatcher import Dispatcher
from warble.server.fallback import build_error_response
from warble.server.sender import send_response

logger = logging.getLogger("warble.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
) -> None:
    """Process a single HTTP request through the dispatcher."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)

    try:
        response = await dispatcher.dispatch(request)
    except Exception:
        # The dispatcher converts handler errors itself; this only
        # catches failures in the dispatcher machinery.
        logger.exception("500 %s %s", request.method, request.path)
        response = build_error_response(
            500, "internal server error", indent=dispatcher.json_indent
        )
    finally:
        request_var.reset(token)

    await send_response(response, send)
