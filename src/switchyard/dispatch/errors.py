"""Error responses for dispatched requests.

``App.handle`` is the one place an exception becomes a response. Routes
and middleware let failures propagate; the functions here turn them into
a ``Response``, preferring a handler registered with ``@app.error()`` and
falling back to a plain-text default.

Handler lookup:

- ``HTTPError``: the exception's exact type, then its status code
- anything else: status ``500``, then the exception's exact type
"""

import inspect
import logging
import traceback
from collections.abc import Mapping
from typing import Any, TypeAlias

from switchyard._internal.types import ErrorHandler
from switchyard.errors import HTTPError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.route import reconcile

logger = logging.getLogger("switchyard.app")

_TEXT = "text/plain; charset=utf-8"

ErrorHandlers: TypeAlias = Mapping[int | type, ErrorHandler]


def call_error_handler(handler: ErrorHandler, request: Request, exc: Exception) -> Response:
    """Call *handler* with as many of ``(request, exc)`` as it accepts.

    The result is reconciled like a route handler's: a ``Response`` is
    used as is, text becomes the body of a new one.
    """
    arity = len(inspect.signature(handler).parameters)
    args: tuple[Any, ...] = (request, exc)[: min(arity, 2)]
    return reconcile(Response(), handler(*args))


def _registered(
    handlers: ErrorHandlers, request: Request, exc: Exception, *keys: int | type
) -> Response | None:
    """Run the first handler registered under one of *keys*, if any."""
    for key in keys:
        handler = handlers.get(key)
        if handler is not None:
            return call_error_handler(handler, request, exc)
    return None


def handle_http_error(
    exc: HTTPError,
    request: Request,
    handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Turn an ``HTTPError`` into a response with the exception's status."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    response = _registered(handlers, request, exc, type(exc), exc.status)
    if response is not None:
        # A handler that left the default 200 inherits the error status
        return response if response.status != 200 else response.with_status(exc.status)

    body = exc.detail or f"Error {exc.status}"
    if debug:
        body = str(exc)
    response = Response(body, status=exc.status, content_type=_TEXT)
    return response.with_headers(dict(exc.headers)) if exc.headers else response


def handle_internal_error(
    exc: Exception,
    request: Request,
    handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Turn any other exception into a 500 response. Always logged."""
    logger.exception("500 %s %s", request.method, request.path)

    response = _registered(handlers, request, exc, 500, type(exc))
    if response is not None:
        return response if response.status != 200 else response.with_status(500)

    if debug:
        return Response("".join(traceback.format_exception(exc)), status=500, content_type=_TEXT)
    return Response("Internal Server Error", status=500, content_type=_TEXT)
