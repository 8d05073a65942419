"""Route — the per-route execution unit.

A route binds a method set and a pattern to a handler. For each request
the dispatch layer:

1. ``prepare(request, arguments)`` -- tags the request with the route and
   with this dispatch's bound arguments.
2. ``finalize()`` -- once per route, flattens group and route middleware
   into one stack around the route.
3. ``run(request, response)`` -- traverses the stack. The route itself is
   the innermost layer: it invokes the handler through the invocation
   strategy, optionally capturing printed output, and reconciles the
   result into a ``Response``.

Bound arguments travel on the request, not on the route, so one route
instance can serve concurrent dispatches.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from switchyard._internal.types import Arguments, Handler
from switchyard.container import FOUND_HANDLER, Container
from switchyard.errors import ConfigurationError, InvalidArgument, InvalidConfiguration
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.invocation.capture import OutputBuffer, OutputCapture, coerce_output_capture
from switchyard.invocation.strategies import InvocationStrategy, RequestResponse
from switchyard.middleware.protocol import Middleware
from switchyard.middleware.stack import MiddlewareStack
from switchyard.routing.group import RouteGroup
from switchyard.routing.routable import Routable

logger = logging.getLogger("switchyard.routing")

ROUTE_ATTRIBUTE = "route"
"""Request attribute holding the matched ``Route``."""

ARGUMENTS_ATTRIBUTE = "route_arguments"
"""Request attribute holding the arguments bound for this dispatch."""

_DEFAULT_STRATEGY = RequestResponse()


class Route(Routable):
    """A method set + pattern + handler binding.

    Methods, pattern, handler, and groups are fixed at construction.
    Name, output capture mode, default arguments, and own middleware may
    change while routes are being defined. The middleware chain is fixed
    by the first ``finalize()``.

    Thread safety:
        ``finalize()`` uses a Lock + double-check so exactly one thread
        builds the stack. After that the route is read-only during
        dispatch; per-request state lives on the request.
    """

    __slots__ = (
        "_arguments",
        "_finalize_lock",
        "_finalized",
        "_groups",
        "_handler",
        "_identifier",
        "_methods",
        "_name",
        "_output_capture",
        "_resolved_handler",
        "_stack",
    )

    def __init__(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Handler | str,
        groups: Iterable[RouteGroup] = (),
        *,
        identifier: str | None = None,
        container: Container | None = None,
        output_capture: OutputCapture | str = OutputCapture.APPEND,
    ) -> None:
        super().__init__(pattern, container)
        if isinstance(methods, str):
            methods = (methods,)
        self._methods = frozenset(m.upper() for m in methods)
        if not self._methods:
            msg = f"Route {pattern!r} must accept at least one HTTP method."
            raise InvalidConfiguration(msg)
        self._handler = handler
        self._groups = tuple(groups)
        self._identifier = identifier
        self._name: str | None = None
        self._output_capture = coerce_output_capture(output_capture)
        self._arguments: dict[str, str] = {}
        self._resolved_handler: Handler | None = None
        self._stack: MiddlewareStack | None = None
        self._finalized = False
        self._finalize_lock = threading.Lock()

    # -- Accessors --

    @property
    def methods(self) -> frozenset[str]:
        return self._methods

    @property
    def handler(self) -> Handler | str:
        """The handler reference as registered (possibly a string)."""
        return self._handler

    @property
    def groups(self) -> tuple[RouteGroup, ...]:
        """Ancestor groups, outermost first."""
        return self._groups

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def identifier(self) -> str | None:
        return self._identifier

    @property
    def output_capture(self) -> OutputCapture:
        return self._output_capture

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    # -- Mutators --

    def set_name(self, name: str) -> Route:
        """Set the route name. Raises ``InvalidArgument`` unless *name* is a str."""
        if not isinstance(name, str):
            msg = f"Route name must be a string, got {type(name).__name__}"
            raise InvalidArgument(msg)
        self._name = name
        return self

    def set_output_capture(self, mode: OutputCapture | str | bool) -> Route:
        """Set the output capture mode.

        Raises ``InvalidConfiguration`` for an unknown mode and keeps the
        current one.
        """
        self._output_capture = coerce_output_capture(mode)
        return self

    def set_argument(self, name: str, value: str) -> Route:
        """Set a default argument, used unless the matcher binds *name*."""
        self._arguments[name] = value
        return self

    def set_arguments(self, arguments: Mapping[str, str]) -> Route:
        """Replace all default arguments."""
        self._arguments = dict(arguments)
        return self

    def get_arguments(self) -> dict[str, str]:
        """Return a copy of the default arguments."""
        return dict(self._arguments)

    def get_argument(self, name: str, default: Any = None) -> Any:
        """Return the default argument *name*, or *default* if unset."""
        return self._arguments.get(name, default)

    def add(self, middleware: Middleware | str) -> Route:
        """Append middleware to run after all group middleware. Returns self.

        Raises ``ConfigurationError`` once the route has been finalized.
        """
        if self._finalized:
            msg = (
                f"Cannot add middleware to route {self._pattern!r} after it has been "
                "finalized. Add middleware before the first request."
            )
            raise ConfigurationError(msg)
        return super().add(middleware)

    # -- Dispatch --

    def prepare(self, request: Request, arguments: Mapping[str, str]) -> Request:
        """Bind *arguments* for one dispatch and tag *request* with the route.

        The bound arguments are the route's defaults overlaid with the
        matched ones. They are stored on the returned request, never on
        the route.
        """
        bound = {**self._arguments, **arguments}
        return request.with_attribute(ROUTE_ATTRIBUTE, self).with_attribute(
            ARGUMENTS_ATTRIBUTE, MappingProxyType(bound)
        )

    def finalize(self) -> None:
        """Build the middleware stack. Later calls do nothing.

        Execution order is: middleware of the outermost group, then each
        nearer group, then the route's own middleware, then the handler.
        Each list keeps its declared order. The stack is LIFO, so the
        flattened list is registered back to front.
        """
        if self._finalized:
            return
        with self._finalize_lock:
            if self._finalized:
                return
            chain: list[Middleware] = [mw for group in self._groups for mw in group.middleware]
            chain.extend(self._middleware)

            stack = MiddlewareStack(self)
            for middleware in reversed(chain):
                stack.add(middleware)

            self._stack = stack
            self._finalized = True
            logger.debug(
                "Finalized route %s %s with %d middleware",
                ",".join(sorted(self._methods)),
                self._pattern,
                len(chain),
            )

    def run(self, request: Request, response: Response) -> Response:
        """Run the middleware stack, with this route as the innermost layer."""
        self.finalize()
        assert self._stack is not None
        return self._stack(request, response)

    def __call__(self, request: Request, response: Response) -> Response:
        """Invoke the handler and reconcile its result into a Response.

        Handler exceptions propagate unchanged. When output capture is on,
        the capture region is closed before they leave this method.
        """
        arguments = request.attribute(ARGUMENTS_ATTRIBUTE)
        if arguments is None:
            arguments = MappingProxyType(dict(self._arguments))
        strategy = self._strategy()
        handler = self._handler_callable()

        if self._output_capture is OutputCapture.DISABLED:
            result = strategy(handler, request, response, arguments)
            return reconcile(response, result)

        with OutputBuffer() as buffer:
            result = strategy(handler, request, response, arguments)
        return reconcile(response, result, buffer.text, self._output_capture)

    def _strategy(self) -> InvocationStrategy:
        if self._container is not None and self._container.has(FOUND_HANDLER):
            return self._container.get(FOUND_HANDLER)
        return _DEFAULT_STRATEGY

    def _handler_callable(self) -> Handler:
        if self._resolved_handler is None:
            self._resolved_handler = self._resolve(self._handler)
        return self._resolved_handler

    def __repr__(self) -> str:
        methods = ",".join(sorted(self._methods))
        return f"Route({methods} {self._pattern!r}, name={self._name!r})"


def reconcile(
    response: Response,
    result: Any,
    captured: str = "",
    mode: OutputCapture = OutputCapture.DISABLED,
) -> Response:
    """Merge a handler's return value and captured output into *response*.

    - a ``Response`` result replaces *response*
    - a ``str`` or ``bytes`` result is appended to the body
    - any other result leaves *response* as it is

    Non-empty *captured* text is then appended (``APPEND``) or placed in
    front of the body (``PREPEND``).
    """
    if isinstance(result, Response):
        response = result
    elif isinstance(result, (str, bytes)):
        response = response.with_body_appended(result)

    if not captured:
        return response
    if mode is OutputCapture.APPEND:
        return response.with_body_appended(captured)
    if mode is OutputCapture.PREPEND:
        if isinstance(response.body, bytes):
            return response.with_body(captured.encode("utf-8") + response.body)
        return response.with_body(captured + response.body)
    return response


def route_arguments(request: Request) -> Arguments:
    """Return the arguments bound to *request* by ``Route.prepare()``."""
    return request.attribute(ARGUMENTS_ATTRIBUTE, MappingProxyType({}))


def with_route_argument(request: Request, name: str, value: str) -> Request:
    """Return a copy of *request* with one bound argument overridden.

    Lets middleware change what the handler receives for this dispatch
    without touching the shared route.
    """
    bound = {**route_arguments(request), name: value}
    return request.with_attribute(ARGUMENTS_ATTRIBUTE, MappingProxyType(bound))
