"""Switchyard application class.

Mutable during setup (route registration, groups, middleware, services).
Frozen on the first ``handle()`` call or an explicit ``freeze()``.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from switchyard._internal.types import ErrorHandler, Handler
from switchyard.config import AppConfig
from switchyard.container import FOUND_HANDLER, Container
from switchyard.dispatch.errors import handle_http_error, handle_internal_error
from switchyard.errors import ConfigurationError, HTTPError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.invocation.capture import OutputCapture
from switchyard.invocation.strategies import build_strategy
from switchyard.middleware.protocol import Middleware
from switchyard.middleware.stack import MiddlewareStack
from switchyard.routing.collector import RouteCollector
from switchyard.routing.group import RouteGroup
from switchyard.routing.matcher import PathMatcher
from switchyard.routing.route import Route

logger = logging.getLogger("switchyard.app")


class App:
    """The switchyard application.

    Ties a route collector, a service container, and an external path
    matcher together, and runs each request through app middleware and
    then the matched route.

    Usage::

        app = App(matcher=my_matcher)

        @app.route("/users/{id}")
        def show_user(request, response, args):
            return f"user {args['id']}"

        def api(app):
            app.get("/status", status).set_name("status")

        app.group("/api", api).add(require_token)

        response = app.handle(Request.build("GET", "/users/42"))

    Thread safety:
        The setup phase is single-threaded. The freeze transition uses a
        Lock + double-check so exactly one thread compiles the app, even
        when several request threads arrive at once.
    """

    __slots__ = (
        "_collector",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_matcher",
        "_middleware_list",
        # Compiled state (populated by _freeze)
        "_stack",
        "config",
        "container",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        matcher: PathMatcher | None = None,
        container: Container | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.container: Container = container or Container()
        self._matcher = matcher
        self._collector = RouteCollector(
            self.container, output_capture=self.config.output_capture
        )
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set by _freeze()
        self._stack: MiddlewareStack | None = None

    # -- Route registration --

    def map(self, methods: Iterable[str], pattern: str, handler: Handler | str) -> Route:
        """Register a route for *methods* and return it for further setup."""
        self._check_not_frozen()
        return self._collector.map(methods, pattern, handler)

    def get(self, pattern: str, handler: Handler | str) -> Route:
        return self.map(["GET"], pattern, handler)

    def post(self, pattern: str, handler: Handler | str) -> Route:
        return self.map(["POST"], pattern, handler)

    def put(self, pattern: str, handler: Handler | str) -> Route:
        return self.map(["PUT"], pattern, handler)

    def patch(self, pattern: str, handler: Handler | str) -> Route:
        return self.map(["PATCH"], pattern, handler)

    def delete(self, pattern: str, handler: Handler | str) -> Route:
        return self.map(["DELETE"], pattern, handler)

    def options(self, pattern: str, handler: Handler | str) -> Route:
        return self.map(["OPTIONS"], pattern, handler)

    def any(self, pattern: str, handler: Handler | str) -> Route:
        """Register a route for all common HTTP methods."""
        return self.map(
            ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"], pattern, handler
        )

    def route(
        self,
        pattern: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        middleware: Iterable[Middleware | str] = (),
        output_capture: OutputCapture | str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            pattern: Path pattern, interpreted by the path matcher.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name, looked up with ``named_route()``.
            middleware: Route middleware, in execution order.
            output_capture: Override the app's default capture mode.
        """

        def decorator(func: Handler) -> Handler:
            route = self.map(methods or ["GET"], pattern, func)
            if name is not None:
                route.set_name(name)
            if output_capture is not None:
                route.set_output_capture(output_capture)
            for mw in middleware:
                route.add(mw)
            return func

        return decorator

    def group(self, pattern: str, definition: Callable[["App"], Any]) -> RouteGroup:
        """Define routes under a shared pattern prefix and middleware.

        *definition* is called with the app; every route it maps belongs
        to the group (and to any group this call is nested in).
        """
        self._check_not_frozen()
        group = self._collector.push_group(pattern, definition)
        try:
            group(self)
        finally:
            self._collector.pop_group()
        return group

    @property
    def routes(self) -> list[Route]:
        """All registered routes in registration order."""
        return self._collector.routes

    def named_route(self, name: str) -> Route:
        """Return the route named *name*. Raises ``LookupError``."""
        return self._collector.get_named_route(name)

    # -- Services --

    def provide(self, key: Any, factory: Callable[[], Any]) -> None:
        """Register a container service.

        Keys may be names or types. ``SignatureStrategy`` injects services
        whose key matches a handler parameter's annotation::

            app.provide(UserStore, get_store)

            def show(id: int, store: UserStore) -> str: ...
        """
        self._check_not_frozen()
        self.container.provide(key, factory)

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add an app middleware. It wraps every request, matched or not.

        App middleware run in the order added, all of them outside any
        group or route middleware.
        """
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Dispatch --

    def handle(self, request: Request, response: Response | None = None) -> Response:
        """Process one request through the full pipeline."""
        self._ensure_frozen()
        assert self._stack is not None

        try:
            return self._stack(request, response or Response())
        except HTTPError as exc:
            return handle_http_error(exc, request, self._error_handlers, self.config.debug)
        except Exception as exc:
            return handle_internal_error(exc, request, self._error_handlers, self.config.debug)

    def _dispatch(self, request: Request, response: Response) -> Response:
        """Innermost app layer: match the path and run the route."""
        assert self._matcher is not None
        match = self._matcher.match(request.method, request.path)
        route = match.route
        request = route.prepare(request, match.arguments)
        logger.debug("%s %s -> %r", request.method, request.path, route)
        return route.run(request, response)

    # -- Internal --

    def freeze(self) -> None:
        """Compile the app now instead of on the first request."""
        self._ensure_frozen()

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        if self._matcher is None:
            msg = "No path matcher configured. Pass matcher= to App()."
            raise ConfigurationError(msg)

        # 1. Invocation strategy, unless one was set on the container
        if not self.container.has(FOUND_HANDLER):
            strategy = build_strategy(self.config.strategy, self.container)
            self.container.set(FOUND_HANDLER, strategy)

        # 2. Hand routes to the matcher and fix their middleware chains
        routes = self._collector.routes
        for route in routes:
            self._matcher.add(route)
            route.finalize()

        # 3. App middleware around dispatch, first added outermost
        stack = MiddlewareStack(self._dispatch)
        for mw in reversed(self._middleware_list):
            stack.add(mw)
        self._stack = stack

        self._frozen = True
        logger.debug(
            "Compiled %d routes with %d app middleware (strategy=%s)",
            len(routes),
            len(self._middleware_list),
            self.config.strategy,
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started handling requests. "
                "Register routes, groups, middleware, and services first."
            )
            raise RuntimeError(msg)
