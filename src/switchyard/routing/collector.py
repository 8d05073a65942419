"""Route collector — builds Route objects while groups are open.

The collector is the definition-time half of a routing table: it creates
routes, prefixes their patterns with every open group's pattern, hands
them the open group chain, and indexes them by identifier and name. It
does no matching; compiled routes are handed to a ``PathMatcher``.
"""

from collections.abc import Callable, Iterable
from typing import Any

from switchyard.container import Container
from switchyard.invocation.capture import OutputCapture
from switchyard.routing.group import RouteGroup
from switchyard.routing.route import Route


class RouteCollector:
    """Collects routes and tracks the stack of open groups.

    Usage::

        collector = RouteCollector()
        collector.push_group("/api")
        route = collector.map(["GET"], "/users", list_users)   # "/api/users"
        collector.pop_group()
    """

    __slots__ = ("_container", "_group_stack", "_output_capture", "_route_counter", "_routes")

    def __init__(
        self,
        container: Container | None = None,
        *,
        output_capture: OutputCapture | str = OutputCapture.APPEND,
    ) -> None:
        self._container = container
        self._output_capture = output_capture
        self._routes: dict[str, Route] = {}
        self._group_stack: list[RouteGroup] = []
        self._route_counter = 0

    # -- Building --

    def map(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Callable[..., Any] | str,
    ) -> Route:
        """Create a route inside the currently open groups and register it."""
        identifier = f"route{self._route_counter}"
        route = Route(
            methods,
            self._group_prefix() + pattern,
            handler,
            self._group_stack,
            identifier=identifier,
            container=self._container,
            output_capture=self._output_capture,
        )
        self._routes[identifier] = route
        self._route_counter += 1
        return route

    def push_group(
        self,
        pattern: str,
        definition: Callable[[Any], Any] | None = None,
    ) -> RouteGroup:
        """Open a group. Routes mapped until ``pop_group()`` belong to it."""
        group = RouteGroup(pattern, definition, self._container)
        self._group_stack.append(group)
        return group

    def pop_group(self) -> RouteGroup | None:
        """Close the innermost open group and return it."""
        if not self._group_stack:
            return None
        return self._group_stack.pop()

    def _group_prefix(self) -> str:
        return "".join(group.pattern for group in self._group_stack)

    # -- Lookup --

    @property
    def routes(self) -> list[Route]:
        """All routes in registration order."""
        return list(self._routes.values())

    @property
    def groups(self) -> tuple[RouteGroup, ...]:
        """Currently open groups, outermost first."""
        return tuple(self._group_stack)

    def lookup_route(self, identifier: str) -> Route:
        """Return the route with *identifier*. Raises ``LookupError``."""
        try:
            return self._routes[identifier]
        except KeyError:
            msg = f"No route with identifier {identifier!r}"
            raise LookupError(msg) from None

    def get_named_route(self, name: str) -> Route:
        """Return the route named *name*. Raises ``LookupError``."""
        for route in self._routes.values():
            if route.name == name:
                return route
        msg = f"No route named {name!r}"
        raise LookupError(msg)
