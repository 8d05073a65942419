"""Route groups — shared pattern prefix and middleware for nested routes.

A group is created by ``App.group()`` (or ``RouteCollector.push_group()``)
and handed, together with its ancestors, to every route mapped while it
is open. Routes keep that chain outermost first and run the middleware
of each group ahead of their own.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from switchyard.container import Container
from switchyard.routing.routable import Routable


class RouteGroup(Routable):
    """A pattern prefix plus middleware, applied to the routes inside it.

    Usage::

        def admin(app):
            app.get("/users", list_users)
            app.get("/users/{id}", show_user)

        app.group("/admin", admin).add(require_admin)
    """

    __slots__ = ("_definition",)

    def __init__(
        self,
        pattern: str,
        definition: Callable[[Any], Any] | None = None,
        container: Container | None = None,
    ) -> None:
        super().__init__(pattern, container)
        self._definition = definition

    def __call__(self, app: Any) -> None:
        """Run the group's definition callable against *app*."""
        if self._definition is not None:
            self._definition(app)

    def __repr__(self) -> str:
        return f"RouteGroup({self._pattern!r}, middleware={len(self._middleware)})"
