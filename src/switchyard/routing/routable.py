"""Shared base for routes and route groups.

Both carry a pattern, an ordered list of their own middleware, and an
optional container used to resolve string middleware references.
"""

from __future__ import annotations

from typing import Any

from switchyard.container import Container
from switchyard.middleware.protocol import Middleware
from switchyard.resolver import resolver_for


class Routable:
    """A pattern plus declared middleware."""

    __slots__ = ("_container", "_middleware", "_pattern")

    def __init__(self, pattern: str, container: Container | None = None) -> None:
        self._pattern = pattern
        self._container = container
        self._middleware: list[Middleware] = []

    @property
    def pattern(self) -> str:
        """The path template. Opaque here; interpreted by the path matcher."""
        return self._pattern

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """Own middleware in declaration order."""
        return tuple(self._middleware)

    @property
    def container(self) -> Container | None:
        return self._container

    def set_container(self, container: Container | None) -> None:
        self._container = container

    def add(self, middleware: Middleware | str) -> Any:
        """Append *middleware* to this object's own middleware. Returns self.

        String references are resolved immediately, so a bad reference
        fails at definition time rather than on the first request.
        """
        self._middleware.append(self._resolve(middleware))
        return self

    def _resolve(self, reference: Any) -> Any:
        return resolver_for(self._container).resolve(reference)
