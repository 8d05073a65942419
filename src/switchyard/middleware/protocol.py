"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    def my_mw(request: Request, response: Response, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.

A middleware sees the request before the layers inside it and the
response after they return. It may replace either, or answer without
calling ``next`` at all.
"""

from collections.abc import Callable
from typing import Protocol, TypeAlias

from switchyard.http.request import Request
from switchyard.http.response import Response

# The next layer in the middleware chain
Next: TypeAlias = Callable[[Request, Response], Response]


class Middleware(Protocol):
    """Protocol for switchyard middleware.

    Accepts both functions and callable objects::

        # Function middleware
        def timing(request: Request, response: Response, next: Next) -> Response:
            start = time.monotonic()
            response = next(request, response)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RequireJSON:
            def __call__(self, request: Request, response: Response, next: Next) -> Response:
                ...
    """

    def __call__(self, request: Request, response: Response, next: Next) -> Response: ...
