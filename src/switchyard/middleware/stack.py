"""Middleware stack — nested wrappers around a kernel callable.

The stack is last-in, first-out: every ``add()`` wraps everything
registered so far, so the most recently added middleware is the
outermost layer and sees the request first::

    stack = MiddlewareStack(kernel)
    stack.add(inner)
    stack.add(outer)
    stack(request, response)  # outer -> inner -> kernel -> inner -> outer

Callers that hold a list in execution order register it reversed.
"""

from __future__ import annotations

from switchyard.errors import UnexpectedValue
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.protocol import Middleware, Next


class MiddlewareStack:
    """LIFO middleware stack around a terminal kernel.

    Every layer's return value is checked: a middleware (or the kernel)
    that returns anything but a ``Response`` raises ``UnexpectedValue``.
    """

    __slots__ = ("_kernel", "_layers", "_top")

    def __init__(self, kernel: Next) -> None:
        self._kernel = kernel
        self._layers: list[Middleware] = []
        self._top: Next = self._call_kernel

    def _call_kernel(self, request: Request, response: Response) -> Response:
        result = self._kernel(request, response)
        if not isinstance(result, Response):
            msg = f"Kernel {self._kernel!r} must return a Response, got {type(result).__name__}"
            raise UnexpectedValue(msg)
        return result

    def add(self, middleware: Middleware) -> MiddlewareStack:
        """Wrap the current stack in *middleware*. Returns the stack."""
        inner = self._top

        def layer(
            request: Request,
            response: Response,
            _mw: Middleware = middleware,
            _next: Next = inner,
        ) -> Response:
            result = _mw(request, response, _next)
            if not isinstance(result, Response):
                msg = f"Middleware {_mw!r} must return a Response, got {type(result).__name__}"
                raise UnexpectedValue(msg)
            return result

        self._top = layer
        self._layers.append(middleware)
        return self

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """Registered middleware in execution order (outermost first)."""
        return tuple(reversed(self._layers))

    def __len__(self) -> int:
        return len(self._layers)

    def __call__(self, request: Request, response: Response) -> Response:
        """Thread *request* and *response* through every layer to the kernel."""
        return self._top(request, response)
