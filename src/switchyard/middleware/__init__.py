"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(request: Request, response: Response, next: Next) -> Response

    MiddlewareStack -- LIFO stack of middleware around a kernel callable
"""

from switchyard.middleware.protocol import Middleware, Next
from switchyard.middleware.stack import MiddlewareStack

__all__ = ["Middleware", "MiddlewareStack", "Next"]
