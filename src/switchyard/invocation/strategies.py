"""Invocation strategies — how a route calls its handler.

A strategy is any callable matching::

    def strategy(handler, request, response, arguments) -> Any: ...

It returns whatever the handler returned. The route reconciles that value
into a ``Response`` afterwards, so a strategy never needs to know about
output capture or body merging.

Strategies are chosen by configuration (``AppConfig.strategy``) and
handed to routes through the container under ``FOUND_HANDLER``. Routes
without a container fall back to ``RequestResponse``.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Protocol

from switchyard._internal.types import Arguments, Handler
from switchyard.errors import ConfigurationError
from switchyard.http.request import Request
from switchyard.http.response import Response

if TYPE_CHECKING:
    from switchyard.container import Container


class InvocationStrategy(Protocol):
    """Protocol for handler invocation strategies."""

    def __call__(
        self,
        handler: Handler,
        request: Request,
        response: Response,
        arguments: Arguments,
    ) -> Any: ...


class RequestResponse:
    """Call ``handler(request, response, arguments)``.

    Each argument is also attached to the request as an attribute, so
    handlers can read ``request.attributes["id"]`` as well.
    """

    __slots__ = ()

    def __call__(
        self,
        handler: Handler,
        request: Request,
        response: Response,
        arguments: Arguments,
    ) -> Any:
        for name, value in arguments.items():
            request = request.with_attribute(name, value)
        return handler(request, response, dict(arguments))


class RequestResponseArgs:
    """Call ``handler(request, response, *arguments.values())``.

    Arguments are passed positionally in the order the matcher bound them.
    """

    __slots__ = ()

    def __call__(
        self,
        handler: Handler,
        request: Request,
        response: Response,
        arguments: Arguments,
    ) -> Any:
        return handler(request, response, *arguments.values())


class SignatureStrategy:
    """Call the handler with keyword arguments chosen from its signature.

    Resolution order, per parameter:

    1. ``request`` (by name or ``Request`` annotation)
    2. ``response`` (by name or ``Response`` annotation)
    3. Path arguments (by name, converted to the annotated type when
       the conversion succeeds, left as the raw string otherwise)
    4. Container services (by annotation, when a container is given)

    Parameters that match nothing are left to their defaults.
    """

    __slots__ = ("container",)

    def __init__(self, container: Container | None = None) -> None:
        self.container = container

    def __call__(
        self,
        handler: Handler,
        request: Request,
        response: Response,
        arguments: Arguments,
    ) -> Any:
        return handler(**self.build_kwargs(handler, request, response, arguments))

    def build_kwargs(
        self,
        handler: Handler,
        request: Request,
        response: Response,
        arguments: Arguments,
    ) -> dict[str, Any]:
        """Inspect *handler*'s signature and build its keyword arguments."""
        sig = inspect.signature(handler, eval_str=True)
        kwargs: dict[str, Any] = {}

        for name, param in sig.parameters.items():
            annotation = param.annotation
            if name == "request" or annotation is Request:
                kwargs[name] = request
            elif name == "response" or annotation is Response:
                kwargs[name] = response
            elif name in arguments:
                value = arguments[name]
                if annotation is not inspect.Parameter.empty:
                    try:
                        kwargs[name] = annotation(value)
                    except (ValueError, TypeError):
                        kwargs[name] = value
                else:
                    kwargs[name] = value
            elif (
                self.container is not None
                and annotation is not inspect.Parameter.empty
                and self.container.has(annotation)
            ):
                kwargs[name] = self.container.get(annotation)

        return kwargs


# Names accepted by AppConfig.strategy
STRATEGIES: dict[str, type] = {
    "request_response": RequestResponse,
    "request_response_args": RequestResponseArgs,
    "signature": SignatureStrategy,
}


def build_strategy(name: str, container: Container | None = None) -> InvocationStrategy:
    """Create the strategy registered under *name*.

    Raises ``ConfigurationError`` for an unknown name.
    """
    match name:
        case "request_response":
            return RequestResponse()
        case "request_response_args":
            return RequestResponseArgs()
        case "signature":
            return SignatureStrategy(container)
    choices = ", ".join(sorted(STRATEGIES))
    msg = f"Unknown invocation strategy {name!r}. Choose one of: {choices}"
    raise ConfigurationError(msg)
