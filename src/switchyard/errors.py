"""Switchyard exception hierarchy.

Shared across routes, groups, the middleware stack, and the app so every
module raises and catches the same types.

Handler failures are not part of this hierarchy. Whatever a handler raises
propagates out of the route unchanged.
"""

from dataclasses import dataclass


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when routes, groups, or the app are set up incorrectly.

    Raised at the call site that made the bad change, never deferred
    to dispatch time.
    """


class InvalidConfiguration(ConfigurationError):
    """A route setting was given a value outside its allowed set.

    Raised for an unknown output capture mode or an empty method set.
    """


class InvalidArgument(SwitchyardError, TypeError):
    """A route mutator was called with a value of the wrong type."""


class UnexpectedValue(SwitchyardError):
    """A middleware or the route kernel returned something that is not a Response."""


class ResolutionError(SwitchyardError):
    """A string handler or middleware reference could not be resolved."""


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Raised by path matchers, middleware, or handlers. ``App.handle``
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — a route exists for the path but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
