"""Switchyard — route execution for an HTTP dispatch layer.

Binds matched path parameters, composes group and route middleware into
one onion, invokes handlers through a pluggable strategy, and reconciles
whatever they produce (a Response, body text, or printed output) into a
single Response.

Basic usage::

    from switchyard import App, Request
    from switchyard.testing import SegmentMatcher

    app = App(matcher=SegmentMatcher())

    @app.route("/hello/{name}")
    def hello(request, response, args):
        print("Hello, ")
        return args["name"]

    app.handle(Request.build("GET", "/hello/world")).text  # "worldHello, \\n"
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Container",
    "HTTPError",
    "InvalidArgument",
    "InvalidConfiguration",
    "MethodNotAllowed",
    "Middleware",
    "MiddlewareStack",
    "Next",
    "NotFound",
    "OutputCapture",
    "Request",
    "Response",
    "Route",
    "RouteGroup",
    "SwitchyardError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "App":
        from switchyard.app import App

        return App

    if name == "AppConfig":
        from switchyard.config import AppConfig

        return AppConfig

    if name == "Container":
        from switchyard.container import Container

        return Container

    if name in ("Request", "Response"):
        from switchyard import http as _http

        return getattr(_http, name)

    if name in ("Middleware", "MiddlewareStack", "Next"):
        from switchyard import middleware as _mw

        return getattr(_mw, name)

    if name == "OutputCapture":
        from switchyard.invocation.capture import OutputCapture

        return OutputCapture

    if name == "Route":
        from switchyard.routing.route import Route

        return Route

    if name == "RouteGroup":
        from switchyard.routing.group import RouteGroup

        return RouteGroup

    if name in (
        "ConfigurationError",
        "HTTPError",
        "InvalidArgument",
        "InvalidConfiguration",
        "MethodNotAllowed",
        "NotFound",
        "SwitchyardError",
    ):
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
