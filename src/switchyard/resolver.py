"""Callable resolution — turns string references into callables.

Handlers and middleware may be given as strings instead of callables:

- ``"service:method"`` -- ``method`` of the container service ``service``
- ``"service"`` -- the container service itself (must be callable)
- ``"package.module:attr"`` -- ``attr`` imported from ``package.module``;
  dotted attributes (``"module:Class.method"``) are followed

Container services win over modules of the same name.
"""

import importlib
from typing import Any

from switchyard.container import CALLABLE_RESOLVER, Container
from switchyard.errors import ResolutionError


class CallableResolver:
    """Resolve handler and middleware references.

    Callables pass through untouched. Anything that is neither a callable
    nor a resolvable string raises ``ResolutionError``.
    """

    __slots__ = ("container",)

    def __init__(self, container: Container | None = None) -> None:
        self.container = container

    def resolve(self, reference: Any) -> Any:
        """Return the callable *reference* points to."""
        if callable(reference):
            return reference
        if not isinstance(reference, str):
            msg = f"Cannot resolve {reference!r}: expected a callable or a string reference"
            raise ResolutionError(msg)

        target, _, attr_path = reference.partition(":")
        obj = self._lookup_target(reference, target)

        for attr in attr_path.split(".") if attr_path else ():
            try:
                obj = getattr(obj, attr)
            except AttributeError as exc:
                msg = f"Cannot resolve {reference!r}: {target!r} has no attribute path {attr_path!r}"
                raise ResolutionError(msg) from exc

        if not callable(obj):
            msg = f"{reference!r} resolved to {type(obj).__name__}, which is not callable"
            raise ResolutionError(msg)
        return obj

    def _lookup_target(self, reference: str, target: str) -> Any:
        if self.container is not None and self.container.has(target):
            return self.container.get(target)
        try:
            return importlib.import_module(target)
        except (ImportError, ValueError) as exc:
            msg = f"Cannot resolve {reference!r}: no service or module named {target!r}"
            raise ResolutionError(msg) from exc

    def __call__(self, reference: Any) -> Any:
        return self.resolve(reference)


def resolver_for(container: Container | None) -> CallableResolver:
    """Return the container's resolver, or a default one bound to *container*."""
    if container is not None and container.has(CALLABLE_RESOLVER):
        return container.get(CALLABLE_RESOLVER)
    return CallableResolver(container)
