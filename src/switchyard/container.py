"""Service container — lazily built, process-wide services.

Register a zero-argument factory under a key (a string or a type);
the first ``get()`` calls it and every later ``get()`` returns the
same instance::

    container = Container()
    container.provide(FOUND_HANDLER, SignatureStrategy)
    strategy = container.get(FOUND_HANDLER)

Routes ask their container for the invocation strategy
(``FOUND_HANDLER``) and for the resolver that turns string handler
references into callables (``CALLABLE_RESOLVER``).

Thread safety:
    Instances are created under a reentrant lock with a double check, so
    a factory runs at most once even when two dispatches ask at once, and
    a factory may itself ``get()`` the services it depends on.
"""

import threading
from collections.abc import Callable, Hashable
from typing import Any

from switchyard.errors import ResolutionError

FOUND_HANDLER = "found_handler"
"""Key of the invocation strategy used by routes."""

CALLABLE_RESOLVER = "callable_resolver"
"""Key of the resolver for string handler and middleware references."""


class Container:
    """A minimal service container keyed by name or type."""

    __slots__ = ("_factories", "_instances", "_lock")

    def __init__(self) -> None:
        self._factories: dict[Hashable, Callable[[], Any]] = {}
        self._instances: dict[Hashable, Any] = {}
        self._lock = threading.RLock()

    def provide(self, key: Hashable, factory: Callable[[], Any]) -> None:
        """Register *factory* for *key*, dropping any instance built earlier."""
        with self._lock:
            self._factories[key] = factory
            self._instances.pop(key, None)

    def set(self, key: Hashable, instance: Any) -> None:
        """Register an already-built *instance* for *key*."""
        with self._lock:
            self._factories.pop(key, None)
            self._instances[key] = instance

    def has(self, key: Hashable) -> bool:
        """True if *key* has a factory or an instance."""
        return key in self._instances or key in self._factories

    def get(self, key: Hashable) -> Any:
        """Return the service for *key*, building it on first use.

        Raises ``ResolutionError`` if nothing is registered for *key*.
        """
        try:
            return self._instances[key]
        except KeyError:
            pass
        with self._lock:
            if key in self._instances:
                return self._instances[key]
            factory = self._factories.get(key)
            if factory is None:
                msg = f"No service registered for {key!r}"
                raise ResolutionError(msg)
            instance = factory()
            self._instances[key] = instance
            return instance

    def __contains__(self, key: object) -> bool:
        return isinstance(key, Hashable) and self.has(key)
