"""Shared type aliases used across switchyard modules."""

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

# Route handler: user-defined callable, invoked through a strategy
Handler: TypeAlias = Callable[..., Any]

# Path arguments bound for one dispatch (parameter name -> raw string)
Arguments: TypeAlias = Mapping[str, str]

# Error handler: receives (request, error?) and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]
