"""Request and response value types.

Both are frozen dataclasses. Every change returns a new object.
"""

from switchyard.http.headers import Headers
from switchyard.http.request import Request
from switchyard.http.response import Response

__all__ = ["Headers", "Request", "Response"]
