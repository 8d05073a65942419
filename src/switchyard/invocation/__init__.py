"""Handler invocation — strategies and output capture.

A route calls its handler through an invocation strategy, optionally
inside an output capture region:

    RequestResponse -- handler(request, response, arguments)
    RequestResponseArgs -- handler(request, response, *arguments.values())
    SignatureStrategy -- keyword arguments chosen from the handler signature
    OutputBuffer -- scoped region collecting text printed by the handler
"""

from switchyard.invocation.capture import OutputBuffer, OutputCapture
from switchyard.invocation.strategies import (
    InvocationStrategy,
    RequestResponse,
    RequestResponseArgs,
    SignatureStrategy,
    build_strategy,
)

__all__ = [
    "InvocationStrategy",
    "OutputBuffer",
    "OutputCapture",
    "RequestResponse",
    "RequestResponseArgs",
    "SignatureStrategy",
    "build_strategy",
]
