"""Application configuration.

One frozen dataclass, passed to ``App``. Invalid values fail at
construction, never at the first request.
"""

from dataclasses import dataclass

from switchyard.errors import ConfigurationError
from switchyard.invocation.capture import OutputCapture, coerce_output_capture
from switchyard.invocation.strategies import STRATEGIES


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, output_capture=OutputCapture.PREPEND)
    """

    debug: bool = False

    # Default output capture mode for routes registered through the app
    output_capture: OutputCapture | str = OutputCapture.APPEND

    # Invocation strategy registered as the container's found handler
    strategy: str = "request_response"

    def __post_init__(self) -> None:
        # Normalizes "append" / "prepend" / "disabled" strings to the enum
        object.__setattr__(
            self, "output_capture", coerce_output_capture(self.output_capture)
        )
        if self.strategy not in STRATEGIES:
            choices = ", ".join(sorted(STRATEGIES))
            msg = f"Unknown invocation strategy {self.strategy!r}. Choose one of: {choices}"
            raise ConfigurationError(msg)
