"""Output capture — collect text a handler prints instead of returning.

Handlers may write to ``sys.stdout`` as a side effect (``print()``)
rather than returning a body. A route wraps the handler call in an
``OutputBuffer`` region and merges the collected text into the response.

While at least one region is open anywhere in the process, ``sys.stdout``
is replaced by a router that sends each write to the buffer of the
region active in the *current context*, or to the real stream when the
current context has none. Regions are scoped per thread and per task,
so concurrent dispatches never see each other's output. Binary writes to
``sys.stdout.buffer`` are routed the same way and join the region's text.

Usage::

    with OutputBuffer() as buffer:
        handler()
    text = buffer.text

If the body of the ``with`` raises, the region is torn down and the
collected text is discarded before the exception leaves the block.
"""

from __future__ import annotations

import io
import sys
import threading
from contextvars import ContextVar, Token
from enum import StrEnum
from types import TracebackType
from typing import Any, BinaryIO, TextIO

from switchyard.errors import InvalidConfiguration


class OutputCapture(StrEnum):
    """How a route merges printed output into its response."""

    DISABLED = "disabled"
    PREPEND = "prepend"
    APPEND = "append"


def coerce_output_capture(mode: object) -> OutputCapture:
    """Normalize *mode* to an ``OutputCapture`` member.

    Accepts a member, its string value, or ``False`` as an alias for
    ``DISABLED``. Raises ``InvalidConfiguration`` for anything else.
    """
    if mode is False:
        return OutputCapture.DISABLED
    if isinstance(mode, OutputCapture):
        return mode
    if isinstance(mode, str):
        try:
            return OutputCapture(mode)
        except ValueError:
            pass
    choices = ", ".join(repr(m.value) for m in OutputCapture)
    msg = f"Unknown output capture mode {mode!r}. Expected one of: {choices}"
    raise InvalidConfiguration(msg)


# Buffer of the innermost open region in this context (None outside any region)
_active_buffer: ContextVar[io.StringIO | None] = ContextVar(
    "switchyard_output_buffer", default=None
)


class _StdoutRouter:
    """Stand-in for ``sys.stdout`` while capture regions are open."""

    __slots__ = ("target",)

    def __init__(self, target: TextIO | None) -> None:
        self.target = target

    def write(self, text: str) -> int:
        buffer = _active_buffer.get()
        if buffer is not None:
            return buffer.write(text)
        if self.target is None:
            return len(text)
        return self.target.write(text)

    def flush(self) -> None:
        if _active_buffer.get() is None and self.target is not None:
            self.target.flush()

    @property
    def buffer(self) -> _BinaryRouter:
        """Binary side of the stream, routed like text writes."""
        return _BinaryRouter(getattr(self.target, "buffer", None))

    def __getattr__(self, name: str) -> Any:
        return getattr(self.target, name)


class _BinaryRouter:
    """Stand-in for ``sys.stdout.buffer`` while capture regions are open.

    Bytes written inside a region are decoded as UTF-8 (undecodable bytes
    become U+FFFD) and join the region's text.
    """

    __slots__ = ("target",)

    def __init__(self, target: BinaryIO | None) -> None:
        self.target = target

    def write(self, data: bytes) -> int:
        buffer = _active_buffer.get()
        if buffer is not None:
            buffer.write(bytes(data).decode("utf-8", errors="replace"))
            return len(data)
        if self.target is None:
            return len(data)
        return self.target.write(data)

    def flush(self) -> None:
        if _active_buffer.get() is None and self.target is not None:
            self.target.flush()

    def __getattr__(self, name: str) -> Any:
        return getattr(self.target, name)


_install_lock = threading.Lock()
_open_regions = 0
_router: _StdoutRouter | None = None


def _install() -> None:
    global _open_regions, _router
    with _install_lock:
        if _open_regions == 0:
            _router = _StdoutRouter(sys.stdout)
            sys.stdout = _router  # type: ignore[assignment]
        _open_regions += 1


def _uninstall() -> None:
    global _open_regions, _router
    with _install_lock:
        _open_regions -= 1
        if _open_regions == 0 and _router is not None:
            # Someone else may have swapped stdout while we were installed
            if sys.stdout is _router:
                sys.stdout = _router.target  # type: ignore[assignment]
            _router = None


def open_regions() -> int:
    """Number of capture regions currently open in the process."""
    return _open_regions


class OutputBuffer:
    """A scoped capture region. Not reusable: enter it once.

    ``text`` is empty until the region exits normally. A region that
    exits with an exception keeps ``text`` empty.
    """

    __slots__ = ("_buffer", "_text", "_token")

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        self._text = ""
        self._token: Token[io.StringIO | None] | None = None

    def __enter__(self) -> OutputBuffer:
        if self._token is not None:
            msg = "OutputBuffer regions cannot be re-entered."
            raise RuntimeError(msg)
        _install()
        self._token = _active_buffer.set(self._buffer)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        assert self._token is not None
        try:
            _active_buffer.reset(self._token)
        finally:
            _uninstall()
        if exc_type is None:
            self._text = self._buffer.getvalue()
        self._buffer.close()

    @property
    def text(self) -> str:
        """Text printed inside the region."""
        return self._text
