"""Immutable HTTP request.

Frozen metadata plus a bag of attributes. Middleware and routes never
mutate a request; they tag it with ``with_attribute()`` and pass the new
copy inward.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from switchyard.http.headers import Headers


def _empty_attributes() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``attributes`` carries per-dispatch data added by the dispatch layer
    and middleware, such as the matched route and its bound arguments.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query_string: str = ""
    body: bytes = b""
    attributes: Mapping[str, Any] = field(default_factory=_empty_attributes)

    # -- Attributes (copy-on-write) --

    def with_attribute(self, name: str, value: Any) -> Request:
        """Return a new Request with *name* set to *value*."""
        return replace(
            self, attributes=MappingProxyType({**self.attributes, name: value})
        )

    def without_attribute(self, name: str) -> Request:
        """Return a new Request without the attribute *name*."""
        if name not in self.attributes:
            return self
        remaining = {k: v for k, v in self.attributes.items() if k != name}
        return replace(self, attributes=MappingProxyType(remaining))

    def attribute(self, name: str, default: Any = None) -> Any:
        """Return the attribute *name*, or *default* if it is not set."""
        return self.attributes.get(name, default)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")

    # -- Factory --

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        query_string: str = "",
        body: bytes | str = b"",
    ) -> Request:
        """Create a Request from plain values."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(
            method=method.upper(),
            path=path,
            headers=Headers.from_mapping(headers),
            query_string=query_string,
            body=body,
        )
