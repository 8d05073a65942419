"""Tests for switchyard.invocation.strategies — handler calling conventions."""

from types import MappingProxyType

import pytest

from switchyard.container import Container
from switchyard.errors import ConfigurationError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.invocation.strategies import (
    STRATEGIES,
    RequestResponse,
    RequestResponseArgs,
    SignatureStrategy,
    build_strategy,
)


def _call(strategy, handler, **arguments):
    return strategy(handler, Request.build("GET", "/"), Response(), MappingProxyType(arguments))


class TestRequestResponse:
    def test_passes_arguments_mapping(self) -> None:
        def handler(request, response, args):
            return args

        assert _call(RequestResponse(), handler, id="1", slug="x") == {"id": "1", "slug": "x"}

    def test_arguments_become_request_attributes(self) -> None:
        def handler(request, response, args):
            return request.attribute("id")

        assert _call(RequestResponse(), handler, id="42") == "42"

    def test_handler_gets_a_mutable_copy(self) -> None:
        frozen = MappingProxyType({"id": "1"})

        def handler(request, response, args):
            args["id"] = "changed"
            return args

        RequestResponse()(handler, Request.build("GET", "/"), Response(), frozen)
        assert frozen["id"] == "1"

    def test_returns_handler_result_unchanged(self) -> None:
        marker = object()
        assert _call(RequestResponse(), lambda req, res, args: marker) is marker


class TestRequestResponseArgs:
    def test_positional_in_bound_order(self) -> None:
        def handler(request, response, first, second):
            return f"{first}-{second}"

        assert _call(RequestResponseArgs(), handler, first="a", second="b") == "a-b"

    def test_no_arguments(self) -> None:
        def handler(request, response):
            return "bare"

        assert _call(RequestResponseArgs(), handler) == "bare"


class _Store:
    def __init__(self) -> None:
        self.name = "store"


class TestSignatureStrategy:
    def test_request_and_response_by_name(self) -> None:
        def handler(request, response):
            return (request.method, response.status)

        assert _call(SignatureStrategy(), handler) == ("GET", 200)

    def test_request_by_annotation(self) -> None:
        def handler(req: Request) -> str:
            return req.path

        assert _call(SignatureStrategy(), handler) == "/"

    def test_path_argument_converted(self) -> None:
        def handler(id: int) -> int:
            return id

        assert _call(SignatureStrategy(), handler, id="42") == 42

    def test_failed_conversion_keeps_string(self) -> None:
        def handler(id: int) -> object:
            return id

        assert _call(SignatureStrategy(), handler, id="abc") == "abc"

    def test_unannotated_argument_is_string(self) -> None:
        def handler(slug):
            return slug

        assert _call(SignatureStrategy(), handler, slug="hello") == "hello"

    def test_service_injected_by_annotation(self) -> None:
        container = Container()
        container.provide(_Store, _Store)

        def handler(id: int, store: _Store) -> str:
            return f"{store.name}:{id}"

        assert _call(SignatureStrategy(container), handler, id="3") == "store:3"

    def test_unknown_parameter_uses_default(self) -> None:
        def handler(page: int = 1) -> int:
            return page

        assert _call(SignatureStrategy(), handler) == 1

    def test_build_kwargs_skips_unmatched(self) -> None:
        def handler(request, missing=None):
            return None

        kwargs = SignatureStrategy().build_kwargs(
            handler, Request.build("GET", "/"), Response(), MappingProxyType({})
        )
        assert list(kwargs) == ["request"]


class TestBuildStrategy:
    @pytest.mark.parametrize("name", sorted(STRATEGIES))
    def test_known_names(self, name: str) -> None:
        assert isinstance(build_strategy(name), STRATEGIES[name])

    def test_signature_gets_container(self) -> None:
        container = Container()
        strategy = build_strategy("signature", container)
        assert isinstance(strategy, SignatureStrategy)
        assert strategy.container is container

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown invocation strategy"):
            build_strategy("telepathy")
