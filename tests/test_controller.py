"""Tests for perch.controller — controller and endpoint registration."""

import pytest

from perch.controller import ANY, ControllerBuilder, controller_identifier, normalize_methods
from perch.docs.mime import JSON
from perch.docs.responses import Return, ReturnOverride
from perch.docs.shapes import Named, OptionOf
from perch.errors import ConfigurationError, MalformedPath
from perch.guards import guard


class UserController:
    def show(self, ctx: object) -> str:
        """Show one user.

        Longer description that is not part of the summary.
        """
        return "user"


def _allow(owner: object, ctx: object, data: object) -> None:
    return None


class TestNormalizeMethods:
    def test_single(self) -> None:
        assert normalize_methods("get") == frozenset({"GET"})

    def test_several(self) -> None:
        assert normalize_methods(["get", "Post"]) == frozenset({"GET", "POST"})

    def test_any_absorbs_others(self) -> None:
        assert normalize_methods(["GET", "any"]) == frozenset({ANY})

    @pytest.mark.parametrize("methods", [[], "", [" "]])
    def test_empty_rejected(self, methods: object) -> None:
        with pytest.raises(ConfigurationError):
            normalize_methods(methods)  # type: ignore[arg-type]


class TestControllerIdentifier:
    def test_instance(self) -> None:
        assert controller_identifier(UserController()) == "UserController"

    def test_class(self) -> None:
        assert controller_identifier(UserController) == "UserController"

    def test_string(self) -> None:
        assert controller_identifier("Reports") == "Reports"

    def test_none(self) -> None:
        assert controller_identifier(None) == ""


class TestControllerBuilder:
    def test_build_composes_absolute_patterns(self) -> None:
        builder = ControllerBuilder(UserController(), prefix="api", version=2)
        builder.endpoint("GET", "/<id>", "show")
        controller = builder.build()
        (endpoint,) = controller.endpoints
        assert str(endpoint.pattern) == "/api/v2/user/<id>"
        assert str(endpoint.relative) == "/<id>"
        assert controller.base == "user"

    def test_string_handler_resolves_on_owner(self) -> None:
        owner = UserController()
        builder = ControllerBuilder(owner)
        builder.endpoint("GET", "/<id>", "show")
        endpoint = builder.build().endpoints[0]
        assert endpoint.handler == owner.show
        assert endpoint.owner is owner
        assert endpoint.name == "show"
        assert endpoint.summary == "Show one user."

    def test_missing_owner_method(self) -> None:
        builder = ControllerBuilder(UserController())
        builder.endpoint("GET", "/", "missing")
        with pytest.raises(ConfigurationError, match="missing"):
            builder.build()

    def test_decorator_registration(self) -> None:
        builder = ControllerBuilder("Items")

        @builder.post("/", returns="Json<Item>", name="create_item")
        def create(ctx: object) -> dict[str, str]:
            return {}

        endpoint = builder.build().endpoints[0]
        assert endpoint.methods == frozenset({"POST"})
        assert endpoint.handler is create
        assert endpoint.name == "create_item"
        assert endpoint.responses.get(200).mime == JSON  # type: ignore[union-attr]

    def test_handler_attached_later(self) -> None:
        builder = ControllerBuilder("Items")
        handle = builder.endpoint(["GET", "HEAD"], "/<id>")

        @handle.handler
        def show(ctx: object) -> str:
            return "item"

        endpoint = builder.build().endpoints[0]
        assert endpoint.handler is show
        assert endpoint.label == "GET|HEAD /items/<id>"

    def test_handler_attached_twice(self) -> None:
        builder = ControllerBuilder("Items")
        handle = builder.endpoint("GET", "/", lambda ctx: "x")
        with pytest.raises(ConfigurationError, match="already has a handler"):
            handle.handler(lambda ctx: "y")

    def test_missing_handler(self) -> None:
        builder = ControllerBuilder("Items")
        builder.endpoint("GET", "/")
        with pytest.raises(ConfigurationError, match="no handler"):
            builder.build()

    def test_malformed_path_raised_at_build(self) -> None:
        builder = ControllerBuilder("Items")
        builder.endpoint("GET", "/<id", lambda ctx: "x")
        with pytest.raises(MalformedPath):
            builder.build()

    @pytest.mark.parametrize("version", [-2, True, "v1"])
    def test_bad_version(self, version: object) -> None:
        with pytest.raises(ConfigurationError, match="version"):
            ControllerBuilder("Items", version=version)  # type: ignore[arg-type]

    def test_build_is_idempotent_and_seals(self) -> None:
        builder = ControllerBuilder("Items")
        builder.endpoint("GET", "/", lambda ctx: "x")
        first = builder.build()
        assert builder.build() is first
        with pytest.raises(ConfigurationError, match="already built"):
            builder.endpoint("POST", "/", lambda ctx: "y")

    def test_guards_and_cookies_compiled(self) -> None:
        builder = ControllerBuilder("Items")
        builder.endpoint(
            "GET",
            "/",
            lambda ctx: "x",
            guards=[guard(_allow), _allow],
            requires_cookies=True,
        )
        endpoint = builder.build().endpoints[0]
        assert len(endpoint.guards) == 3
        assert endpoint.guards.names == ("_allow", "_allow")
        assert endpoint.requires_cookies

    def test_responses_merged(self) -> None:
        builder = ControllerBuilder("Items")
        builder.endpoint(
            "GET",
            "/<id>",
            lambda ctx: None,
            returns="Option<Item>",
            responses=[Return(403, "ApiError"), ReturnOverride("ApiError", mime="json")],
        )
        endpoint = builder.build().endpoints[0]
        assert endpoint.returns == OptionOf(Named("Item"))
        assert endpoint.responses.codes == (200, 403, 404)
        assert endpoint.responses.get(403).mime == JSON  # type: ignore[union-attr]

    def test_len(self) -> None:
        builder = ControllerBuilder("Items")
        builder.endpoint("GET", "/", lambda ctx: "x")
        builder.endpoint("POST", "/", lambda ctx: "x")
        assert len(builder) == 2
