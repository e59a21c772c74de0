"""Tests for perch.routing.compose — controller scope + endpoint path."""

import pytest

from perch.errors import ConfigurationError, MalformedPath
from perch.routing.compose import base_segment, compose, compose_path


class TestBaseSegment:
    def test_strips_controller_suffix(self) -> None:
        assert base_segment("UserController") == "user"

    def test_lowercases(self) -> None:
        assert base_segment("Inventory") == "inventory"

    def test_name_wins(self) -> None:
        assert base_segment("UserController", "people") == "people"

    def test_empty_name_is_root(self) -> None:
        assert base_segment("UserController", "") == ""


class TestComposePath:
    def test_full_scope(self) -> None:
        path = compose_path("api", 1, None, "UserController", "/<id>")
        assert path == "/api/v1/user/<id>"

    def test_no_prefix_or_version(self) -> None:
        assert compose_path(None, None, None, "UserController", "/") == "/user"

    def test_name_override(self) -> None:
        assert compose_path("api", None, "people", "UserController", "/") == "/api/people"

    def test_empty_name_mounts_at_prefix(self) -> None:
        assert compose_path("/api/", 2, "", "UserController", "/health") == "/api/v2/health"

    def test_separators_collapse(self) -> None:
        assert compose_path("/api//", 0, "/users/", "X", "//<id>//") == "/api/v0/users/<id>"

    @pytest.mark.parametrize("version", [-1, True, "1", 1.5])
    def test_rejects_bad_version(self, version: object) -> None:
        with pytest.raises(ConfigurationError, match="version"):
            compose_path("api", version, None, "UserController", "/")  # type: ignore[arg-type]


class TestCompose:
    def test_returns_pattern(self) -> None:
        pattern = compose("api", 1, None, "UserController", "/<id>")
        assert str(pattern) == "/api/v1/user/<id>"
        assert pattern.param_names == ("id",)

    def test_duplicate_name_across_prefix_and_path(self) -> None:
        with pytest.raises(MalformedPath, match="duplicate"):
            compose("tenants/<id>", None, None, "UserController", "/<id>")
