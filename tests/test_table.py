"""Tests for perch.routing.table — the dispatch table."""

import anyio
import pytest

from perch.controller import ControllerBuilder
from perch.errors import MethodNotAllowed, NotFound, RouteConflict
from perch.routing.table import DispatchTable


def _handler(ctx: object) -> str:
    return "ok"


def _builder(name: str = "") -> ControllerBuilder:
    return ControllerBuilder("Users", name=name)


class TestBuild:
    def test_conflict_ignores_param_names(self) -> None:
        builder = _builder()
        builder.endpoint("GET", "/a/<x>", _handler)
        builder.endpoint("GET", "/a/<y>", _handler)
        with pytest.raises(RouteConflict) as exc_info:
            DispatchTable.build([builder])
        assert "/a/<y>" in str(exc_info.value)
        assert "/a/<x>" in str(exc_info.value)

    def test_conflict_across_controllers(self) -> None:
        first = ControllerBuilder("Api", name="")
        first.endpoint("GET", "/users", _handler)
        second = ControllerBuilder("UserController", name="users")
        second.endpoint("GET", "/", _handler)
        with pytest.raises(RouteConflict, match="registered twice"):
            DispatchTable.build([first, second])

    def test_any_overlaps_every_method(self) -> None:
        builder = _builder()
        builder.endpoint("POST", "/items", _handler)
        builder.endpoint("ANY", "/items", _handler)
        with pytest.raises(RouteConflict):
            DispatchTable.build([builder])

    def test_method_after_any_conflicts(self) -> None:
        builder = _builder()
        builder.endpoint("ANY", "/items", _handler)
        builder.endpoint("DELETE", "/items", _handler)
        with pytest.raises(RouteConflict):
            DispatchTable.build([builder])

    def test_different_methods_share_pattern(self) -> None:
        builder = _builder()
        builder.endpoint("GET", "/items", _handler)
        builder.endpoint("POST", "/items", _handler)
        assert len(DispatchTable.build([builder])) == 2

    def test_param_and_static_coexist(self) -> None:
        builder = _builder()
        builder.endpoint("GET", "/items/<id>", _handler)
        builder.endpoint("GET", "/items/new", _handler)
        assert len(DispatchTable.build([builder])) == 2


class TestLookup:
    @pytest.fixture
    def table(self) -> DispatchTable:
        users = ControllerBuilder("UserController", prefix="api", version=1)
        users.endpoint("GET", "/", _handler, name="index")
        users.endpoint("GET", "/<id>", _handler, name="show")
        users.endpoint("GET", "/me", _handler, name="me")
        users.endpoint(["PUT", "PATCH"], "/<id>", _handler, name="update")
        users.endpoint("GET", "/<id>/files/<path..>", _handler, name="file")
        users.endpoint("ANY", "/<id>/hook", _handler, name="hook")
        users.endpoint("PURGE", "/<id>/cache", _handler, name="purge")
        return DispatchTable.build([users])

    def test_static(self, table: DispatchTable) -> None:
        match = table.lookup("GET", "/api/v1/user")
        assert match is not None
        assert match.endpoint.name == "index"
        assert match.params == {}

    def test_param(self, table: DispatchTable) -> None:
        match = table.lookup("GET", "/api/v1/user/42")
        assert match is not None
        assert match.endpoint.name == "show"
        assert match.params == {"id": "42"}

    def test_static_beats_param(self, table: DispatchTable) -> None:
        match = table.lookup("GET", "/api/v1/user/me")
        assert match is not None
        assert match.endpoint.name == "me"

    def test_method_is_case_insensitive(self, table: DispatchTable) -> None:
        match = table.lookup("patch", "/api/v1/user/7")
        assert match is not None
        assert match.endpoint.name == "update"

    def test_wildcard(self, table: DispatchTable) -> None:
        match = table.lookup("GET", "/api/v1/user/7/files/docs/a.txt")
        assert match is not None
        assert match.params == {"id": "7", "path": "docs/a.txt"}

    def test_any_method(self, table: DispatchTable) -> None:
        for method in ("GET", "POST", "OPTIONS", "PROPFIND"):
            match = table.lookup(method, "/api/v1/user/7/hook")
            assert match is not None
            assert match.endpoint.name == "hook"

    def test_custom_method(self, table: DispatchTable) -> None:
        match = table.lookup("PURGE", "/api/v1/user/7/cache")
        assert match is not None
        assert match.endpoint.name == "purge"

    def test_no_match(self, table: DispatchTable) -> None:
        assert table.lookup("GET", "/api/v2/user") is None
        assert table.lookup("GET", "/API/v1/user") is None

    def test_wrong_method_is_none(self, table: DispatchTable) -> None:
        assert table.lookup("DELETE", "/api/v1/user/7") is None

    def test_match_raises_not_found(self, table: DispatchTable) -> None:
        with pytest.raises(NotFound):
            table.match("GET", "/nowhere")

    def test_match_raises_method_not_allowed(self, table: DispatchTable) -> None:
        with pytest.raises(MethodNotAllowed) as exc_info:
            table.match("DELETE", "/api/v1/user/7")
        assert dict(exc_info.value.headers)["Allow"] == "GET, PATCH, PUT"

    def test_endpoints_in_registration_order(self, table: DispatchTable) -> None:
        assert [e.name for e in table.endpoints][:3] == ["index", "show", "me"]

    @pytest.mark.anyio
    async def test_concurrent_lookups(self, table: DispatchTable) -> None:
        results: dict[int, dict[str, str]] = {}

        async def look(n: int) -> None:
            await anyio.sleep(0)
            match = table.lookup("GET", f"/api/v1/user/{n}")
            assert match is not None
            results[n] = match.params

        async with anyio.create_task_group() as tg:
            for n in range(50):
                tg.start_soon(look, n)

        assert results == {n: {"id": str(n)} for n in range(50)}
