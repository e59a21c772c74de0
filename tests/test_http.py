"""Tests for perch.http — headers, cookies, request and response."""

import pytest

from perch.http.cookies import parse_cookies
from perch.http.headers import Headers
from perch.http.request import Request
from perch.http.response import Response


class TestHeaders:
    def test_case_insensitive(self) -> None:
        headers = Headers([("Content-Type", "text/html")])
        assert headers["content-type"] == "text/html"
        assert "CONTENT-TYPE" in headers

    def test_multiple_values(self) -> None:
        headers = Headers([("Accept", "a"), ("accept", "b")])
        assert headers["Accept"] == "a"
        assert headers.get_list("ACCEPT") == ["a", "b"]
        assert len(headers) == 1

    def test_from_asgi(self) -> None:
        headers = Headers.from_asgi([(b"x-token", b"abc")])
        assert headers.get("X-Token") == "abc"
        assert headers.get("missing") is None

    def test_immutable(self) -> None:
        with pytest.raises(AttributeError):
            Headers().foo = "bar"  # type: ignore[attr-defined]


class TestParseCookies:
    def test_pairs(self) -> None:
        assert dict(parse_cookies("a=1; b=2")) == {"a": "1", "b": "2"}

    def test_quoted_value(self) -> None:
        assert parse_cookies('token="x y"')["token"] == "x y"

    def test_first_duplicate_wins(self) -> None:
        assert parse_cookies("a=1; a=2")["a"] == "1"

    def test_skips_malformed(self) -> None:
        assert dict(parse_cookies("junk; =x; ok=1")) == {"ok": "1"}

    def test_empty(self) -> None:
        assert dict(parse_cookies("")) == {}

    def test_read_only(self) -> None:
        with pytest.raises(TypeError):
            parse_cookies("a=1")["a"] = "2"  # type: ignore[index]


@pytest.mark.anyio
class TestRequest:
    async def test_build_splits_query(self) -> None:
        request = Request.build("get", "/items?page=2&page=3&q=")
        assert request.method == "GET"
        assert request.path == "/items"
        assert request.query == {"page": "2", "q": ""}

    async def test_body_is_cached(self) -> None:
        request = Request.build("POST", "/", body=b'{"a": 1}')
        assert await request.body() == b'{"a": 1}'
        assert await request.json() == {"a": 1}
        assert await request.text() == '{"a": 1}'

    async def test_from_asgi(self) -> None:
        async def receive() -> dict[str, object]:
            return {"type": "http.request", "body": b"hi", "more_body": False}

        scope = {
            "type": "http",
            "method": "put",
            "path": "/x",
            "headers": [(b"content-type", b"text/plain")],
            "query_string": b"a=1",
            "client": ("10.0.0.1", 5000),
        }
        request = Request.from_asgi(scope, receive)
        assert request.method == "PUT"
        assert request.content_type == "text/plain"
        assert request.query == {"a": "1"}
        assert request.client == ("10.0.0.1", 5000)
        assert await request.text() == "hi"


class TestResponse:
    def test_defaults(self) -> None:
        response = Response("hello")
        assert response.status == 200
        assert response.body_bytes == b"hello"

    def test_chaining_returns_new_objects(self) -> None:
        base = Response("x")
        changed = base.with_status(201).with_header("X-A", "1").with_content_type("text/csv")
        assert base.status == 200
        assert changed.status == 201
        assert changed.header("x-a") == "1"
        assert changed.content_type == "text/csv"

    def test_json(self) -> None:
        response = Response.json({"a": [1, 2]}, status=202)
        assert response.status == 202
        assert response.content_type == "application/json"
        assert response.json_body() == {"a": [1, 2]}
