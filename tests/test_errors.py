"""Tests for perch.errors — the exception and warning hierarchy."""

import dataclasses

import pytest

from perch.errors import (
    ConfigurationError,
    GuardFailure,
    HTTPError,
    MalformedPath,
    MethodNotAllowed,
    NotFound,
    PerchError,
    PerchWarning,
    RouteConflict,
    UnknownMimeAlias,
    UnmatchedOverride,
)
from perch.http.response import Response


class TestHierarchy:
    def test_configuration_errors(self) -> None:
        assert issubclass(MalformedPath, ConfigurationError)
        assert issubclass(RouteConflict, ConfigurationError)
        assert issubclass(ConfigurationError, PerchError)

    def test_http_errors(self) -> None:
        for cls in (NotFound, MethodNotAllowed, GuardFailure):
            assert issubclass(cls, HTTPError)
            assert issubclass(cls, PerchError)

    def test_warnings(self) -> None:
        assert issubclass(UnknownMimeAlias, PerchWarning)
        assert issubclass(UnmatchedOverride, PerchWarning)
        assert issubclass(PerchWarning, UserWarning)


class TestMessages:
    def test_malformed_path(self) -> None:
        exc = MalformedPath("/a/<", "unbalanced")
        assert exc.path == "/a/<"
        assert str(exc) == "Malformed path '/a/<': unbalanced"

    def test_route_conflict_overlap(self) -> None:
        exc = RouteConflict("GET", "/a/<y>", "/a/<x>")
        assert str(exc) == "Route conflict: GET /a/<y> overlaps GET /a/<x>"

    def test_route_conflict_duplicate(self) -> None:
        assert "registered twice" in str(RouteConflict("GET", "/a", "/a"))

    def test_http_error_str(self) -> None:
        assert str(HTTPError(400, "bad")) == "400: bad"
        assert str(HTTPError(400)) == "400"

    def test_method_not_allowed_allow_header(self) -> None:
        exc = MethodNotAllowed(frozenset({"POST", "GET"}))
        assert exc.status == 405
        assert exc.headers == (("Allow", "GET, POST"),)


class TestHTTPErrorImmutability:
    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            NotFound().status = 500  # type: ignore[misc]


class TestGuardFailure:
    def test_defaults(self) -> None:
        exc = GuardFailure()
        assert (exc.status, exc.detail, exc.response) == (403, "Forbidden", None)

    def test_carries_response(self) -> None:
        response = Response("later", status=429)
        assert GuardFailure(response=response).response is response
