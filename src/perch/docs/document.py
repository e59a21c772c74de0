"""Documentation synthesis.

Walks every frozen controller and endpoint into one ``Document``: a tree
of operations, each with its path, method and merged response entries.
Renderers consume the tree; ``Document.to_openapi()`` produces an
OpenAPI 3.1 shaped dict for tools that speak it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

from perch.config import AppConfig
from perch.controller import ANY, Controller, ControllerBuilder
from perch.docs.responses import ResponseEntry
from perch.docs.shapes import Empty, Named, Raw
from perch.routing.pattern import Pattern

logger = logging.getLogger("perch.docs")

OPENAPI_VERSION = "3.1.0"

# Verbs an OpenAPI path item can describe; ANY expands to all of them
OPENAPI_METHODS: tuple[str, ...] = ("GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE")

_STRING_TYPES = frozenset({"String", "str", "&str", "&'static str"})


@dataclass(frozen=True, slots=True)
class Operation:
    """One (method, path) pair with its documented responses."""

    method: str
    path: str
    pattern: Pattern
    responses: tuple[ResponseEntry, ...]
    parameters: tuple[str, ...] = ()
    controller: str = ""
    name: str = ""
    summary: str = ""
    requires_cookies: bool = False
    guards: tuple[str, ...] = ()

    def response(self, code: int) -> ResponseEntry | None:
        for entry in self.responses:
            if entry.code == code:
                return entry
        return None


@dataclass(frozen=True, slots=True)
class Document:
    """The complete documentation model of a frozen app."""

    title: str
    version: str
    operations: tuple[Operation, ...] = ()
    description: str = ""

    def find(self, method: str, path: str) -> Operation | None:
        """The operation documented for *method* on template *path*."""
        method = method.upper()
        for op in self.operations:
            if op.method == method and op.path == path:
                return op
        return None

    def paths(self) -> dict[str, tuple[Operation, ...]]:
        """Operations grouped by path template, in registration order."""
        grouped: dict[str, list[Operation]] = {}
        for op in self.operations:
            grouped.setdefault(op.path, []).append(op)
        return {path: tuple(ops) for path, ops in grouped.items()}

    def to_openapi(self) -> dict[str, Any]:
        """Render as an OpenAPI 3.1 document dict.

        ``ANY`` operations fill every standard verb not documented
        explicitly on the same path. Custom verbs have no OpenAPI
        representation and are left out.
        """
        paths: dict[str, dict[str, Any]] = {}
        schemas: dict[str, Any] = {}
        used_ids: set[str] = set()

        for op in self.operations:
            item = paths.setdefault(op.pattern.openapi_path(), {})
            if op.method == ANY:
                continue
            if op.method not in OPENAPI_METHODS:
                logger.info("Skipping custom method %s %s in OpenAPI output", op.method, op.path)
                continue
            item[op.method.lower()] = _operation_object(op, op.method, schemas, used_ids)

        for op in self.operations:
            if op.method != ANY:
                continue
            item = paths[op.pattern.openapi_path()]
            for verb in OPENAPI_METHODS:
                if verb.lower() not in item:
                    item[verb.lower()] = _operation_object(op, verb, schemas, used_ids)

        info: dict[str, Any] = {"title": self.title, "version": self.version}
        if self.description:
            info["description"] = self.description
        result: dict[str, Any] = {"openapi": OPENAPI_VERSION, "info": info, "paths": paths}
        if schemas:
            result["components"] = {"schemas": dict(sorted(schemas.items()))}
        return result


def _status_description(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return f"Status {code}"


def _schema(entry: ResponseEntry, schemas: dict[str, Any]) -> dict[str, Any]:
    shape = entry.shape
    if isinstance(shape, Named):
        if shape.name in _STRING_TYPES:
            return {"type": "string"}
        schemas.setdefault(shape.name, {"title": shape.name})
        return {"$ref": f"#/components/schemas/{shape.name}"}
    if isinstance(shape, Raw):
        return {"description": shape.description}
    return {"description": str(shape)}


def _response_object(entry: ResponseEntry, schemas: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {"description": _status_description(entry.code)}
    if isinstance(entry.shape, Empty):
        return result
    result["content"] = {entry.mime or "*/*": {"schema": _schema(entry, schemas)}}
    return result


def _operation_object(
    op: Operation,
    verb: str,
    schemas: dict[str, Any],
    used_ids: set[str],
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if op.name:
        # operationId must be unique across the document
        operation_id = op.name if op.name not in used_ids else f"{op.name}_{verb.lower()}"
        used_ids.add(operation_id)
        result["operationId"] = operation_id
    if op.summary:
        result["summary"] = op.summary
    if op.controller:
        result["tags"] = [op.controller]
    if op.parameters:
        result["parameters"] = [
            {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}
            for name in op.parameters
        ]
    result["responses"] = {
        str(entry.code): _response_object(entry, schemas) for entry in op.responses
    }
    if op.requires_cookies:
        result["x-requires-cookies"] = True
    if op.guards:
        result["x-guards"] = list(op.guards)
    return result


def synthesize_document(
    controllers: Iterable[Controller | ControllerBuilder],
    config: AppConfig | None = None,
) -> Document:
    """Walk every endpoint into one ``Document``.

    One operation is produced per (method, path). Builders are compiled
    first, so this raises the same configuration errors as freezing.
    """
    config = config or AppConfig()
    operations: list[Operation] = []
    for controller in controllers:
        if isinstance(controller, ControllerBuilder):
            controller = controller.build(warn_unmatched=config.warn_unmatched_overrides)
        for endpoint in controller.endpoints:
            for method in sorted(endpoint.methods):
                operations.append(
                    Operation(
                        method=method,
                        path=str(endpoint.pattern),
                        pattern=endpoint.pattern,
                        responses=endpoint.responses.entries,
                        parameters=endpoint.pattern.param_names,
                        controller=controller.identifier,
                        name=endpoint.name,
                        summary=endpoint.summary,
                        requires_cookies=endpoint.requires_cookies,
                        guards=endpoint.guards.names,
                    )
                )
    logger.debug("Synthesized documentation for %d operations", len(operations))
    return Document(
        title=config.title,
        version=config.api_version,
        operations=tuple(operations),
        description=config.description,
    )
