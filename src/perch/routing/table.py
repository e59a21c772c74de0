"""Dispatch table with trie-based path matching.

Built once from the frozen controllers, never mutated afterwards. Lookups
only read the trie and allocate their own results, so any number of
concurrent callers can share one table without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from perch.controller import ANY, Controller, ControllerBuilder, Endpoint
from perch.errors import MethodNotAllowed, NotFound, RouteConflict
from perch.routing.pattern import split_path

logger = logging.getLogger("perch.routing")


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful lookup."""

    endpoint: Endpoint
    params: dict[str, str]


class _TrieNode:
    """A node in the dispatch trie. Mutable during build only."""

    __slots__ = ("children", "endpoints", "param_child", "wildcard")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # One parameter child per level; names live on each endpoint's pattern
        self.param_child: _TrieNode | None = None
        # Trailing wildcard endpoints, keyed by method
        self.wildcard: dict[str, Endpoint] = {}
        # Endpoints ending at this node, keyed by method
        self.endpoints: dict[str, Endpoint] = {}


def _register(slot: dict[str, Endpoint], endpoint: Endpoint) -> None:
    """Add *endpoint* under each of its methods, rejecting overlaps."""
    for method in sorted(endpoint.methods):
        if method == ANY and slot:
            other = next(iter(slot.values()))
            raise RouteConflict(method, str(endpoint.pattern), str(other.pattern))
        existing = slot.get(method) or slot.get(ANY)
        if existing is not None:
            raise RouteConflict(method, str(endpoint.pattern), str(existing.pattern))
        slot[method] = endpoint


class DispatchTable:
    """Immutable routing index from (method, pattern) to endpoint.

    Usage::

        table = DispatchTable.build(controllers)
        match = table.lookup("GET", "/api/v1/users/42")
        if match is not None:
            match.endpoint, match.params  # (<Endpoint ...>, {"id": "42"})
    """

    __slots__ = ("_endpoints", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._endpoints: tuple[Endpoint, ...] = ()

    @classmethod
    def build(cls, controllers: Iterable[Controller | ControllerBuilder]) -> DispatchTable:
        """Build the table from every controller's endpoints.

        Builders are compiled first. Raises ``RouteConflict`` when two
        endpoints share a method and a pattern shape (parameter names are
        ignored, ``ANY`` overlaps every method), and propagates
        ``MalformedPath`` from compilation.
        """
        table = cls()
        endpoints: list[Endpoint] = []
        for controller in controllers:
            if isinstance(controller, ControllerBuilder):
                controller = controller.build()
            for endpoint in controller.endpoints:
                table._insert(endpoint)
                endpoints.append(endpoint)
        table._endpoints = tuple(endpoints)
        logger.debug("Dispatch table built with %d endpoints", len(endpoints))
        return table

    def _insert(self, endpoint: Endpoint) -> None:
        node = self._root
        for seg in endpoint.pattern.segments:
            if seg.is_wildcard:
                _register(node.wildcard, endpoint)
                return
            if seg.is_param:
                if node.param_child is None:
                    node.param_child = _TrieNode()
                node = node.param_child
            else:
                node = node.children.setdefault(seg.value, _TrieNode())
        _register(node.endpoints, endpoint)

    # -- Lookup --

    def _walk(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        captured: tuple[str, ...],
    ) -> Iterator[tuple[dict[str, Endpoint], tuple[str, ...]]]:
        """Yield candidate endpoint slots in priority order: static, param, wildcard."""
        if index == len(parts):
            if node.endpoints:
                yield node.endpoints, captured
            return

        part = parts[index]
        child = node.children.get(part)
        if child is not None:
            yield from self._walk(child, parts, index + 1, captured)
        if node.param_child is not None:
            yield from self._walk(node.param_child, parts, index + 1, (*captured, part))
        if node.wildcard:
            yield node.wildcard, (*captured, "/".join(parts[index:]))

    def _resolve(self, method: str, path: str) -> tuple[RouteMatch | None, frozenset[str]]:
        method = method.upper()
        allowed: set[str] = set()
        for slot, captured in self._walk(self._root, split_path(path), 0, ()):
            endpoint = slot.get(method) or slot.get(ANY)
            if endpoint is not None:
                params = dict(zip(endpoint.pattern.param_names, captured, strict=True))
                return RouteMatch(endpoint=endpoint, params=params), frozenset()
            allowed.update(slot)
        return None, frozenset(allowed)

    def lookup(self, method: str, path: str) -> RouteMatch | None:
        """Find the endpoint for a request, or ``None``."""
        match, _ = self._resolve(method, path)
        return match

    def match(self, method: str, path: str) -> RouteMatch:
        """Like ``lookup`` but raising HTTP errors.

        Raises ``NotFound`` if no pattern matches the path, and
        ``MethodNotAllowed`` if patterns match but none accepts the method.
        """
        match, allowed = self._resolve(method, path)
        if match is not None:
            return match
        if allowed:
            raise MethodNotAllowed(allowed)
        raise NotFound(f"No route matches {method.upper()} {path!r}")

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        """All endpoints in registration order."""
        return self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)
