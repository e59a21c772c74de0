"""Route composition — controller scope + endpoint path → absolute pattern."""

from perch.errors import ConfigurationError
from perch.routing.pattern import Pattern, parse_path, split_path

_CONTROLLER_SUFFIX = "controller"


def base_segment(identifier: str, name: str | None = None) -> str:
    """The path segment a controller is mounted under.

    An explicit *name* wins (an empty name mounts at the root). Otherwise
    the identifier is lower-cased and a trailing ``controller`` is removed::

        base_segment("UserController")          -> "user"
        base_segment("UserController", "users") -> "users"
    """
    if name is not None:
        return name.strip("/")
    base = identifier.lower()
    if base.endswith(_CONTROLLER_SUFFIX):
        base = base[: -len(_CONTROLLER_SUFFIX)]
    return base


def compose_path(
    prefix: str | None,
    version: int | None,
    name: str | None,
    controller_default_base: str,
    endpoint_relative_path: str,
) -> str:
    """Join controller scope and endpoint path into one normalized path string.

    ``/`` + prefix + ``/v{version}`` + base segment + relative path, with
    duplicate separators collapsed.
    """
    if version is not None and (isinstance(version, bool) or not isinstance(version, int) or version < 0):
        msg = f"Controller version must be a non-negative integer, got {version!r}"
        raise ConfigurationError(msg)

    parts: list[str] = []
    if prefix:
        parts.extend(split_path(prefix))
    if version is not None:
        parts.append(f"v{version}")
    parts.extend(split_path(base_segment(controller_default_base, name)))
    parts.extend(split_path(endpoint_relative_path))
    return "/" + "/".join(parts)


def compose(
    prefix: str | None,
    version: int | None,
    name: str | None,
    controller_default_base: str,
    endpoint_relative_path: str,
) -> Pattern:
    """Compose and parse the absolute ``Pattern`` for an endpoint.

    Raises ``MalformedPath`` if any piece contributes a bad template, including
    a parameter name repeated between prefix and endpoint path.
    """
    path = compose_path(prefix, version, name, controller_default_base, endpoint_relative_path)
    return parse_path(path)
