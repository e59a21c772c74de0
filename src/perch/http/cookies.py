"""Cookie header parsing.

Runs only for endpoints registered with ``requires_cookies=True``: the
implicit first guard step stores the result on ``RequestContext.cookies``.
"""

from types import MappingProxyType


def parse_cookies(header: str | None) -> MappingProxyType[str, str]:
    """Parse a ``Cookie`` header value into a read-only name-value mapping.

    ``"a=1; b=\\"two\\""`` gives ``{"a": "1", "b": "two"}``. Empty or missing
    headers give an empty mapping. Pairs without ``=`` or without a name
    are skipped, and the first occurrence of a repeated name wins.
    """
    cookies: dict[str, str] = {}
    for pair in (header or "").split(";"):
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name or name in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        cookies[name] = value
    return MappingProxyType(cookies)
