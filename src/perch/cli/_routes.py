"""``perch routes`` — list registered endpoints.

Prints every endpoint in the dispatch table with its methods, absolute
path template, guard chain and handler.
"""

import argparse

from perch.cli._resolve import load_frozen_app


def run_routes(args: argparse.Namespace) -> None:
    """Freeze the app behind ``args.app`` and print its dispatch table."""
    app = load_frozen_app(args)

    endpoints = app.table.endpoints
    if not endpoints:
        print("No routes registered.")
        return

    # Build rows: (methods_str, path, guards_str, handler_name)
    rows: list[tuple[str, str, str, str]] = []
    for endpoint in endpoints:
        methods_str = ", ".join(sorted(endpoint.methods))
        guards = list(endpoint.guards.names)
        if endpoint.requires_cookies:
            guards.insert(0, "cookies")
        handler_name = getattr(endpoint.handler, "__name__", str(endpoint.handler))
        if endpoint.controller:
            handler_name = f"{endpoint.controller}.{handler_name}"
        rows.append((methods_str, str(endpoint.pattern), ", ".join(guards) or "-", handler_name))

    max_methods = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header
    max_guards = max(6, *(len(r[2]) for r in rows))  # "GUARDS" header

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{:<{max_guards}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "GUARDS", "HANDLER"))
    sep_len = max_methods + max_path + max_guards + 6 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
