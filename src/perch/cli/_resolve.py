"""Locate the App named on the command line.

``perch routes`` and ``perch docs`` both take a ``module:attribute`` string.
"""

import argparse
import importlib
import sys

from perch.app import App
from perch.errors import ConfigurationError


def resolve_app(import_string: str) -> App:
    """Import ``"module:attribute"`` and return the App it names.

    The attribute defaults to ``app``. If the attribute is a callable
    that is not an App, it is treated as a factory and called with no
    arguments.

    Raises:
        ModuleNotFoundError: The module cannot be imported.
        AttributeError: The module has no such attribute.
        TypeError: The attribute (or the factory's result) is not an App,
            or the factory raised.
    """
    module_name, _, attribute = import_string.partition(":")
    target = getattr(importlib.import_module(module_name), attribute or "app")

    if not isinstance(target, App) and callable(target):
        try:
            target = target()
        except Exception as exc:
            msg = f"App factory {import_string!r} failed: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(target, App):
        msg = f"{import_string!r} is a {type(target).__name__}, not a perch.App instance"
        raise TypeError(msg)
    return target


def load_frozen_app(args: argparse.Namespace) -> App:
    """Resolve ``args.app`` and freeze it. Exits with status 1 on any failure."""
    try:
        app = resolve_app(args.app)
        app.freeze()
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    return app
