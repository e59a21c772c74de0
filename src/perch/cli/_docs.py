"""``perch docs`` — print the synthesized API document as OpenAPI JSON."""

import argparse
import json

from perch.cli._resolve import load_frozen_app


def run_docs(args: argparse.Namespace) -> None:
    app = load_frozen_app(args)
    indent = args.indent if args.indent > 0 else None
    print(json.dumps(app.document.to_openapi(), indent=indent))
