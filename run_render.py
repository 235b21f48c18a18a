#!/usr/bin/env python3
"""
CLI script to render template files.

Reads each template, fills {{placeholders}} from a JSON params file and/or
--param key=value pairs, and writes the rendered markup to stdout or a file.

Parsed templates are cached on disk (HTML_BUILDER_CACHE_DIR) when --cache is
given, so re-rendering the same file skips parsing.
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from html_builder.main import TemplateEngine
from html_builder.config import Settings
from html_builder.exceptions import ParseError


def _load_params(args) -> dict:
    params = {}
    if args.params:
        data = json.loads(Path(args.params).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{args.params} must hold a JSON object")
        params.update({str(k): str(v) for k, v in data.items()})

    # --param overrides the JSON file
    for pair in args.param or []:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"--param expects key=value, got {pair!r}")
        params[key] = value
    return params


def main() -> int:
    parser = argparse.ArgumentParser(description="Render HTML templates with {{placeholder}} parameters")
    parser.add_argument("files", nargs="+", help="Template files to render")
    parser.add_argument("--params", "-p", help="JSON file with placeholder values")
    parser.add_argument("--param", action="append", help="Placeholder value as key=value (repeatable)")
    parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    parser.add_argument("--cache", action="store_true", help="Cache parsed templates on disk")
    parser.add_argument("--sorted-attributes", action="store_true", help="Sort attributes by name")
    parser.add_argument("--log-level", help="Logging level (default: HTML_BUILDER_LOG_LEVEL)")
    args = parser.parse_args()

    settings = Settings()
    if args.sorted_attributes:
        settings.sort_attributes = True

    try:
        params = _load_params(args)
    except (OSError, ValueError) as e:
        print(f"✗ Bad parameters: {e}", file=sys.stderr)
        return 2

    # Log records go to stdout; keep them out of rendered output unless asked for
    log_level = args.log_level or (settings.log_level if args.output else "ERROR")
    engine = TemplateEngine(settings=settings, use_cache=args.cache, log_level=log_level)

    outputs = []
    failed = 0

    for filepath in args.files:
        path = Path(filepath)
        try:
            result = engine.render_file(path, params)
        except (OSError, ParseError) as e:
            failed += 1
            print(f"✗ {path.name}: {e}", file=sys.stderr)
            continue

        if result.unresolved:
            print(f"! {path.name}: unresolved {', '.join(result.unresolved)}", file=sys.stderr)
        outputs.append(result.html)

    output = "\n".join(outputs)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Saved to: {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(output)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
