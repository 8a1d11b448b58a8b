from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List

from archnorm.core.errors import NormalizationError
from archnorm.core.normalization import normalize_record
from archnorm.core.options import NormalizationOptions
from archnorm.io.xml_loader import load_xml_file
from archnorm.utils.json_safe import to_jsonable

log = logging.getLogger("archnorm.cli")


def _read_json(path: str) -> dict:
    """Read a JSON file."""

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _is_xml(path: str, force: bool) -> bool:
    return force or os.path.splitext(path)[1].lower() == ".xml"


def _options_from_args(args: argparse.Namespace) -> NormalizationOptions:
    opts = NormalizationOptions.from_env()
    if args.languages:
        opts = opts.with_languages(args.languages)
    if args.rich_text:
        opts = opts.rich(True)
    return opts


def cmd_normalize(args: argparse.Namespace) -> int:
    """Normalize one raw record (JSON tree or XML document) and print it as JSON.

    Exit codes:
    - 0 success
    - 2 missing file, unreadable input or normalization failure
    """

    path = os.path.abspath(args.path)
    if not os.path.exists(path):
        print(f"error: file not found: {path}", file=sys.stderr)
        return 2
    if not os.path.isfile(path):
        print(f"error: not a regular file: {path}", file=sys.stderr)
        return 2

    item_categories = [x.strip() for x in (args.item_category or "").split(",") if x.strip()]

    try:
        opts = _options_from_args(args)
        if _is_xml(path, bool(args.xml)):
            raw = load_xml_file(path)
        else:
            raw = _read_json(path)
        record = normalize_record(
            raw,
            category=args.category,
            item_category=item_categories or None,
            options=opts,
        )
    except json.JSONDecodeError as e:
        print(f"error: invalid JSON: {e}", file=sys.stderr)
        return 2
    except NormalizationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    log.debug("record_normalized", extra={"category": record.category.value, "uuid": record.uuid})
    print(json.dumps(to_jsonable(record), indent=2 if args.pretty else None, ensure_ascii=False))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the archnorm API server.

    Binds to 127.0.0.1 by default.
    """

    try:
        import uvicorn
    except ImportError as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return 2

    from archnorm.api.server import create_app

    app = create_app()
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    p = argparse.ArgumentParser(prog="archnorm", description="archnorm CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    np = sub.add_parser("normalize", help="Normalize a raw record file and print JSON")
    np.add_argument("path", help="Path to a JSON raw tree or an XML document")
    np.add_argument("--category", default=None, help="Expected item category (e.g. resource)")
    np.add_argument(
        "--item-category",
        default=None,
        help="Child item categories for a set/tree, comma separated",
    )
    np.add_argument("--languages", default=None, help="Comma separated ISO 639-3 codes (default: eng)")
    np.add_argument("--rich-text", action="store_true", help="Emit markup instead of plain text")
    np.add_argument("--xml", action="store_true", help="Treat the input as XML regardless of extension")
    np.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    np.add_argument("--log-level", default="warning", help="Logging level (default: warning)")
    np.set_defaults(func=cmd_normalize)

    # --- API server ---
    sv = sub.add_parser("serve", help="Run the archnorm FastAPI server")
    sv.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    sv.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    sv.add_argument("--log-level", default="info", help="Uvicorn log level")
    sv.set_defaults(func=cmd_serve)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=str(args.log_level).upper())
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
