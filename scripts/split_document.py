#!/usr/bin/env python3
"""Split a department's generated HTML document into topic sections.

Plain-text input can be coerced to the six-heading layout first with
``--normalize``.  Sections are written as JSON to stdout.

Usage:
    python3 scripts/split_document.py --html draft.html --department building
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from onereply.io_utils import to_jsonable
from onereply.normalize import coerce_to_sectioned_html
from onereply.section_splitter import is_well_formed, split_document

log = logging.getLogger("split_document")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split a six-heading department document into topic sections."
    )
    parser.add_argument(
        "--html", required=True, type=Path, help="Department document (HTML or text)"
    )
    parser.add_argument(
        "--department", required=True, help="Department key, e.g. transportation"
    )
    parser.add_argument(
        "--normalize",
        action="store_true",
        help="Coerce plain text to sectioned HTML when headings are missing",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    if not args.html.exists():
        print(f"Error: document not found: {args.html}", file=sys.stderr)
        sys.exit(1)

    doc = args.html.read_text(encoding="utf-8")
    if args.normalize and not is_well_formed(doc):
        doc = coerce_to_sectioned_html(doc)
        log.debug("Coerced %s to sectioned HTML", args.html)

    sections = split_document(doc, args.department)
    dump_json([to_jsonable(s) for s in sections])
    print(
        f"Split into {len(sections)} sections: "
        f"{', '.join(s.topic_key for s in sections)}",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
