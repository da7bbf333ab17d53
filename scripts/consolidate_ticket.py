#!/usr/bin/env python3
"""Consolidate the approved sections of one ticket bundle into a single reply.

Reads a JSON bundle ``{"ticket": {...}, "sections": [...]}`` and writes the
consolidated atoms plus the plain-text rendering as JSON to stdout, with a
summary on stderr.

Usage:
    python3 scripts/consolidate_ticket.py --input bundle.json \
      --policy policy.json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import orjson

from onereply.atom_types import Section, coerce_atoms
from onereply.consolidate import consolidate_sections, render_document
from onereply.departments import section_title
from onereply.io_utils import load_json, to_jsonable
from onereply.policy import DEFAULT_POLICY, load_policy

log = logging.getLogger("consolidate_ticket")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Consolidate approved department sections of a ticket."
    )
    parser.add_argument(
        "--input", required=True, type=Path, help="Ticket bundle JSON file"
    )
    parser.add_argument(
        "--policy",
        type=Path,
        default=None,
        help="Consolidation policy override JSON (default: built-in thresholds)",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def sections_from_bundle(bundle: dict[str, Any]) -> list[Section]:
    """Build ``Section`` records from a bundle, in bundle order."""
    ticket = bundle.get("ticket") or {}
    ticket_id = str(ticket.get("id") or "ticket")
    sections: list[Section] = []
    for i, raw in enumerate(bundle.get("sections") or []):
        topic = raw.get("topic_key") or raw.get("topicKey") or "situation"
        sections.append(Section(
            id=str(raw.get("id") or f"{ticket_id}-{i}"),
            ticket_id=ticket_id,
            department=str(raw.get("department") or ""),
            topic_key=topic,
            title=str(raw.get("title") or section_title(topic)),
            content=str(raw.get("content") or ""),
            atoms=coerce_atoms(raw.get("atoms")),
            status=raw.get("status") or "pending",
            order=i if raw.get("order") is None else int(raw["order"]),
        ))
    sections.sort(key=lambda s: s.order)
    return sections


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    if not args.input.exists():
        print(f"Error: bundle not found: {args.input}", file=sys.stderr)
        sys.exit(1)
    if args.policy is not None and not args.policy.exists():
        print(f"Error: policy file not found: {args.policy}", file=sys.stderr)
        sys.exit(1)

    bundle = load_json(args.input)
    if not isinstance(bundle, dict):
        print(f"Error: bundle must be a JSON object: {args.input}", file=sys.stderr)
        sys.exit(1)

    try:
        policy = load_policy(args.policy) if args.policy else DEFAULT_POLICY
        sections = sections_from_bundle(bundle)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    log.debug("Loaded %d sections from %s", len(sections), args.input)
    atoms = consolidate_sections(sections, policy)
    approved = sum(1 for s in sections if s.status == "approved")
    dump_json({"atoms": to_jsonable(atoms), "rendered": render_document(atoms)})
    print(
        f"Consolidated {approved} approved of {len(sections)} sections",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
