"""I/O utilities for JSON and JSONL at the export/audit boundary.

orjson-backed JSON I/O with dataclass/datetime-safe serialization.  The core
never owns a store; these helpers only read bundles and policy files and
write exports handed to external collaborators.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import fields, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, cast

import orjson

from onereply.atom_types import DraftAtoms, EventLog, atoms_to_dict


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def dumps(obj: Any, *, pretty: bool = True) -> bytes:
    """Serialize *obj* to JSON bytes with sorted keys."""
    opts = orjson.OPT_SORT_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(to_jsonable(obj), option=opts)


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps(obj, pretty=pretty))


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def save_jsonl(records: Iterable[Any], path: Path) -> None:
    """Save records as a JSON Lines file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(to_jsonable(r), option=orjson.OPT_SORT_KEYS) for r in records]
    path.write_bytes(b"\n".join(lines) + (b"\n" if lines else b""))


def to_jsonable(obj: Any) -> Any:
    """Recursively convert records to JSON-native structures.

    ``DraftAtoms`` use the camelCase export shape, other dataclasses become
    dicts, tuples become lists and datetimes become ISO-8601 strings.
    """
    if isinstance(obj, DraftAtoms):
        return atoms_to_dict(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {
            name: to_jsonable(getattr(obj, name))
            for name in (f.name for f in fields(obj))
        }
    if isinstance(obj, dict):
        obj_dict = cast(dict[Any, Any], obj)
        return {str(k): to_jsonable(v) for k, v in obj_dict.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in cast(list[Any], obj)]
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def export_events_jsonl(events: Iterable[EventLog], path: Path) -> int:
    """Write audit events to *path* as JSONL. Returns the number written."""
    rows = [to_jsonable(e) for e in events]
    save_jsonl(rows, path)
    return len(rows)
