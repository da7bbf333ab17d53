"""Tests for onereply.io_utils module."""
from datetime import UTC, datetime
from pathlib import Path

import orjson

from onereply.atom_types import (
    Citation,
    DraftAtoms,
    EventLog,
    GuidanceAtoms,
    PropertyFact,
    SituationAtoms,
)
from onereply.io_utils import (
    dumps,
    export_events_jsonl,
    load_json,
    load_jsonl,
    save_json,
    to_jsonable,
)


class TestToJsonable:
    def test_atoms_use_export_shape(self) -> None:
        atoms = DraftAtoms(situation=SituationAtoms(
            property_facts=(PropertyFact("Parcel", "1", ("Building",)),),
        ))
        data = to_jsonable(atoms)
        assert data["situation"]["propertyFacts"] == [
            {"key": "Parcel", "value": "1", "sources": ["Building"]}
        ]
        assert data["nextsteps"] == {"followups": [], "actions": []}

    def test_dataclass_and_datetime(self) -> None:
        event = EventLog(
            "e-1", "t-1", "section_approved", "Building - Guidance approved",
            datetime(2025, 9, 3, 10, 15, tzinfo=UTC), "building", "guidance",
        )
        data = to_jsonable(event)
        assert data["timestamp"] == "2025-09-03T10:15:00+00:00"
        assert data["type"] == "section_approved"
        assert data["topic_key"] == "guidance"

    def test_nested_containers(self) -> None:
        assert to_jsonable({"a": (1, [Citation("LUC", "1", "x")])}) == {
            "a": [1, [{"code": "LUC", "section": "1", "description": "x", "sources": []}]]
        }


class TestJsonFiles:
    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "atoms.json"
        atoms = DraftAtoms(guidance=GuidanceAtoms(recommendations=("Use T-130",)))
        save_json(atoms, path)
        assert load_json(path)["guidance"]["recommendations"] == ["Use T-130"]

    def test_dumps_sorted_keys(self) -> None:
        assert dumps({"b": 1, "a": 2}, pretty=False) == b'{"a":2,"b":1}'

    def test_export_events(self, tmp_path: Path) -> None:
        now = datetime(2025, 9, 3, tzinfo=UTC)
        events = [
            EventLog("e-1", "t-1", "created", "Ticket created: Fence", now),
            EventLog("e-2", "t-1", "section_locked", "Building - Guidance locked", now,
                     "building", "guidance"),
        ]
        path = tmp_path / "events.jsonl"
        assert export_events_jsonl(events, path) == 2
        rows = load_jsonl(path)
        assert [r["id"] for r in rows] == ["e-1", "e-2"]
        assert rows[1]["department"] == "building"

    def test_export_no_events(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        assert export_events_jsonl([], path) == 0
        assert path.read_bytes() == b""

    def test_load_jsonl_skips_blank_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "rows.jsonl"
        path.write_bytes(orjson.dumps({"a": 1}) + b"\n\n" + orjson.dumps({"a": 2}) + b"\n")
        assert load_jsonl(path) == [{"a": 1}, {"a": 2}]
