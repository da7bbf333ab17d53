"""Record types for tickets, department sections, structured atoms and events.

All records are frozen dataclasses.  State changes produce new records via
``dataclasses.replace`` and are written back through a repository, so no two
holders ever share a mutable section.

``DraftAtoms`` is always fully shaped: the three topic groups are present
with (possibly empty) tuples, so consumers only check emptiness.  Use
``coerce_atoms`` to build one from partial or loosely-typed payloads.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, TypeAlias, cast

TopicKey: TypeAlias = Literal["situation", "guidance", "nextsteps"]
SectionStatus: TypeAlias = Literal["pending", "annotated", "approved", "locked", "omitted"]
DeptStatus: TypeAlias = Literal["pending", "annotated", "approved", "omitted"]
GatingMode: TypeAlias = Literal["all", "first"]
TicketStatus: TypeAlias = Literal["drafting", "reviewing", "ready", "assembled"]
EventType: TypeAlias = Literal[
    "created",
    "draft_generated",
    "section_annotated",
    "section_approved",
    "section_locked",
    "ticket_assembled",
]

TOPIC_KEYS: tuple[TopicKey, ...] = ("situation", "guidance", "nextsteps")
SECTION_STATUSES: frozenset[str] = frozenset(
    {"pending", "annotated", "approved", "locked", "omitted"}
)
GATING_MODES: frozenset[str] = frozenset({"all", "first"})


# ---------------------------------------------------------------------------
# Structured atoms
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PropertyFact:
    """A property fact such as ``Parcel: 123450-6789``.

    After merging, ``value`` may hold several conflicting values joined with
    ``" / "`` and ``sources`` lists every contributing department.
    """

    key: str
    value: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Citation:
    """A code citation keyed by ``(code, section)``, e.g. ``LUC 20.20.720``."""

    code: str
    section: str
    description: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SituationAtoms:
    understanding: tuple[str, ...] = ()
    property_facts: tuple[PropertyFact, ...] = ()

    def is_empty(self) -> bool:
        return not self.understanding and not self.property_facts


@dataclass(frozen=True, slots=True)
class GuidanceAtoms:
    recommendations: tuple[str, ...] = ()
    citations: tuple[Citation, ...] = ()

    def is_empty(self) -> bool:
        return not self.recommendations and not self.citations


@dataclass(frozen=True, slots=True)
class NextStepsAtoms:
    followups: tuple[str, ...] = ()
    actions: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not self.followups and not self.actions


@dataclass(frozen=True, slots=True)
class DraftAtoms:
    """Structured payload carried by every section, all three topics present."""

    situation: SituationAtoms = field(default_factory=SituationAtoms)
    guidance: GuidanceAtoms = field(default_factory=GuidanceAtoms)
    nextsteps: NextStepsAtoms = field(default_factory=NextStepsAtoms)

    def is_empty(self) -> bool:
        return (
            self.situation.is_empty()
            and self.guidance.is_empty()
            and self.nextsteps.is_empty()
        )


# ---------------------------------------------------------------------------
# Tickets, sections, events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Ticket:
    """A citizen inquiry routed to one or more departments."""

    id: str
    subject: str
    sender: str
    body: str
    departments: tuple[str, ...]
    gating_mode: GatingMode = "all"
    status: TicketStatus = "drafting"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.gating_mode not in GATING_MODES:
            raise ValueError(f"unknown gating mode: {self.gating_mode!r}")


@dataclass(frozen=True, slots=True)
class Section:
    """One department's contribution to one topic slot of a ticket."""

    id: str
    ticket_id: str
    department: str
    topic_key: TopicKey
    title: str
    content: str
    atoms: DraftAtoms = field(default_factory=DraftAtoms)
    status: SectionStatus = "pending"
    annotations: tuple[str, ...] = ()
    order: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.topic_key not in TOPIC_KEYS:
            raise ValueError(f"unknown topic key: {self.topic_key!r}")
        if self.status not in SECTION_STATUSES:
            raise ValueError(f"unknown section status: {self.status!r}")


@dataclass(frozen=True, slots=True)
class EventLog:
    """Append-only audit record for the audit trail and notifier."""

    id: str
    ticket_id: str
    type: EventType
    details: str
    timestamp: datetime
    department: str | None = None
    topic_key: TopicKey | None = None


# ---------------------------------------------------------------------------
# Coercion from loose payloads (generator output, JSON bundles)
# ---------------------------------------------------------------------------


def _str_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if not isinstance(value, (list, tuple)):
        return ()
    items = cast(list[Any], value)
    return tuple(str(v).strip() for v in items if v is not None and str(v).strip())


def _sources(raw: Mapping[str, Any]) -> tuple[str, ...]:
    if "sources" in raw:
        return _str_list(raw.get("sources"))
    return _str_list(raw.get("source"))


def _fact(raw: Any) -> PropertyFact | None:
    if isinstance(raw, PropertyFact):
        return raw
    if not isinstance(raw, Mapping):
        return None
    d = cast(Mapping[str, Any], raw)
    key = str(d.get("key") or "").strip()
    if not key:
        return None
    return PropertyFact(
        key=key,
        value=str(d.get("value") or "").strip(),
        sources=_sources(d),
    )


def _citation(raw: Any) -> Citation | None:
    if isinstance(raw, Citation):
        return raw
    if not isinstance(raw, Mapping):
        return None
    d = cast(Mapping[str, Any], raw)
    description = d.get("description")
    if description is None:
        description = d.get("text")
    return Citation(
        code=str(d.get("code") or "").strip(),
        section=str(d.get("section") or "").strip(),
        description=str(description or "").strip(),
        sources=_sources(d),
    )


def _group(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return cast(Mapping[str, Any], value)
    return {}


def _pick(d: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in d:
            return d[name]
    return None


def coerce_atoms(raw: Any) -> DraftAtoms:
    """Build a full-shaped ``DraftAtoms`` from a dict, ``DraftAtoms`` or None.

    Accepts both ``propertyFacts`` and ``property_facts`` spellings.  Missing
    groups, wrong types and malformed entries are dropped rather than raised.
    """
    if isinstance(raw, DraftAtoms):
        return raw
    if not isinstance(raw, Mapping):
        return DraftAtoms()
    d = cast(Mapping[str, Any], raw)

    sit = _group(d, "situation")
    gui = _group(d, "guidance")
    nxt = _group(d, "nextsteps")

    facts_raw = _pick(sit, "property_facts", "propertyFacts") or []
    cites_raw = gui.get("citations") or []
    facts = tuple(
        f for f in (_fact(x) for x in _as_list(facts_raw)) if f is not None
    )
    cites = tuple(
        c for c in (_citation(x) for x in _as_list(cites_raw)) if c is not None
    )
    return DraftAtoms(
        situation=SituationAtoms(
            understanding=_str_list(sit.get("understanding")),
            property_facts=facts,
        ),
        guidance=GuidanceAtoms(
            recommendations=_str_list(gui.get("recommendations")),
            citations=cites,
        ),
        nextsteps=NextStepsAtoms(
            followups=_str_list(nxt.get("followups")),
            actions=_str_list(nxt.get("actions")),
        ),
    )


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(cast(list[Any], value))
    return []


def atoms_to_dict(atoms: DraftAtoms) -> dict[str, Any]:
    """Serialize atoms to the camelCase shape used at the export boundary."""
    return {
        "situation": {
            "understanding": list(atoms.situation.understanding),
            "propertyFacts": [
                {"key": f.key, "value": f.value, "sources": list(f.sources)}
                for f in atoms.situation.property_facts
            ],
        },
        "guidance": {
            "recommendations": list(atoms.guidance.recommendations),
            "citations": [
                {
                    "code": c.code,
                    "section": c.section,
                    "description": c.description,
                    "sources": list(c.sources),
                }
                for c in atoms.guidance.citations
            ],
        },
        "nextsteps": {
            "followups": list(atoms.nextsteps.followups),
            "actions": list(atoms.nextsteps.actions),
        },
    }
