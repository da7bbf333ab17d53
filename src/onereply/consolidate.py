"""Consolidation of approved department sections into one unified document.

Only sections with status ``approved`` take part.  Per topic:

* **situation** -- understanding statements reduced by similarity (0.7,
  first three kept); property facts merged losslessly and attributed to the
  contributing departments.
* **guidance** -- recommendations reduced to one representative per
  similarity cluster (0.4); citations merged losslessly.
* **nextsteps** -- follow-ups (0.5) and actions (0.4) reduced to
  representatives; surviving actions renumbered ``1. ...``, ``2. ...``.

Thresholds and strategies come from ``ConsolidationPolicy``.

Ordering contract: similarity grouping is order-sensitive, so the output is a
deterministic function of the *ordered* input.  Pass sections in a stable
order (creation order; ``TicketRepository.ticket_sections`` provides it) to
get reproducible documents.  There is no cached state; re-run in full
whenever the approved set changes.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from onereply.atom_types import (
    Citation,
    DraftAtoms,
    GuidanceAtoms,
    NextStepsAtoms,
    PropertyFact,
    Section,
    SituationAtoms,
    TOPIC_KEYS,
)
from onereply.departments import department_name, section_title
from onereply.merge import merge_citations, merge_facts, reduce_text
from onereply.policy import DEFAULT_POLICY, ConsolidationPolicy

_LEADING_NUMBER_RE = re.compile(r"^\s*\d+[.)]\s+")

BULLET = "\u2022"


def _by_topic(sections: Iterable[Section]) -> dict[str, list[Section]]:
    grouped: dict[str, list[Section]] = {}
    for section in sections:
        if section.status == "approved":
            grouped.setdefault(section.topic_key, []).append(section)
    return grouped


def _attributed_facts(section: Section, name: str) -> list[PropertyFact]:
    return [replace(f, sources=(name,)) for f in section.atoms.situation.property_facts]


def _attributed_citations(section: Section, name: str) -> list[Citation]:
    return [replace(c, sources=(name,)) for c in section.atoms.guidance.citations]


def number_items(items: Iterable[str]) -> list[str]:
    """Strip any existing leading enumeration and renumber from 1."""
    return [
        f"{i}. {_LEADING_NUMBER_RE.sub('', item).strip()}"
        for i, item in enumerate(items, start=1)
    ]


def consolidate_sections(
    sections: Sequence[Section],
    policy: ConsolidationPolicy | None = None,
    *,
    name_for: Callable[[str], str] = department_name,
) -> DraftAtoms:
    """Merge the approved sections into one unified ``DraftAtoms``.

    Args:
        sections: Sections of one ticket, in stable creation order.  Sections
            not ``approved`` are ignored.
        policy: Free-text reduction policy; defaults to ``DEFAULT_POLICY``.
        name_for: Maps a department key to the display name used for fact
            and citation attribution.

    Returns:
        Fully shaped atoms; topics with no approved sections are empty.
    """
    policy = policy or DEFAULT_POLICY
    grouped = _by_topic(sections)

    situation = SituationAtoms()
    group = grouped.get("situation")
    if group:
        understanding = [u for s in group for u in s.atoms.situation.understanding]
        situation = SituationAtoms(
            understanding=tuple(reduce_text(understanding, policy.for_field("understanding"))),
            property_facts=tuple(merge_facts(
                _attributed_facts(s, name_for(s.department)) for s in group
            )),
        )

    guidance = GuidanceAtoms()
    group = grouped.get("guidance")
    if group:
        recommendations = [r for s in group for r in s.atoms.guidance.recommendations]
        guidance = GuidanceAtoms(
            recommendations=tuple(
                reduce_text(recommendations, policy.for_field("recommendations"))
            ),
            citations=tuple(merge_citations(
                _attributed_citations(s, name_for(s.department)) for s in group
            )),
        )

    nextsteps = NextStepsAtoms()
    group = grouped.get("nextsteps")
    if group:
        followups = [f for s in group for f in s.atoms.nextsteps.followups]
        actions = reduce_text(
            [a for s in group for a in s.atoms.nextsteps.actions],
            policy.for_field("actions"),
        )
        nextsteps = NextStepsAtoms(
            followups=tuple(reduce_text(followups, policy.for_field("followups"))),
            actions=tuple(number_items(actions) if policy.number_actions else actions),
        )

    return DraftAtoms(situation=situation, guidance=guidance, nextsteps=nextsteps)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _attribution(sources: Sequence[str]) -> str:
    return f" ({', '.join(sources)})" if sources else ""


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"{BULLET} {item}" for item in items)


def _render_situation(atoms: SituationAtoms) -> list[str]:
    parts: list[str] = []
    if atoms.understanding:
        parts.append("Understanding:\n" + "\n\n".join(atoms.understanding))
    if atoms.property_facts:
        parts.append("Property Facts:\n" + _bullets(
            f"{f.key}: {f.value}{_attribution(f.sources)}" for f in atoms.property_facts
        ))
    return parts


def _citation_line(citation: Citation) -> str:
    label = " ".join(p for p in (citation.code, citation.section) if p)
    text = f"{label} - {citation.description}" if label else citation.description
    return f"{text}{_attribution(citation.sources)}"


def _render_guidance(atoms: GuidanceAtoms) -> list[str]:
    parts: list[str] = []
    if atoms.recommendations:
        parts.append("Recommendations:\n" + _bullets(atoms.recommendations))
    if atoms.citations:
        parts.append("Citations:\n" + _bullets(_citation_line(c) for c in atoms.citations))
    return parts


def _render_nextsteps(atoms: NextStepsAtoms) -> list[str]:
    parts: list[str] = []
    if atoms.followups:
        parts.append("Follow-ups:\n" + _bullets(atoms.followups))
    if atoms.actions:
        parts.append("Actions:\n" + "\n".join(atoms.actions))
    return parts


def render_topic(topic_key: str, atoms: DraftAtoms) -> str:
    """Plain-text rendering of one topic group for export.

    Returns ``""`` for an unknown topic or a topic with no content.
    """
    if topic_key == "situation":
        parts = _render_situation(atoms.situation)
    elif topic_key == "guidance":
        parts = _render_guidance(atoms.guidance)
    elif topic_key == "nextsteps":
        parts = _render_nextsteps(atoms.nextsteps)
    else:
        return ""
    return "\n\n".join(parts)


def render_document(atoms: DraftAtoms) -> str:
    """Render every non-empty topic under an upper-case title."""
    blocks: list[str] = []
    for topic in TOPIC_KEYS:
        text = render_topic(topic, atoms)
        if text.strip():
            blocks.append(f"{section_title(topic).upper()}\n\n{text}")
    return "\n\n".join(blocks)
