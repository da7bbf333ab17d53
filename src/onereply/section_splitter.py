"""Splitter for flat six-heading department documents.

A generated department document carries six ``<h3>`` headings in a fixed
order.  The splitter folds them into the three topic slots reviewed by
departments:

    situation  = "Our understanding"       + "Property facts"
    guidance   = "Relevant code citations" + "Guidance"
    nextsteps  = "Follow-up questions"     + "Next steps"

2-phase approach:
    1. Heading-anchored scan: every ``<h3>`` opens a block that runs to the
       next ``<h3`` or the end of the document.
    2. Per topic, re-emit the recognised blocks as section content and derive
       structured atoms from their list items.

Documents with fewer than three recognised headings are not split; they come
back as a single ``situation`` section holding the raw content.  The splitter
never raises on malformed input.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from onereply.atom_types import (
    Citation,
    DraftAtoms,
    GuidanceAtoms,
    NextStepsAtoms,
    PropertyFact,
    SituationAtoms,
    TopicKey,
)
from onereply.departments import department_name, section_title
from onereply.html_utils import block_items, strip_tags
from onereply.textmatch import heading_matches

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Heading convention
# ---------------------------------------------------------------------------

# Block name -> heading text, in document order.
HEADINGS: dict[str, str] = {
    "understanding": "Our understanding",
    "property_facts": "Property facts",
    "citations": "Relevant code citations",
    "guidance": "Guidance",
    "followups": "Follow-up questions",
    "next_steps": "Next steps",
}

MIN_HEADINGS = 3

_TOPIC_BLOCKS: tuple[tuple[TopicKey, tuple[str, str]], ...] = (
    ("situation", ("understanding", "property_facts")),
    ("guidance", ("citations", "guidance")),
    ("nextsteps", ("followups", "next_steps")),
)

_HEADING_TO_BLOCK: dict[str, str] = {v: k for k, v in HEADINGS.items()}

# <h3>, <h3 >, <h3 class="x"> ... </h3>
_H3_RE = re.compile(r"<h3\b[^>]*>(.*?)</h3\s*>", re.IGNORECASE | re.DOTALL)
_H3_OPEN_RE = re.compile(r"<h3\b", re.IGNORECASE)

# "[LUC 20.20.720]", "[BCC 24.02.120]"
_CITATION_RE = re.compile(r"\[\s*([A-Za-z][A-Za-z0-9]*)\s+(\d[\w.\-]*)\s*\]")
_LEADING_DASH_RE = re.compile(r"^[\s\-\u2013\u2014:]+")

# "Municipal Code 12.08.020 - Traffic Control Devices"
_PLAIN_CITATION_RE = re.compile(r"^(.*?)\s+(\d+(?:\.\d+)+[A-Za-z]?)\s+-\s+(.+)$")
_BULLET_RE = re.compile(r"^\s*[-*\u2022]\s*")
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+")


@dataclass(frozen=True, slots=True)
class SplitSection:
    """One topic section cut from a flat document."""

    topic_key: TopicKey
    title: str
    content: str
    atoms: DraftAtoms = field(default_factory=DraftAtoms)


# ---------------------------------------------------------------------------
# Phase 1: heading-anchored scan
# ---------------------------------------------------------------------------


def _recognised_headings(doc: str) -> list[tuple[str, re.Match[str]]]:
    """Return ``(block_name, match)`` for each recognised ``<h3>`` heading."""
    found: list[tuple[str, re.Match[str]]] = []
    for m in _H3_RE.finditer(doc):
        text = strip_tags(m.group(1))
        heading = heading_matches(text, HEADINGS.values())
        if heading is not None:
            found.append((_HEADING_TO_BLOCK[heading], m))
    return found


def is_well_formed(doc: str | None) -> bool:
    """True when at least ``MIN_HEADINGS`` distinct headings are present."""
    if not doc:
        return False
    names = {name for name, _ in _recognised_headings(doc)}
    return len(names) >= MIN_HEADINGS


def extract_blocks(doc: str) -> dict[str, str]:
    """Map block name to the stripped HTML between its heading and the next.

    When a heading repeats, the first occurrence wins.
    """
    blocks: dict[str, str] = {}
    for name, m in _recognised_headings(doc):
        if name in blocks:
            continue
        nxt = _H3_OPEN_RE.search(doc, m.end())
        end = nxt.start() if nxt else len(doc)
        blocks[name] = doc[m.end():end].strip()
    return blocks


# ---------------------------------------------------------------------------
# Phase 2: atoms per topic
# ---------------------------------------------------------------------------


def _parse_fact(text: str, source: str) -> PropertyFact:
    key, sep, value = text.partition(":")
    if not sep or not key.strip():
        return PropertyFact(key=text.strip(), value="", sources=(source,))
    return PropertyFact(key=key.strip(), value=value.strip(), sources=(source,))


def parse_citation(text: str, source: str | None = None) -> Citation:
    """Parse a citation item such as ``[LUC 20.20.720] - driveway standards``.

    Without a bracketed code the whole text becomes the description and code
    and section are empty.
    """
    sources = (source,) if source else ()
    m = _CITATION_RE.search(text)
    if m is None:
        return Citation(code="", section="", description=text.strip(), sources=sources)
    rest = " ".join((text[: m.start()] + text[m.end():]).split())
    return Citation(
        code=m.group(1).upper(),
        section=m.group(2).rstrip("."),
        description=_LEADING_DASH_RE.sub("", rest).strip(),
        sources=sources,
    )


def _topic_atoms(topic: TopicKey, blocks: dict[str, str], source: str) -> DraftAtoms:
    if topic == "situation":
        return DraftAtoms(situation=SituationAtoms(
            understanding=tuple(block_items(blocks.get("understanding", ""))),
            property_facts=tuple(
                _parse_fact(item, source)
                for item in block_items(blocks.get("property_facts", ""))
            ),
        ))
    if topic == "guidance":
        return DraftAtoms(guidance=GuidanceAtoms(
            recommendations=tuple(block_items(blocks.get("guidance", ""))),
            citations=tuple(
                parse_citation(item, source)
                for item in block_items(blocks.get("citations", ""))
            ),
        ))
    return DraftAtoms(nextsteps=NextStepsAtoms(
        followups=tuple(block_items(blocks.get("followups", ""))),
        actions=tuple(block_items(blocks.get("next_steps", ""))),
    ))


def _fallback(doc: str) -> list[SplitSection]:
    return [SplitSection(
        topic_key="situation",
        title=section_title("situation"),
        content=doc,
        atoms=DraftAtoms(),
    )]


def split_document(doc: str | None, department: str) -> list[SplitSection]:
    """Split a flat department document into topic sections.

    Args:
        doc: Generated HTML document following the six-heading convention.
        department: Department key; its display name is recorded as the
            source of extracted facts and citations.

    Returns:
        Sections in canonical topic order, each emitted only when at least
        one of its two blocks has content.  A document that is not
        well-formed yields a single ``situation`` section with the raw
        content and empty atoms.
    """
    doc = doc or ""
    if not is_well_formed(doc):
        log.debug("Document for %s not well-formed; using fallback section", department)
        return _fallback(doc)

    blocks = extract_blocks(doc)
    source = department_name(department)
    sections: list[SplitSection] = []

    for topic, names in _TOPIC_BLOCKS:
        parts = [
            f"<h3>{HEADINGS[name]}</h3>{blocks[name]}"
            for name in names
            if blocks.get(name)
        ]
        if not parts:
            continue
        sections.append(SplitSection(
            topic_key=topic,
            title=section_title(topic),
            content="\n".join(parts),
            atoms=_topic_atoms(topic, blocks, source),
        ))

    return sections


# ---------------------------------------------------------------------------
# Plain-text content (manual or templated drafts)
# ---------------------------------------------------------------------------


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _plain_citation(line: str) -> Citation:
    bracketed = _CITATION_RE.search(line)
    if bracketed:
        return parse_citation(line)
    m = _PLAIN_CITATION_RE.match(line)
    if m:
        return Citation(code=m.group(1).strip(), section=m.group(2), description=m.group(3).strip())
    code, sep, description = line.partition(" - ")
    if sep:
        return Citation(code=code.strip(), section="", description=description.strip())
    return Citation(code="", section="", description=line)


def parse_content_to_atoms(content: str, topic_key: str) -> DraftAtoms:
    """Derive atoms from plain-text section content.

    * situation: first line is the understanding statement; ``key: value``
      lines are property facts.
    * guidance: lines before ``Relevant Codes:`` are recommendations; bullet
      lines after it are citations.
    * nextsteps: bullet lines after ``Follow-ups:`` are follow-ups; numbered
      lines after ``Next Steps:`` are actions.

    Unknown topics yield empty atoms.
    """
    content = content or ""
    if topic_key == "situation":
        lines = _lines(content)
        facts = tuple(
            PropertyFact(key=k.strip(), value=v.strip())
            for k, _, v in (line.partition(":") for line in lines if ":" in line)
            if k.strip()
        )
        return DraftAtoms(situation=SituationAtoms(
            understanding=(lines[0],) if lines else (),
            property_facts=facts,
        ))

    if topic_key == "guidance":
        head, _, codes = _split_once(content, "Relevant Codes:")
        recommendations = tuple(_BULLET_RE.sub("", line) for line in _lines(head))
        citations = tuple(
            _plain_citation(_BULLET_RE.sub("", line))
            for line in _lines(codes)
            if _BULLET_RE.match(line)
        )
        return DraftAtoms(guidance=GuidanceAtoms(
            recommendations=tuple(r for r in recommendations if r),
            citations=citations,
        ))

    if topic_key == "nextsteps":
        head, _, steps = _split_once(content, "Next Steps:")
        _, has_followups, followup_text = _split_once(head, "Follow-ups:")
        followups = tuple(
            _BULLET_RE.sub("", line)
            for line in _lines(followup_text if has_followups else "")
            if _BULLET_RE.match(line)
        )
        actions = tuple(
            _NUMBERED_RE.sub("", line) for line in _lines(steps) if _NUMBERED_RE.match(line)
        )
        return DraftAtoms(nextsteps=NextStepsAtoms(followups=followups, actions=actions))

    return DraftAtoms()


def _split_once(text: str, marker: str) -> tuple[str, str, str]:
    """Case-insensitive ``str.partition``."""
    m = re.search(re.escape(marker), text, re.IGNORECASE)
    if m is None:
        return text, "", ""
    return text[: m.start()], m.group(0), text[m.end():]
