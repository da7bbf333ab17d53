"""Merging of structured atoms contributed by several departments.

Property facts and citations are merged losslessly: records sharing a key
collapse into one record whose values/descriptions are the distinct
contributions joined together and whose sources name every contributor.
Conflicting values are surfaced side by side, never resolved.

Free-text lists are reduced by ``reduce_text`` according to a
``FieldPolicy`` (see ``onereply.policy``).
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from onereply.atom_types import Citation, PropertyFact
from onereply.policy import FieldPolicy
from onereply.textmatch import group_similar, representatives

FACT_VALUE_SEPARATOR = " / "
CITATION_DESCRIPTION_SEPARATOR = "; "


@dataclass(slots=True)
class _Bucket:
    """Insertion-ordered distinct values and sources for one merge key."""

    label: tuple[str, ...]
    values: dict[str, None] = field(default_factory=dict)
    sources: dict[str, None] = field(default_factory=dict)

    def add(self, value: str, sources: Iterable[str]) -> None:
        if value:
            self.values.setdefault(value, None)
        for src in sources:
            if src:
                self.sources.setdefault(src, None)


def fact_key(key: str) -> str:
    """Normalized merge key for a property fact name."""
    return key.strip().lower()


def citation_key(citation: Citation) -> tuple[str, str]:
    """Compound merge key ``(CODE, section)`` for a citation."""
    return citation.code.strip().upper(), citation.section.strip()


def merge_facts(fact_lists: Iterable[Iterable[PropertyFact]]) -> list[PropertyFact]:
    """Merge property facts from several contributors by normalized key.

    Args:
        fact_lists: One iterable of facts per contributor.

    Returns:
        One fact per distinct key, in first-seen key order.  The display key
        is the first-seen spelling, ``value`` joins the distinct non-empty
        values with ``" / "`` and ``sources`` lists distinct contributors.
    """
    buckets: dict[str, _Bucket] = {}
    for facts in fact_lists:
        for fact in facts:
            k = fact_key(fact.key)
            if not k:
                continue
            bucket = buckets.get(k)
            if bucket is None:
                bucket = buckets[k] = _Bucket(label=(fact.key.strip(),))
            bucket.add(fact.value.strip(), fact.sources)

    return [
        PropertyFact(
            key=b.label[0],
            value=FACT_VALUE_SEPARATOR.join(b.values),
            sources=tuple(b.sources),
        )
        for b in buckets.values()
    ]


def merge_citations(citation_lists: Iterable[Iterable[Citation]]) -> list[Citation]:
    """Merge citations from several contributors by ``(code, section)``.

    Returns:
        One citation per compound key, in first-seen order, with distinct
        descriptions joined by ``"; "`` and distinct contributing sources.
    """
    buckets: dict[tuple[str, str], _Bucket] = {}
    for citations in citation_lists:
        for citation in citations:
            k = citation_key(citation)
            bucket = buckets.get(k)
            if bucket is None:
                bucket = buckets[k] = _Bucket(label=k)
            bucket.add(citation.description.strip(), citation.sources)

    return [
        Citation(
            code=b.label[0],
            section=b.label[1],
            description=CITATION_DESCRIPTION_SEPARATOR.join(b.values),
            sources=tuple(b.sources),
        )
        for b in buckets.values()
    ]


def reduce_text(items: Sequence[str], policy: FieldPolicy) -> list[str]:
    """Reduce a free-text list according to *policy*.

    ``representative`` keeps the seed of each similarity cluster and drops
    the other members; ``distinct`` drops exact repeats; ``keep_all`` keeps
    everything.  ``policy.limit`` caps the result, applied last.
    """
    if policy.strategy == "representative":
        result = representatives(group_similar(items, policy.threshold))
    elif policy.strategy == "distinct":
        result = list(dict.fromkeys(items))
    else:
        result = list(items)
    if policy.limit is not None:
        result = result[: policy.limit]
    return result
