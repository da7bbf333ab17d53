"""Lexical text-matching primitives for near-duplicate detection.

Pure text operations with zero domain dependencies:
- ``tokenize`` / ``similarity`` -- Jaccard index over normalized token sets.
- ``group_similar`` -- greedy single-pass clustering around seed items.
- ``heading_matches`` -- tolerant heading comparison for the splitter.

Grouping compares every candidate against the group *seed* only (not against
the other members), so results depend on input order.  Callers that need
reproducible output must pass items in a stable order.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

DEFAULT_GROUP_THRESHOLD = 0.3

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")


def tokenize(text: str) -> frozenset[str]:
    """Lowercase, drop punctuation, and split *text* into a token set."""
    cleaned = _NON_WORD_RE.sub("", text.lower())
    return frozenset(tok for tok in _WS_RE.split(cleaned) if tok)


def similarity(a: str, b: str) -> float:
    """Jaccard index of the token sets of *a* and *b*.

    Returns:
        Intersection size over union size, in [0, 1].  ``0.0`` when both
        inputs have no tokens.
    """
    return _jaccard(tokenize(a), tokenize(b))


def group_similar(
    items: Sequence[str],
    threshold: float = DEFAULT_GROUP_THRESHOLD,
) -> list[list[str]]:
    """Partition *items* into groups of lexically similar strings.

    Single pass, O(n^2): each still-ungrouped item seeds a new group, and
    every later ungrouped item whose similarity to that seed is strictly
    greater than *threshold* joins it.  Members are never compared with each
    other, so two members of a group may be dissimilar, and two near
    duplicates may land in different groups depending on scan order.

    Args:
        items: Strings to group, in caller-defined order.
        threshold: Similarity a candidate must exceed to join a seed's group.

    Returns:
        List of groups.  Every input item appears in exactly one group; groups
        follow the order of their seeds and members keep input order.
    """
    groups: list[list[str]] = []
    used: set[int] = set()
    token_sets = [tokenize(item) for item in items]

    for i, seed in enumerate(items):
        if i in used:
            continue
        group = [seed]
        used.add(i)
        seed_tokens = token_sets[i]
        for j in range(i + 1, len(items)):
            if j in used:
                continue
            if _jaccard(seed_tokens, token_sets[j]) > threshold:
                group.append(items[j])
                used.add(j)
        groups.append(group)

    return groups


def representatives(groups: Iterable[Sequence[str]]) -> list[str]:
    """Return the first member (the seed) of each non-empty group."""
    return [group[0] for group in groups if group]


def heading_matches(
    heading: str,
    patterns: Iterable[str],
) -> str | None:
    """Return the pattern *heading* names, or None.

    Comparison is case-insensitive, collapses internal whitespace and ignores
    a trailing colon, so ``"Property  Facts:"`` matches ``"Property facts"``.
    Unlike a substring test, ``"Guidance"`` does not match
    ``"Guidance notes"``.
    """
    h = _canonical_heading(heading)
    for pattern in patterns:
        if _canonical_heading(pattern) == h:
            return pattern
    return None


def _canonical_heading(text: str) -> str:
    return _WS_RE.sub(" ", text).strip().rstrip(":").strip().lower()


def _jaccard(set_a: frozenset[str], set_b: frozenset[str]) -> float:
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)
