"""Per-field reduction policies for consolidating free-text atoms.

Free-text fields (understanding statements, recommendations, follow-ups,
actions) are reduced with a tagged strategy:

* **representative** -- cluster with ``group_similar`` at ``threshold`` and
  keep only the first member of each cluster.  Lossy.
* **distinct** -- drop exact duplicates only.
* **keep_all** -- keep every item in input order.  Lossless.

Structured records (property facts, citations) are always merged losslessly
by ``onereply.merge`` and have no policy.

Defaults reproduce the production thresholds.  Overrides come in as plain
dicts (usually loaded from JSON)::

    {"fields": {"recommendations": {"threshold": 0.5}}, "number_actions": false}
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal, TypeAlias, cast

from onereply.io_utils import load_json

Strategy: TypeAlias = Literal["representative", "distinct", "keep_all"]

STRATEGIES: frozenset[str] = frozenset({"representative", "distinct", "keep_all"})
TEXT_FIELDS: tuple[str, ...] = ("understanding", "recommendations", "followups", "actions")


@dataclass(frozen=True, slots=True)
class FieldPolicy:
    """Reduction rule for one free-text field."""

    strategy: Strategy = "representative"
    threshold: float = 0.3
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy: {self.strategy!r}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")


DEFAULT_FIELD_POLICIES: dict[str, FieldPolicy] = {
    "understanding": FieldPolicy("representative", 0.7, limit=3),
    "recommendations": FieldPolicy("representative", 0.4),
    "followups": FieldPolicy("representative", 0.5),
    "actions": FieldPolicy("representative", 0.4),
}


@dataclass(frozen=True, slots=True)
class ConsolidationPolicy:
    fields: dict[str, FieldPolicy] = field(
        default_factory=lambda: dict(DEFAULT_FIELD_POLICIES)
    )
    number_actions: bool = True

    def for_field(self, name: str) -> FieldPolicy:
        return self.fields.get(name) or DEFAULT_FIELD_POLICIES[name]


DEFAULT_POLICY = ConsolidationPolicy()


def resolve_policy(overrides: dict[str, Any] | None = None) -> ConsolidationPolicy:
    """Merge a plain override dict over the default policy.

    Unknown field names and invalid strategies/thresholds raise ValueError:
    a broken configuration should fail at load time, not mid-consolidation.
    """
    if not overrides:
        return DEFAULT_POLICY

    fields = dict(DEFAULT_FIELD_POLICIES)
    raw_fields = overrides.get("fields") or {}
    if not isinstance(raw_fields, dict):
        raise ValueError("'fields' must be a mapping of field name to policy")

    for name, raw in cast(dict[str, Any], raw_fields).items():
        if name not in TEXT_FIELDS:
            raise ValueError(f"unknown text field: {name!r}")
        if not isinstance(raw, dict):
            raise ValueError(f"policy for {name!r} must be a mapping")
        spec = cast(dict[str, Any], raw)
        base = fields[name]
        fields[name] = replace(
            base,
            strategy=spec.get("strategy", base.strategy),
            threshold=float(spec.get("threshold", base.threshold)),
            limit=spec.get("limit", base.limit),
        )

    return ConsolidationPolicy(
        fields=fields,
        number_actions=bool(overrides.get("number_actions", True)),
    )


def load_policy(path: Path) -> ConsolidationPolicy:
    """Load and resolve a policy override file (JSON)."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"policy file must contain a JSON object: {path}")
    return resolve_policy(cast(dict[str, Any], data))
