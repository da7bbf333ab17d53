"""Coordinate department contributions to a citizen inquiry into one reply."""

from onereply.approval import (
    ALLOWED_TRANSITIONS,
    ApprovalStateMachine,
    aggregate_department_status,
    gate_open,
)
from onereply.atom_types import (
    Citation,
    DraftAtoms,
    EventLog,
    GuidanceAtoms,
    NextStepsAtoms,
    PropertyFact,
    Section,
    SituationAtoms,
    Ticket,
    atoms_to_dict,
    coerce_atoms,
)
from onereply.consolidate import consolidate_sections, render_document, render_topic
from onereply.departments import department_name, get_department, suggest_departments
from onereply.merge import merge_citations, merge_facts, reduce_text
from onereply.normalize import coerce_to_sectioned_html, to_bulleted_html
from onereply.policy import (
    DEFAULT_POLICY,
    ConsolidationPolicy,
    FieldPolicy,
    load_policy,
    resolve_policy,
)
from onereply.repository import InMemoryRepository, TicketRepository
from onereply.section_splitter import (
    SplitSection,
    is_well_formed,
    parse_content_to_atoms,
    split_document,
)
from onereply.textmatch import group_similar, similarity, tokenize

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ApprovalStateMachine",
    "Citation",
    "ConsolidationPolicy",
    "DEFAULT_POLICY",
    "DraftAtoms",
    "EventLog",
    "FieldPolicy",
    "GuidanceAtoms",
    "InMemoryRepository",
    "NextStepsAtoms",
    "PropertyFact",
    "Section",
    "SituationAtoms",
    "SplitSection",
    "Ticket",
    "TicketRepository",
    "aggregate_department_status",
    "atoms_to_dict",
    "coerce_atoms",
    "coerce_to_sectioned_html",
    "consolidate_sections",
    "department_name",
    "gate_open",
    "get_department",
    "group_similar",
    "is_well_formed",
    "load_policy",
    "merge_citations",
    "merge_facts",
    "parse_content_to_atoms",
    "reduce_text",
    "render_document",
    "render_topic",
    "resolve_policy",
    "similarity",
    "split_document",
    "suggest_departments",
    "to_bulleted_html",
    "tokenize",
]
