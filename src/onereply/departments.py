"""Department registry, topic templates and department suggestion.

Lookups never raise: an unknown department key resolves to a sentinel
``Department`` named "Unknown Department" so attribution still renders when
collaborator data is incomplete.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from onereply.atom_types import TopicKey

log = logging.getLogger(__name__)

UNKNOWN_DEPARTMENT_NAME = "Unknown Department"


@dataclass(frozen=True, slots=True)
class Department:
    key: str
    name: str
    description: str
    known: bool = True


@dataclass(frozen=True, slots=True)
class SectionTemplate:
    key: TopicKey
    title: str
    description: str


DEPARTMENTS: dict[str, Department] = {
    d.key: d
    for d in (
        Department(
            "transportation", "Transportation",
            "Roads, traffic, parking, and transit infrastructure",
        ),
        Department(
            "building", "Building",
            "Building permits, inspections, and code compliance",
        ),
        Department(
            "utilities", "Utilities",
            "Water, sewer, electrical, and telecommunications",
        ),
        Department(
            "land_use", "Land Use",
            "Zoning, planning, and development regulations",
        ),
    )
}

SECTION_TEMPLATES: dict[TopicKey, SectionTemplate] = {
    "situation": SectionTemplate(
        "situation", "Situation",
        "Summary of the request and relevant property information",
    ),
    "guidance": SectionTemplate(
        "guidance", "Guidance",
        "Department recommendations and applicable code citations",
    ),
    "nextsteps": SectionTemplate(
        "nextsteps", "Next Steps",
        "Follow-ups and specific actions the citizen should take",
    ),
}

# Keyword patterns -- order here is the order suggestions are returned in.
_SUGGESTION_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("transportation", re.compile(
        r"\b(road|street|traffic|parking|sidewalk|crosswalk|stop sign|"
        r"traffic light|pothole|snow removal|transit|bus)\b"
    )),
    ("building", re.compile(
        r"\b(building|permit|construction|renovation|inspection|code|"
        r"violation|roof|fence|deck|addition|demolition)\b"
    )),
    ("utilities", re.compile(
        r"\b(water|sewer|electric|power|gas|internet|cable|utility|outage|"
        r"leak|meter|connection)\b"
    )),
    ("land_use", re.compile(
        r"\b(zoning|planning|development|variance|subdivision|lot|"
        r"property line|setback|easement|land use)\b"
    )),
)

DEFAULT_SUGGESTION = "transportation"


def get_department(key: str) -> Department:
    """Return the registered department, or an "unknown" sentinel."""
    dept = DEPARTMENTS.get(key)
    if dept is None:
        log.warning("Department not found for key: %s", key)
        return Department(
            key=key,
            name=UNKNOWN_DEPARTMENT_NAME,
            description="Department information not found",
            known=False,
        )
    return dept


def department_name(key: str) -> str:
    return get_department(key).name


def section_title(topic_key: str) -> str:
    template = SECTION_TEMPLATES.get(topic_key)  # type: ignore[call-overload]
    return template.title if template else topic_key.title()


def suggest_departments(subject: str, body: str) -> list[str]:
    """Suggest departments for an inquiry by keyword.

    Falls back to ``[DEFAULT_SUGGESTION]`` when nothing matches, so a new
    ticket always has at least one department in scope.
    """
    text = f"{subject} {body}".lower()
    suggested = [key for key, pattern in _SUGGESTION_PATTERNS if pattern.search(text)]
    return suggested or [DEFAULT_SUGGESTION]
