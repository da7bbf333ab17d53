"""Section approval workflow with cross-department gating.

Section lifecycle::

    pending   -> annotated | approved | locked | omitted
    annotated -> approved | locked | omitted
    approved | locked | omitted | annotated -> pending   (explicit reject)

Every status change appends exactly one ``EventLog`` record inside the same
per-ticket critical section as the write:

* approved  -> ``section_approved``
* locked    -> ``section_locked``
* annotated -> ``section_annotated``
* omitted   -> ``section_annotated`` (omission has no event type of its own)
* pending   -> ``section_annotated`` (returned for revision)

Rejected requests (unknown ids, unknown topic keys or gating modes, and
transitions outside ``ALLOWED_TRANSITIONS``) are logged and answered with
None; nothing is written and no event is emitted.

Aggregates (``department_status``, ``can_approve_ticket``) are pure and are
recomputed from the repository on every call.  Side effects live only in
``update_section``, ``apply_gating`` and the ticket-level operations.

Gating modes:

* **all** -- the ticket is ready once every in-scope department is approved
  or omitted.
* **first** -- the ticket is ready once any department is; approving a
  department's section locks the still-pending sections of every other
  in-scope department.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from onereply.atom_types import (
    GATING_MODES,
    TOPIC_KEYS,
    DeptStatus,
    DraftAtoms,
    EventLog,
    EventType,
    GatingMode,
    Section,
    SectionStatus,
    Ticket,
    TicketStatus,
    TopicKey,
    coerce_atoms,
)
from onereply.consolidate import consolidate_sections
from onereply.departments import department_name, section_title
from onereply.policy import ConsolidationPolicy
from onereply.repository import TicketRepository

log = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"annotated", "approved", "locked", "omitted"}),
    "annotated": frozenset({"approved", "locked", "omitted", "pending"}),
    "approved": frozenset({"pending"}),
    "locked": frozenset({"pending"}),
    "omitted": frozenset({"pending"}),
}

# Target status -> (event type, detail suffix)
_STATUS_EVENTS: dict[str, tuple[EventType, str]] = {
    "approved": ("section_approved", "approved"),
    "locked": ("section_locked", "locked"),
    "annotated": ("section_annotated", "annotated"),
    "omitted": ("section_annotated", "omitted from response"),
    "pending": ("section_annotated", "returned for revision"),
}

_CLEARED: frozenset[str] = frozenset({"approved", "locked", "omitted"})
_GATE_PASSING: frozenset[str] = frozenset({"approved", "omitted"})


# ---------------------------------------------------------------------------
# Pure aggregation
# ---------------------------------------------------------------------------


def aggregate_department_status(statuses: Iterable[str]) -> DeptStatus:
    """Fold one department's section statuses into a single status.

    Checked in order: every section approved/locked/omitted -> ``approved``;
    any annotated -> ``annotated``; any omitted -> ``omitted``; otherwise (or
    with no sections at all) ``pending``.
    """
    seen = list(statuses)
    if not seen:
        return "pending"
    if all(s in _CLEARED for s in seen):
        return "approved"
    if "annotated" in seen:
        return "annotated"
    if "omitted" in seen:
        return "omitted"
    return "pending"


def gate_open(gating_mode: GatingMode, department_statuses: Sequence[str]) -> bool:
    """Whether a ticket with these department statuses may be assembled."""
    passing = [s in _GATE_PASSING for s in department_statuses]
    if gating_mode == "all":
        return all(passing)
    return any(passing)


def is_valid_transition(current: str, requested: str) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def _utc_now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class ApprovalStateMachine:
    """Review workflow over a ``TicketRepository``."""

    def __init__(
        self,
        repository: TicketRepository,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._clock = clock or _utc_now

    # ─── Events ───────────────────────────────────────────────────

    def _log_event(
        self,
        ticket_id: str,
        event_type: EventType,
        details: str,
        *,
        department: str | None = None,
        topic_key: TopicKey | None = None,
    ) -> EventLog:
        event = EventLog(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            type=event_type,
            details=details,
            timestamp=self._clock(),
            department=department,
            topic_key=topic_key,
        )
        self._repo.append_event(event)
        return event

    def events(self, ticket_id: str) -> list[EventLog]:
        return self._repo.ticket_events(ticket_id)

    # ─── Creation ─────────────────────────────────────────────────

    def create_ticket(
        self,
        subject: str,
        sender: str,
        body: str,
        departments: Sequence[str],
        gating_mode: GatingMode = "all",
    ) -> Ticket | None:
        """Open a ticket in ``drafting``. Returns None for an unknown gating mode."""
        if gating_mode not in GATING_MODES:
            log.warning("Rejected ticket %r: unknown gating mode %r", subject, gating_mode)
            return None
        now = self._clock()
        ticket = Ticket(
            id=str(uuid.uuid4()),
            subject=subject,
            sender=sender,
            body=body,
            departments=tuple(dict.fromkeys(departments)),
            gating_mode=gating_mode,
            status="drafting",
            created_at=now,
            updated_at=now,
        )
        self._repo.save_ticket(ticket)
        self._log_event(ticket.id, "created", f"Ticket created: {subject}")
        log.info("Created ticket %s (%s gating, %d departments)",
                 ticket.id, gating_mode, len(ticket.departments))
        return ticket

    def create_section(
        self,
        ticket_id: str,
        department: str,
        topic_key: TopicKey,
        content: str,
        *,
        atoms: DraftAtoms | dict[str, Any] | None = None,
        title: str | None = None,
        order: int | None = None,
    ) -> Section | None:
        """Add a ``pending`` section to a ticket.

        Returns None for an unknown ticket or topic key.
        """
        if self._repo.get_ticket(ticket_id) is None:
            return None
        if topic_key not in TOPIC_KEYS:
            log.warning("Rejected section for %s: unknown topic key %r", ticket_id, topic_key)
            return None
        with self._repo.ticket_lock(ticket_id):
            now = self._clock()
            section = Section(
                id=str(uuid.uuid4()),
                ticket_id=ticket_id,
                department=department,
                topic_key=topic_key,
                title=title or section_title(topic_key),
                content=content,
                atoms=coerce_atoms(atoms),
                status="pending",
                annotations=(),
                order=len(self._repo.ticket_sections(ticket_id)) if order is None else order,
                created_at=now,
                updated_at=now,
            )
            self._repo.save_section(section)
            self._log_event(
                ticket_id, "draft_generated",
                f"Draft generated for {department_name(department)} - {section.title}",
                department=department, topic_key=topic_key,
            )
            self.refresh_ticket_status(ticket_id)
        return section

    # ─── Section updates ──────────────────────────────────────────

    def update_section(
        self,
        section_id: str,
        *,
        content: str | None = None,
        status: SectionStatus | None = None,
        annotations: Sequence[str] | None = None,
        atoms: DraftAtoms | dict[str, Any] | None = None,
        order: int | None = None,
        title: str | None = None,
    ) -> Section | None:
        """Apply a partial update to a section.

        Fields left as None are unchanged.  A status change is validated
        against ``ALLOWED_TRANSITIONS`` before anything is written and emits
        exactly one event.

        Returns:
            The updated section, or None when *section_id* is unknown or the
            requested status is not reachable from the current one.  A
            rejected update writes nothing and emits no event.
        """
        current = self._repo.get_section(section_id)
        if current is None:
            return None

        with self._repo.ticket_lock(current.ticket_id):
            section = self._repo.get_section(section_id)
            if section is None:
                return None

            status_changed = status is not None and status != section.status
            if status_changed and not is_valid_transition(section.status, str(status)):
                log.warning("Section %s: rejected transition %s -> %s",
                            section_id, section.status, status)
                return None

            changes: dict[str, Any] = {}
            if content is not None:
                changes["content"] = content
            if annotations is not None:
                changes["annotations"] = tuple(annotations)
            if atoms is not None:
                changes["atoms"] = coerce_atoms(atoms)
            if order is not None:
                changes["order"] = order
            if title is not None:
                changes["title"] = title
            if status_changed:
                changes["status"] = status
            if not changes:
                return section

            updated = replace(section, updated_at=self._clock(), **changes)
            self._repo.save_section(updated)

            if status_changed:
                event_type, suffix = _STATUS_EVENTS[updated.status]
                self._log_event(
                    updated.ticket_id, event_type,
                    f"{department_name(updated.department)} - {updated.title} {suffix}",
                    department=updated.department, topic_key=updated.topic_key,
                )
                log.info("Section %s: %s -> %s", section_id, section.status, updated.status)
                self.refresh_ticket_status(updated.ticket_id)

        return updated

    def approve_section(self, section_id: str) -> Section | None:
        """Approve a section, then apply the ticket's gating rule.

        Returns None when the section is unknown or cannot be approved from
        its current status (for example, locked by first-responder gating).
        """
        section = self._repo.get_section(section_id)
        if section is None:
            return None
        with self._repo.ticket_lock(section.ticket_id):
            updated = self.update_section(section_id, status="approved")
            if updated is not None:
                self.apply_gating(updated.ticket_id, updated.department)
                updated = self._repo.get_section(section_id)
        return updated

    def annotate_section(self, section_id: str, note: str) -> Section | None:
        """Append a reviewer note; a pending section becomes ``annotated``.

        Notes on sections in any other status are recorded without a status
        change and logged as an annotation event.
        """
        section = self._repo.get_section(section_id)
        if section is None:
            return None
        with self._repo.ticket_lock(section.ticket_id):
            section = self._repo.get_section(section_id)
            if section is None:
                return None
            notes = (*section.annotations, note)
            if section.status == "pending":
                return self.update_section(section_id, annotations=notes, status="annotated")
            updated = self.update_section(section_id, annotations=notes)
            self._log_event(
                section.ticket_id, "section_annotated",
                f"{department_name(section.department)} - {section.title} annotation added",
                department=section.department, topic_key=section.topic_key,
            )
        return updated

    def omit_section(self, section_id: str) -> Section | None:
        return self.update_section(section_id, status="omitted")

    def reject_section(self, section_id: str) -> Section | None:
        """Return a section to ``pending`` for revision."""
        return self.update_section(section_id, status="pending")

    # ─── Aggregates (pure) ────────────────────────────────────────

    def department_status(self, ticket_id: str, department: str) -> DeptStatus:
        return aggregate_department_status(
            s.status for s in self._repo.ticket_sections(ticket_id)
            if s.department == department
        )

    def can_approve_ticket(self, ticket_id: str) -> bool:
        ticket = self._repo.get_ticket(ticket_id)
        if ticket is None:
            return False
        statuses = [self.department_status(ticket_id, d) for d in ticket.departments]
        return gate_open(ticket.gating_mode, statuses)

    # ─── Gating ───────────────────────────────────────────────────

    def apply_gating(self, ticket_id: str, department: str) -> list[str]:
        """Lock other departments' pending sections once *department* approves.

        Only acts under ``first`` gating and only when *department* has at
        least one approved section.  Locked sections are frozen, not deleted;
        a reject returns them to ``pending``.

        Returns:
            Ids of the sections locked by this call.
        """
        ticket = self._repo.get_ticket(ticket_id)
        if ticket is None or ticket.gating_mode != "first":
            return []

        locked: list[str] = []
        with self._repo.ticket_lock(ticket_id):
            sections = self._repo.ticket_sections(ticket_id)
            if not any(s.department == department and s.status == "approved" for s in sections):
                return []
            in_scope = set(ticket.departments)
            for section in sections:
                if (
                    section.department != department
                    and section.department in in_scope
                    and section.status == "pending"
                ):
                    self.update_section(section.id, status="locked")
                    locked.append(section.id)

        if locked:
            log.info("First-responder gating on %s: %s locked %d sections",
                     ticket_id, department, len(locked))
        return locked

    # ─── Ticket lifecycle ─────────────────────────────────────────

    def refresh_ticket_status(self, ticket_id: str) -> TicketStatus | None:
        """Recompute drafting/reviewing/ready; ``assembled`` is final."""
        ticket = self._repo.get_ticket(ticket_id)
        if ticket is None:
            return None
        if ticket.status == "assembled":
            return ticket.status

        status: TicketStatus
        if not self._repo.ticket_sections(ticket_id):
            status = "drafting"
        elif self.can_approve_ticket(ticket_id):
            status = "ready"
        else:
            status = "reviewing"

        if status != ticket.status:
            self._repo.save_ticket(replace(ticket, status=status, updated_at=self._clock()))
        return status

    def assemble_ticket(
        self,
        ticket_id: str,
        policy: ConsolidationPolicy | None = None,
    ) -> DraftAtoms | None:
        """Consolidate a ready ticket and mark it ``assembled``.

        Returns None when the ticket is unknown or its gate is not open.
        """
        ticket = self._repo.get_ticket(ticket_id)
        if ticket is None:
            return None
        with self._repo.ticket_lock(ticket_id):
            if not self.can_approve_ticket(ticket_id):
                log.info("Ticket %s not ready for assembly", ticket_id)
                return None
            sections = self._repo.ticket_sections(ticket_id)
            atoms = consolidate_sections(sections, policy)
            approved = sum(1 for s in sections if s.status == "approved")
            ticket = self._repo.get_ticket(ticket_id) or ticket
            self._repo.save_ticket(replace(ticket, status="assembled", updated_at=self._clock()))
            self._log_event(
                ticket_id, "ticket_assembled",
                f"Assembled final response ({approved} sections)",
            )
        return atoms
