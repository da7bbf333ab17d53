"""Repository interface for tickets, sections and the audit event log.

The approval workflow and assembly depend on ``TicketRepository`` rather than
on global collections.  Each section belongs to exactly one ticket through
``ticket_id``; records are immutable and replaced wholesale on save.

``InMemoryRepository`` is the reference implementation used by tests and the
CLI scripts.  Durable storage lives outside this package and only needs to
satisfy the protocol.
"""
from __future__ import annotations

import threading
from typing import Protocol

from onereply.atom_types import EventLog, Section, Ticket


class TicketRepository(Protocol):
    def get_ticket(self, ticket_id: str) -> Ticket | None: ...

    def save_ticket(self, ticket: Ticket) -> None: ...

    def get_section(self, section_id: str) -> Section | None: ...

    def save_section(self, section: Section) -> None: ...

    def ticket_sections(self, ticket_id: str) -> list[Section]:
        """Sections of a ticket sorted by ``order``, ties in insertion order."""
        ...

    def append_event(self, event: EventLog) -> None: ...

    def ticket_events(self, ticket_id: str) -> list[EventLog]: ...

    def ticket_lock(self, ticket_id: str) -> threading.RLock:
        """Re-entrant lock serializing status changes on one ticket."""
        ...


class InMemoryRepository:
    """Dict-backed ``TicketRepository``."""

    def __init__(self) -> None:
        self._tickets: dict[str, Ticket] = {}
        self._sections: dict[str, Section] = {}
        self._insertion: dict[str, int] = {}
        self._events: dict[str, list[EventLog]] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    # ─── Tickets ──────────────────────────────────────────────────

    def get_ticket(self, ticket_id: str) -> Ticket | None:
        return self._tickets.get(ticket_id)

    def save_ticket(self, ticket: Ticket) -> None:
        self._tickets[ticket.id] = ticket

    def all_tickets(self) -> list[Ticket]:
        return list(self._tickets.values())

    # ─── Sections ─────────────────────────────────────────────────

    def get_section(self, section_id: str) -> Section | None:
        return self._sections.get(section_id)

    def save_section(self, section: Section) -> None:
        if section.id not in self._insertion:
            self._insertion[section.id] = len(self._insertion)
        self._sections[section.id] = section

    def ticket_sections(self, ticket_id: str) -> list[Section]:
        rows = [s for s in self._sections.values() if s.ticket_id == ticket_id]
        rows.sort(key=lambda s: (s.order, self._insertion[s.id]))
        return rows

    # ─── Events ───────────────────────────────────────────────────

    def append_event(self, event: EventLog) -> None:
        self._events.setdefault(event.ticket_id, []).append(event)

    def ticket_events(self, ticket_id: str) -> list[EventLog]:
        return list(self._events.get(ticket_id, ()))

    # ─── Locking ──────────────────────────────────────────────────

    def ticket_lock(self, ticket_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(ticket_id)
            if lock is None:
                lock = self._locks[ticket_id] = threading.RLock()
            return lock
