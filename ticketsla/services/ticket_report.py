"""
Application services for the manual ticket SLA report.

The service loads tickets through a store adapter, derives the report
columns with the domain-level ``BusinessHoursCalculator`` and handles
searching, filtering, sorting, editing and CSV export. Stores are plugged in
through a small protocol so tests can use an in-memory stub.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Protocol, Sequence

import pendulum

from ..domain.business_hours import BusinessHoursCalculator
from ..domain.exceptions import TicketNotFoundError
from ..domain.tickets import (
    FLAG_NAMES,
    MODERATORS,
    PLACEHOLDER,
    THRESHOLDS,
    ManualTicket,
    format_timestamp,
)

MISSING_VALUE = "N/D"

SEARCHABLE_FIELDS = ("platform", "user_name", "moderator", "threshold", "content")

CSV_HEADERS = [
    "Piattaforma", "Utente", "Data Domanda", "Fuori orario", "Moderatore",
    "Data Gestione", "Diff.", "Soglia", "Flag",
]


class TicketStoreProtocol(Protocol):
    """Protocol describing the ticket storage behaviour needed by the service."""

    def load_tickets(self) -> List[ManualTicket]:
        """Return all stored tickets."""

    def save_tickets(self, tickets: List[ManualTicket]) -> None:
        """Replace the stored tickets."""


@dataclass
class ReportRow:
    """A ticket together with its derived report columns."""
    ticket: ManualTicket
    diff: str | None
    out_of_hours: bool
    month_label: str
    flag_texts: List[str] = field(default_factory=list)

    @property
    def out_of_hours_text(self) -> str:
        return "Sì" if self.out_of_hours else "No"


COLUMN_GETTERS: Dict[str, Callable[[ReportRow], str | None]] = {
    "piattaforma": lambda row: row.ticket.platform,
    "nome_utente": lambda row: row.ticket.user_name,
    "data_domanda_month_year": lambda row: row.month_label,
    "fuori_orario_text": lambda row: row.out_of_hours_text,
    "moderatore": lambda row: row.ticket.moderator,
    "soglia": lambda row: row.ticket.threshold,
}

FILTER_KEYS = [*COLUMN_GETTERS, "flags"]


class TicketReportService:
    """
    Builds the SLA report over the tickets of a store and keeps the store
    up to date on edits. Every edit writes back the full list (last write wins).
    """

    def __init__(
        self,
        calculator: BusinessHoursCalculator,
        store: TicketStoreProtocol,
    ) -> None:
        self._calculator = calculator
        self._store = store

    @property
    def timezone(self) -> str:
        return self._calculator.working_hours.timezone

    def report(
        self,
        *,
        search: str | None = None,
        column_filters: Mapping[str, str] | None = None,
    ) -> List[ReportRow]:
        """Load tickets, derive the report columns and apply search and filters."""
        rows = self.build_rows(self._store.load_tickets())
        return self.filter_rows(rows, search=search, column_filters=column_filters)

    def build_rows(self, tickets: Sequence[ManualTicket]) -> List[ReportRow]:
        """Derive working-time difference, out-of-hours flag, month label and flags."""
        return [self._build_row(ticket) for ticket in tickets]

    def _build_row(self, ticket: ManualTicket) -> ReportRow:
        asked_at = self._calculator.parse(ticket.asked_at)
        month_label = asked_at.format("MMMM YYYY", locale="it") if asked_at else MISSING_VALUE

        return ReportRow(
            ticket=ticket,
            diff=self._calculator.compute_working_duration(ticket.asked_at, ticket.handled_at),
            out_of_hours=self._calculator.is_out_of_hours(ticket.asked_at),
            month_label=month_label,
            flag_texts=ticket.flag_texts(),
        )

    def filter_rows(
        self,
        rows: Sequence[ReportRow],
        *,
        search: str | None = None,
        column_filters: Mapping[str, str] | None = None,
    ) -> List[ReportRow]:
        """
        Apply a global search and per-column filters, newest question first.

        The search is a case-insensitive substring match over platform, user,
        moderator, threshold and content. Column filters match exactly; missing
        values compare as ``N/D`` and ``flags`` matches any of the row's flags.
        """
        filtered = list(rows)

        if search:
            term = search.lower()
            filtered = [
                row for row in filtered
                if any(term in str(getattr(row.ticket, name) or "").lower() for name in SEARCHABLE_FIELDS)
            ]

        for key, value in (column_filters or {}).items():
            if key not in FILTER_KEYS:
                raise ValueError(
                    f"Unknown filter column: '{key}'. Use one of: {', '.join(FILTER_KEYS)}"
                )
            if not value:
                continue
            if key == "flags":
                filtered = [row for row in filtered if value in row.flag_texts]
            else:
                getter = COLUMN_GETTERS[key]
                filtered = [row for row in filtered if str(getter(row) or MISSING_VALUE) == value]

        return sorted(filtered, key=self._asked_at_sort_key, reverse=True)

    def _asked_at_sort_key(self, row: ReportRow) -> float:
        asked_at = self._calculator.parse(row.ticket.asked_at)
        return asked_at.timestamp() if asked_at else float("-inf")

    def filter_options(self, rows: Sequence[ReportRow], key: str) -> List[str]:
        """Values offered for a column filter."""
        if key == "flags":
            return list(FLAG_NAMES)
        if key == "moderatore":
            return list(MODERATORS)
        if key == "soglia":
            return list(THRESHOLDS)
        if key not in COLUMN_GETTERS:
            raise ValueError(f"Unknown filter column: '{key}'")

        getter = COLUMN_GETTERS[key]
        return sorted({str(getter(row) or MISSING_VALUE) for row in rows})

    def save_ticket(self, ticket: ManualTicket) -> ManualTicket:
        """
        Add a new ticket (no id) or replace an existing one (matching id).

        Returns:
            The saved ticket, with its generated id for new tickets

        Raises:
            TicketNotFoundError: If a ticket with the given id does not exist
        """
        tickets = self._store.load_tickets()

        if ticket.id:
            if not any(existing.id == ticket.id for existing in tickets):
                raise TicketNotFoundError(f"Ticket not found: {ticket.id}")
            tickets = [ticket if existing.id == ticket.id else existing for existing in tickets]
        else:
            millis = int(pendulum.now("UTC").timestamp() * 1000)
            ticket = ticket.model_copy(update={"id": f"manual-ticket-{millis}"})
            tickets.append(ticket)

        self._store.save_tickets(tickets)
        return ticket

    def delete_ticket(self, ticket_id: str) -> ManualTicket:
        """
        Remove a ticket by id.

        Raises:
            TicketNotFoundError: If the ticket does not exist
        """
        tickets = self._store.load_tickets()
        remaining = [ticket for ticket in tickets if ticket.id != ticket_id]

        if len(remaining) == len(tickets):
            raise TicketNotFoundError(f"Ticket not found: {ticket_id}")

        deleted = next(ticket for ticket in tickets if ticket.id == ticket_id)
        self._store.save_tickets(remaining)
        return deleted

    def export_csv(self, rows: Sequence[ReportRow], path: Path) -> int:
        """
        Write the report rows to a CSV file.

        Returns:
            Number of rows written
        """
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADERS)
            for row in rows:
                writer.writerow(self.display_values(row))

        return len(rows)

    def display_values(self, row: ReportRow) -> List[str]:
        """Report cells for a row, in ``CSV_HEADERS`` order."""
        ticket = row.ticket
        return [
            ticket.platform or PLACEHOLDER,
            ticket.user_name or PLACEHOLDER,
            format_timestamp(ticket.asked_at, self.timezone),
            row.out_of_hours_text,
            ticket.moderator or PLACEHOLDER,
            format_timestamp(ticket.handled_at, self.timezone),
            row.diff or PLACEHOLDER,
            ticket.threshold or PLACEHOLDER,
            ", ".join(row.flag_texts),
        ]
