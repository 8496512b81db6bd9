"""
Tests for the TicketReportService orchestration layer.
"""

import csv
from typing import List

import pytest

from ticketsla.domain.business_hours import BusinessHoursCalculator
from ticketsla.domain.exceptions import TicketNotFoundError
from ticketsla.domain.models import WorkingHours
from ticketsla.domain.tickets import FLAG_NAMES, ManualTicket
from ticketsla.services.ticket_report import CSV_HEADERS, TicketReportService


class StubTicketStore:
    """Minimal in-memory store matching TicketStoreProtocol."""

    def __init__(self, tickets: List[ManualTicket]):
        self.tickets = list(tickets)
        self.saves: List[List[ManualTicket]] = []

    def load_tickets(self) -> List[ManualTicket]:
        return list(self.tickets)

    def save_tickets(self, tickets: List[ManualTicket]) -> None:
        self.saves.append(list(tickets))
        self.tickets = list(tickets)


def _tickets() -> List[ManualTicket]:
    return [
        ManualTicket(
            id="a",
            platform="Facebook Pubblico",
            user_name="Mario Rossi",
            asked_at="2024-01-05T19:00:00",  # Friday
            handled_at="2024-01-08T09:00:00",
            moderator="Leocata Rita",
            threshold="OK",
            main_action="Risposto",
        ),
        ManualTicket(
            id="b",
            platform="Instagram Direct",
            user_name="Anna Bianchi",
            content="Richiesta informazioni sulla demo",
            asked_at="2024-01-06T10:00:00",  # Saturday
            threshold="KO",
            forward_action="Inoltrato al BO",
        ),
        ManualTicket(
            id="c",
            platform="X Pubblico",
            user_name="Luca Verdi",
            asked_at="2024-02-12T09:00:00",
            handled_at="2024-02-12T09:20:00",
            moderator="Romano Roberta",
            threshold="OK",
            main_action="Ignorato",
        ),
    ]


def _build_service(tickets: List[ManualTicket] | None = None) -> tuple[TicketReportService, StubTicketStore]:
    store = StubTicketStore(_tickets() if tickets is None else tickets)
    calculator = BusinessHoursCalculator(WorkingHours())
    return TicketReportService(calculator=calculator, store=store), store


class TestBuildRows:
    """Tests for the derived report columns."""

    def test_rows_carry_derived_columns(self):
        service, store = _build_service()

        rows = {row.ticket.id: row for row in service.build_rows(store.tickets)}

        assert rows["a"].diff == "2h 0m"
        assert rows["a"].out_of_hours is False
        assert rows["a"].month_label == "gennaio 2024"
        assert rows["a"].flag_texts == ["Risposto"]

        assert rows["b"].diff is None
        assert rows["b"].out_of_hours is True
        assert rows["b"].out_of_hours_text == "Sì"
        assert rows["b"].flag_texts == ["Non Risposto", "Inoltrato al BO"]

        assert rows["c"].diff == "20m"
        assert rows["c"].month_label == "febbraio 2024"


class TestFilterRows:
    """Tests for search, column filters and ordering."""

    def test_report_is_sorted_newest_first(self):
        service, _ = _build_service()

        rows = service.report()

        assert [row.ticket.id for row in rows] == ["c", "b", "a"]

    def test_search_is_case_insensitive_across_fields(self):
        service, _ = _build_service()

        assert [row.ticket.id for row in service.report(search="FACEBOOK")] == ["a"]
        assert [row.ticket.id for row in service.report(search="demo")] == ["b"]
        assert [row.ticket.id for row in service.report(search="romano")] == ["c"]

    def test_threshold_filter(self):
        service, _ = _build_service()

        rows = service.report(column_filters={"soglia": "OK"})

        assert [row.ticket.id for row in rows] == ["c", "a"]

    def test_flags_filter_matches_any_flag(self):
        service, _ = _build_service()

        assert [row.ticket.id for row in service.report(column_filters={"flags": "Non Risposto"})] == ["b"]
        assert [row.ticket.id for row in service.report(column_filters={"flags": "Inoltrato al BO"})] == ["b"]

    def test_missing_values_filter_as_not_available(self):
        service, _ = _build_service()

        rows = service.report(column_filters={"moderatore": "N/D"})

        assert [row.ticket.id for row in rows] == ["b"]

    def test_derived_column_filters(self):
        service, _ = _build_service()

        assert [row.ticket.id for row in service.report(column_filters={"fuori_orario_text": "Sì"})] == ["b"]
        assert [
            row.ticket.id
            for row in service.report(column_filters={"data_domanda_month_year": "febbraio 2024"})
        ] == ["c"]

    def test_search_and_filters_combine(self):
        service, _ = _build_service()

        rows = service.report(search="o", column_filters={"soglia": "OK", "piattaforma": "X Pubblico"})

        assert [row.ticket.id for row in rows] == ["c"]

    def test_empty_filter_value_is_ignored(self):
        service, _ = _build_service()

        assert len(service.report(column_filters={"soglia": ""})) == 3

    def test_unknown_filter_column(self):
        service, _ = _build_service()

        with pytest.raises(ValueError, match="Unknown filter column"):
            service.report(column_filters={"colore": "blu"})

    def test_filter_options(self):
        service, store = _build_service()
        rows = service.build_rows(store.tickets)

        assert service.filter_options(rows, "flags") == FLAG_NAMES
        assert service.filter_options(rows, "soglia") == ["OK", "KO"]
        assert service.filter_options(rows, "piattaforma") == [
            "Facebook Pubblico", "Instagram Direct", "X Pubblico"
        ]


class TestEditTickets:
    """Tests for saving and deleting tickets."""

    def test_save_new_ticket_generates_id(self):
        service, store = _build_service()

        saved = service.save_ticket(ManualTicket(user_name="Nuovo Utente", asked_at="2024-03-01T10:00:00"))

        assert saved.id.startswith("manual-ticket-")
        assert len(store.tickets) == 4
        assert store.tickets[-1] == saved

    def test_save_existing_ticket_replaces_it(self):
        service, store = _build_service()
        updated = store.tickets[1].model_copy(update={"moderator": "Perri Marilisa"})

        service.save_ticket(updated)

        assert len(store.tickets) == 3
        assert store.tickets[1].moderator == "Perri Marilisa"

    def test_save_unknown_id(self):
        service, store = _build_service()

        with pytest.raises(TicketNotFoundError):
            service.save_ticket(ManualTicket(id="missing", asked_at="2024-03-01T10:00:00"))

        assert store.saves == []

    def test_delete_ticket(self):
        service, store = _build_service()

        deleted = service.delete_ticket("b")

        assert deleted.user_name == "Anna Bianchi"
        assert [ticket.id for ticket in store.tickets] == ["a", "c"]

    def test_delete_unknown_id(self):
        service, store = _build_service()

        with pytest.raises(TicketNotFoundError):
            service.delete_ticket("missing")

        assert store.saves == []


class TestExportCsv:
    """Tests for CSV export."""

    def test_export_writes_report_cells(self, tmp_path):
        service, _ = _build_service()
        path = tmp_path / "report.csv"

        count = service.export_csv(service.report(), path)

        with open(path, "r", encoding="utf-8", newline="") as f:
            lines = list(csv.reader(f))

        assert count == 3
        assert lines[0] == CSV_HEADERS
        assert lines[2] == [
            "Instagram Direct", "Anna Bianchi", "06/01/2024, 10:00", "Sì", "–",
            "–", "–", "KO", "Non Risposto, Inoltrato al BO",
        ]
        assert lines[3] == [
            "Facebook Pubblico", "Mario Rossi", "05/01/2024, 19:00", "No", "Leocata Rita",
            "08/01/2024, 09:00", "2h 0m", "OK", "Risposto",
        ]
