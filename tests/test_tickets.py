"""
Tests for the manual ticket model and form helpers.
"""

import pytest
from pydantic import ValidationError

from ticketsla.domain.tickets import (
    INVALID_DATE,
    PLACEHOLDER,
    ManualTicket,
    combine_date_time,
    format_timestamp,
    split_timestamp,
)


RECORD = {
    "id": "manual-ticket-1704466800000",
    "piattaforma": "Facebook Pubblico",
    "nome_utente": "Mario Rossi",
    "testo_contenuto": "Quando apre il nuovo punto vendita?",
    "data_domanda": "2024-01-05T18:00:00Z",
    "data_gestione": "2024-01-08T08:00:00Z",
    "moderatore": "Leocata Rita",
    "soglia": "OK",
    "id_piattaforma": None,
    "argomento": "Supporto",
    "azione_principale": "Risposto",
    "azione_inoltro": "",
}


class TestManualTicket:
    """Tests for ManualTicket."""

    def test_from_record_maps_stored_fields(self):
        ticket = ManualTicket.from_record(RECORD)

        assert ticket.platform == "Facebook Pubblico"
        assert ticket.user_name == "Mario Rossi"
        assert ticket.asked_at == "2024-01-05T18:00:00Z"
        assert ticket.handled_at == "2024-01-08T08:00:00Z"
        assert ticket.moderator == "Leocata Rita"
        assert ticket.threshold == "OK"
        assert ticket.main_action == "Risposto"
        assert ticket.forward_action == ""

    def test_to_record_uses_stored_field_names(self):
        ticket = ManualTicket.from_record(RECORD)

        assert ticket.to_record() == RECORD

    def test_minimal_record(self):
        ticket = ManualTicket.from_record({"data_domanda": "2024-01-05T18:00:00Z"})

        assert ticket.id == ""
        assert ticket.handled_at is None
        assert ticket.main_action is None

    def test_missing_question_date_is_rejected(self):
        with pytest.raises(ValidationError):
            ManualTicket.from_record({"piattaforma": "X Pubblico"})

    def test_unknown_threshold_is_rejected(self):
        with pytest.raises(ValidationError):
            ManualTicket.from_record({**RECORD, "soglia": "FORSE"})

    def test_flag_texts_default_to_not_answered(self):
        ticket = ManualTicket(asked_at="2024-01-05T18:00:00Z")

        assert ticket.flag_texts() == ["Non Risposto"]

    def test_flag_texts_include_forward_action(self):
        ticket = ManualTicket(
            asked_at="2024-01-05T18:00:00Z",
            main_action="Nascosto",
            forward_action="Inoltrato al BO"
        )

        assert ticket.flag_texts() == ["Nascosto", "Inoltrato al BO"]


class TestTimestampHelpers:
    """Tests for combine/split/format helpers."""

    def test_combine_date_time_returns_utc_iso(self):
        assert combine_date_time("2024-01-08", "09:30", "Europe/Rome") == "2024-01-08T08:30:00Z"

    @pytest.mark.parametrize(
        "date_str, time_str",
        [(None, "09:30"), ("2024-01-08", None), ("", "09:30"), ("2024-13-45", "09:30")],
    )
    def test_combine_date_time_incomplete_or_invalid(self, date_str, time_str):
        assert combine_date_time(date_str, time_str, "Europe/Rome") is None

    def test_split_timestamp_uses_local_date_and_time(self):
        assert split_timestamp("2024-01-08T23:30:00Z", "Europe/Rome") == ("2024-01-09", "00:30")

    @pytest.mark.parametrize("value", [None, "", "garbage"])
    def test_split_timestamp_empty(self, value):
        assert split_timestamp(value, "Europe/Rome") == ("", "")

    def test_format_timestamp(self):
        assert format_timestamp("2024-01-08T08:30:00Z", "Europe/Rome") == "08/01/2024, 09:30"

    def test_format_timestamp_placeholders(self):
        assert format_timestamp(None, "Europe/Rome") == PLACEHOLDER
        assert format_timestamp("garbage", "Europe/Rome") == INVALID_DATE
