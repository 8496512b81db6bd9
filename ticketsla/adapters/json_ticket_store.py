"""
Ticket store backed by a local JSON file.
"""

import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from ..domain.exceptions import TicketStoreError
from ..domain.tickets import ManualTicket

logger = logging.getLogger(__name__)


class JsonTicketStore:
    """
    Reads and writes tickets as a JSON array of stored records.

    A missing file is an empty store; it is created on the first save.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_tickets(self) -> List[ManualTicket]:
        """Load all tickets from the JSON file."""
        if not self.path.exists():
            logger.info("Ticket file %s does not exist yet, starting empty", self.path)
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise TicketStoreError(f"Could not read tickets from {self.path}: {exc}") from exc

        if not isinstance(records, list):
            raise TicketStoreError(f"Ticket file {self.path} must contain a JSON array.")

        try:
            return [ManualTicket.from_record(record) for record in records]
        except ValidationError as exc:
            raise TicketStoreError(f"Invalid ticket record in {self.path}: {exc}") from exc

    def save_tickets(self, tickets: List[ManualTicket]) -> None:
        """Replace the file contents with the given tickets."""
        records = [ticket.to_record() for ticket in tickets]

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
        except OSError as exc:
            raise TicketStoreError(f"Could not write tickets to {self.path}: {exc}") from exc

        logger.debug("Saved %d ticket(s) to %s", len(records), self.path)
