"""
Client for the dashboard's service-data HTTP API.
"""

import logging
from typing import Any, Dict, List

import requests
from pydantic import ValidationError

from ..domain.exceptions import TicketStoreError
from ..domain.tickets import ManualTicket

logger = logging.getLogger(__name__)


class ServiceDataClient:
    """
    Ticket store that proxies to the dashboard API.

    Reads come from the bootstrap snapshot (``GET /api/data?resource=bootstrap``);
    writes replace the whole ticket list of the service through
    ``POST /api/service-data`` with the ``saveSimpleData`` action.
    """

    def __init__(
        self,
        base_url: str,
        service_id: str = "manual-tickets",
        timeout: int = 30,
        session: requests.Session | None = None
    ):
        """
        Initialize the API client.

        Args:
            base_url: Dashboard base URL, e.g. ``https://dashboard.example.com``
            service_id: Identifier of the manual ticket service
            timeout: Request timeout in seconds
            session: Optional requests session (a new one is created otherwise)
        """
        self.base_url = base_url.rstrip("/")
        self.service_id = service_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}

    def load_tickets(self) -> List[ManualTicket]:
        """
        Fetch the tickets of this service.

        Raises:
            TicketStoreError: If the API call fails or returns invalid records
        """
        url = f"{self.base_url}/api/data"

        try:
            response = self.session.get(
                url,
                params={"resource": "bootstrap"},
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise TicketStoreError(f"Failed to fetch tickets from {url}: {exc}") from exc

        records = self._extract_records(data)

        try:
            tickets = [ManualTicket.from_record(record) for record in records]
        except ValidationError as exc:
            raise TicketStoreError(f"Invalid ticket record from {url}: {exc}") from exc

        logger.debug("Fetched %d ticket(s) for service %s", len(tickets), self.service_id)
        return tickets

    def save_tickets(self, tickets: List[ManualTicket]) -> None:
        """
        Replace the stored ticket list of this service.

        Raises:
            TicketStoreError: If the API call fails
        """
        url = f"{self.base_url}/api/service-data"
        payload = {
            "action": "saveSimpleData",
            "payload": {
                "serviceId": self.service_id,
                "newData": [ticket.to_record() for ticket in tickets],
            },
        }

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise TicketStoreError(f"Failed to save tickets to {url}: {exc}") from exc

        logger.debug("Saved %d ticket(s) for service %s", len(tickets), self.service_id)

    def _extract_records(self, data: Any) -> List[Dict[str, Any]]:
        """
        Pull this service's records out of the bootstrap snapshot.

        Snapshot format:
        {
            "services_data": {
                "manual-tickets": {"data": [...], "fileName": "..."}
            },
            "notifications": [...]
        }
        """
        if not isinstance(data, dict):
            raise TicketStoreError("Unexpected bootstrap response: expected a JSON object.")

        service = (data.get("services_data") or {}).get(self.service_id) or {}
        records = service.get("data") or []

        if not isinstance(records, list):
            raise TicketStoreError(
                f"Unexpected data for service '{self.service_id}': expected a list of tickets."
            )

        return records
