"""
Adapters layer - Ticket storage backends (local JSON file, dashboard API).
"""

from .json_ticket_store import JsonTicketStore
from .service_data_client import ServiceDataClient

__all__ = ["JsonTicketStore", "ServiceDataClient"]
