"""
Domain-specific exception hierarchy for the ticketsla application.
"""


class TicketSlaError(Exception):
    """Base class for all application-level errors."""


class TicketStoreError(TicketSlaError):
    """Raised when tickets cannot be loaded from or saved to a store."""


class TicketNotFoundError(TicketSlaError):
    """Raised when a ticket id does not exist in the store."""
