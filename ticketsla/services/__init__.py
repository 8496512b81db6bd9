"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .ticket_report import ReportRow, TicketReportService, TicketStoreProtocol

__all__ = ["ReportRow", "TicketReportService", "TicketStoreProtocol"]
