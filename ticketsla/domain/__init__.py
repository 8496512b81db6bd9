"""
Domain layer - Pure business logic without external dependencies.
"""

from .business_hours import BusinessHoursCalculator, compute_working_duration, format_duration, is_out_of_hours
from .models import WorkWindow, WorkingHours
from .tickets import ManualTicket

__all__ = [
    "BusinessHoursCalculator",
    "ManualTicket",
    "WorkWindow",
    "WorkingHours",
    "compute_working_duration",
    "format_duration",
    "is_out_of_hours",
]
