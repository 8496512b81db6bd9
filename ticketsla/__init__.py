"""
ticketsla - Working-hours SLA reporting for manual support tickets.
"""

__version__ = "0.1.0"
