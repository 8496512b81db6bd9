"""
Convenience entry point for running ticketsla directly.

Usage: python -m ticketsla [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
