"""Operational resilience utilities for the Atom bot.

Error classification, alert throttling, error tracking, retries and
health monitoring.
"""

__version__ = "0.1.0"
