"""
Utilities module - Logging setup and structured events.
"""

from portal_e2e.utils.logging import JsonFormatter, setup_logging
from portal_e2e.utils.events import log_event

__all__ = [
    "JsonFormatter",
    "setup_logging",
    "log_event",
]
