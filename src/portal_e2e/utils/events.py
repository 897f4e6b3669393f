"""
Structured observability events.

Components report what they are doing through named events instead of
free-form prints. Each event is a normal log record whose message reads
``event key=value ...`` and whose ``event``/``fields`` attributes carry
the same data for handlers that want it (see ``JsonFormatter``).

Event names used across the suite:
    resolve.attempted / resolve.succeeded / resolve.failed
    act.attempted / act.succeeded / act.failed
    wait.started / wait.settled / wait.timed_out
    tab.adopted / scenario.step.passed / scenario.step.failed
"""

import logging
from typing import Any


def _render(value: Any) -> str:
    text = str(value)
    if " " in text or not text:
        return repr(text)
    return text


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """
    Emit a structured event.
    
    Args:
        logger: Logger of the emitting component
        level: logging level (logging.DEBUG, logging.INFO, ...)
        event: Dotted event name
        **fields: Event payload
    """
    if not logger.isEnabledFor(level):
        return
    rendered = " ".join(f"{key}={_render(value)}" for key, value in fields.items())
    message = f"{event} {rendered}" if rendered else event
    logger.log(level, message, extra={"event": event, "fields": fields})
