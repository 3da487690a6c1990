"""Structured logging setup.

Library modules log through `structlog.get_logger()` with event names and
key/value context (`script_loading`, `script_loaded`, `entity_created`).
Applications embedding the seeder configure output themselves; the
command-line runner calls `configure_logging` to route events to stderr.
"""

import logging
import sys

import structlog

_LEVEL_MAP = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}

LEVELS = tuple(_LEVEL_MAP)


def configure_logging(*, level: str = 'INFO', json_format: bool = False) -> None:
    """Configure structlog to write events to stderr.

    Args:
        level: Minimal level of emitted events.
        json_format: Render events as JSON lines instead of console text.
    """
    default_level = _LEVEL_MAP.get(level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='%Y-%m-%d %H:%M:%S', key='timestamp'),
    ]

    renderer: structlog.types.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            pad_event_to=0,
        )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Don't cache - allows reconfiguration and respects level changes
        cache_logger_on_first_use=False,
    )
