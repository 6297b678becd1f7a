"""
Structured logging setup.

Every module logs through structlog with an event name plus keyword
context, e.g. ``logger.info("ledger_income_added", income_id=...)``.
Output is one JSON object per line on stderr.
"""

import logging
import sys
from typing import Optional

import structlog


_configured = False


def configure_logging(level: str = "INFO", force: bool = False) -> None:
    """
    Configure stdlib logging and structlog once per process.

    Args:
        level: Root log level name
        force: Reconfigure even if already configured
    """
    global _configured
    if _configured and not force:
        return

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=force,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
