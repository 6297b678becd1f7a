"""Logging package."""

from voice_budget.log.setup import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
