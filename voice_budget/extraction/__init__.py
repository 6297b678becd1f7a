"""Extraction package: heuristic fallback and remote payload parsing."""

from voice_budget.extraction.heuristic import (
    EXPENSE_KEYWORDS,
    INCOME_KEYWORDS,
    HeuristicExtractor,
    summary_message,
)
from voice_budget.extraction.parser import parse_extraction_payload

__all__ = [
    "EXPENSE_KEYWORDS",
    "INCOME_KEYWORDS",
    "HeuristicExtractor",
    "parse_extraction_payload",
    "summary_message",
]
