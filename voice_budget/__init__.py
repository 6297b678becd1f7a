"""
Voice Budget - Source Package

Turns spoken descriptions of money coming in and going out into
categorized ledger records, and keeps a running "available this month"
figure.

DESIGN PRINCIPLES:
1. Remote extraction first, deterministic heuristics when offline
2. Every period is reduced to a monthly equivalent before aggregating
3. In-memory ledger is authoritative; persistence is best-effort
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Voice Budget Team"
