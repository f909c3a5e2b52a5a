"""
Budget Advisor - Source Package

A monthly budget tracker for households and small businesses, with a
rule-based financial advisor that answers questions about the stored data.

DESIGN PRINCIPLES:
1. Local state is the source of truth for the session
2. Durability is best-effort and asynchronous
3. "Not found" is a normal outcome, not an error
4. Storage layer is swappable (local file or Google Sheets)
5. Advice is deterministic - rules, not a model
"""

__version__ = "1.0.0"
__author__ = "Budget Advisor Team"
