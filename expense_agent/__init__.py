"""
Expense Agent - Source Package

A conversational expense tracker: tell it "gastei 25,50 no cinema",
confirm, and the expense lands in a plain-text ledger you can report on.

DESIGN PRINCIPLES:
1. Parser proposes → Human confirms → Ledger commits
2. A suggested category is never applied without confirmation
3. Reports are derived from the ledger, never stored
4. Every step is auditable
5. Storage and transport are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Agent Team"
