# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.models.period_close import PeriodClose
from accounting.models.reconciliation import BalanceDiscrepancy

__all__ = [
    "Account",
    "JournalEntry",
    "JournalEntryLine",
    "PeriodClose",
    "BalanceDiscrepancy",
]
