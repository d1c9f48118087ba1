# accounting/api/views/__init__.py

"""
accounting.api.views package

Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.accounts import AccountListView
from accounting.api.views.ledger import AccountLedgerView
from accounting.api.views.reconciliation import ReconciliationReportView
from accounting.api.views.trial_balance import TrialBalanceView

__all__ = [
    "AccountListView",
    "AccountLedgerView",
    "ReconciliationReportView",
    "TrialBalanceView",
]
