# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Account registry, journal ledger engine, period locks and reconciliation.
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting Ledger"
