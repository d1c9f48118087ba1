# documents/apps.py

"""
DOCUMENTS APP CONFIG

Source-document registry (bills, invoices, manual journals, stock
adjustments) and the reversal-and-replay editor that keeps their ledger
and inventory footprint correct after posting.
"""

from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "documents"
    verbose_name = "Source Documents"
