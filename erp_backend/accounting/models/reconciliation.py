# accounting/models/reconciliation.py

"""
======================================================
PATH: accounting/models/reconciliation.py
======================================================
BALANCE DISCREPANCY MODEL

One account whose cached balance disagreed with ledger truth
during a reconciliation run.

Rules:
- Values are a snapshot taken at detection time (never recomputed)
- The only permitted update is linking `corrected_by` once
- Non-deletable (audit trail of drift)
"""

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


class BalanceDiscrepancy(models.Model):
    run_id = models.UUIDField(default=uuid.uuid4, db_index=True)

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="discrepancies",
    )

    cached_balance = models.BigIntegerField()
    ledger_balance = models.BigIntegerField()
    delta = models.BigIntegerField(help_text="cached - ledger, minor units")

    detected_at = models.DateTimeField(auto_now_add=True)

    corrected_by = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="corrected_discrepancies",
        help_text="RESYNC journal entry that reset the cached balance",
    )

    class Meta:
        ordering = ["-detected_at", "account__code"]
        indexes = [
            models.Index(fields=["account", "detected_at"], name="idx_discrepancy_account_time"),
            models.Index(fields=["corrected_by"], name="idx_discrepancy_corrected"),
        ]
        verbose_name = "Balance Discrepancy"
        verbose_name_plural = "Balance Discrepancies"

    def __str__(self):
        return f"Discrepancy {self.account_id}: cached={self.cached_balance} ledger={self.ledger_balance}"

    @property
    def is_corrected(self) -> bool:
        return self.corrected_by_id is not None

    def save(self, *args, **kwargs):
        if self.pk:
            original = (
                BalanceDiscrepancy.objects.filter(pk=self.pk)
                .values("cached_balance", "ledger_balance", "delta", "corrected_by_id")
                .first()
            )
            if original:
                if (
                    original["cached_balance"] != self.cached_balance
                    or original["ledger_balance"] != self.ledger_balance
                    or original["delta"] != self.delta
                ):
                    raise ValidationError("Discrepancy snapshot values are immutable")
                if original["corrected_by_id"] is not None:
                    raise ValidationError("Discrepancy is already corrected")

        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("BalanceDiscrepancy records cannot be deleted")
