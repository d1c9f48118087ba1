# accounting/models/journal_line.py

"""
======================================================
PATH: accounting/models/journal_line.py
======================================================
JOURNAL ENTRY LINE MODEL

One side of a double-entry posting to a single account.

Guarantees:
- Immutable once created (no updates, no deletes)
- debit / credit are non-negative integer minor units, exactly one non-zero
- Reporting uses entry.posted_at as the accounting timeline
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


class JournalEntryLine(models.Model):
    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="lines",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="lines",
    )

    debit = models.PositiveBigIntegerField(default=0)
    credit = models.PositiveBigIntegerField(default=0)

    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        verbose_name = "Journal Entry Line"
        verbose_name_plural = "Journal Entry Lines"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["account"], name="idx_jline_account"),
            models.Index(fields=["entry"], name="idx_jline_entry"),
            models.Index(fields=["account", "entry"], name="idx_jline_account_entry"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0)),
                name="chk_journal_line_one_side",
            ),
        ]

    def __str__(self):
        side = f"DR {self.debit}" if self.debit else f"CR {self.credit}"
        return f"{side} → {self.account}"

    @property
    def signed_amount(self) -> int:
        return int(self.debit) - int(self.credit)

    def clean(self):
        debit = int(self.debit or 0)
        credit = int(self.credit or 0)

        if debit < 0 or credit < 0:
            raise ValidationError("Line amounts cannot be negative")
        if (debit > 0) == (credit > 0):
            raise ValidationError("A line must carry exactly one of debit or credit")

        if self.entry_id and not getattr(self.entry, "is_posted", True):
            raise ValidationError("Lines can only reference posted journal entries")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalEntryLine records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalEntryLine records are immutable and cannot be deleted")
