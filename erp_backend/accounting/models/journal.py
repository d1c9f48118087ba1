# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY MODEL

Represents a single accounting transaction (journal header).

Guarantees:
- Immutable once created (no updates, no deletes)
- transaction_id groups every entry produced for one source document
  (e.g. "bill-42"); reversals carry "<original>-reversal"
- An entry can be reversed at most once (unique reversal_of)
- posted_at is the accounting effective date (used for period locks and reports)
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class JournalEntry(models.Model):
    class EntryType(models.TextChoices):
        TRANSACTION = "TRANSACTION", "Transaction"
        REVERSAL = "REVERSAL", "Reversal"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"
        RESYNC = "RESYNC", "Balance Resync"

    posted_at = models.DateField(
        default=timezone.localdate,
        help_text="Accounting effective date",
    )

    description = models.TextField(help_text="Narrative description of the journal entry")

    reference = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Free-text external reference (document number, etc.)",
    )

    transaction_id = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Grouping key linking the entry to its source document",
    )

    entry_type = models.CharField(
        max_length=12,
        choices=EntryType.choices,
        default=EntryType.TRANSACTION,
    )

    is_posted = models.BooleanField(
        default=True,
        help_text="Once posted, journal entries are immutable",
    )

    reversal_of = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversals",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Timestamp when the journal entry was created",
    )

    class Meta:
        ordering = ["posted_at", "id"]
        indexes = [
            models.Index(fields=["posted_at"], name="idx_journal_posted_at"),
            models.Index(fields=["created_at"], name="idx_journal_created_at"),
            models.Index(fields=["transaction_id"], name="idx_journal_transaction_id"),
            models.Index(fields=["entry_type"], name="idx_journal_entry_type"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["reversal_of"],
                condition=Q(reversal_of__isnull=False),
                name="uniq_journal_single_reversal",
            ),
            models.CheckConstraint(
                condition=Q(entry_type="REVERSAL", reversal_of__isnull=False)
                | (~Q(entry_type="REVERSAL") & Q(reversal_of__isnull=True)),
                name="chk_journal_reversal_link",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"JournalEntry #{self.id} – {self.transaction_id or '-'} ({self.posted_at})"

    @property
    def is_reversal(self) -> bool:
        return self.entry_type == self.EntryType.REVERSAL

    def clean(self):
        self.reference = (self.reference or "").strip()
        self.transaction_id = (self.transaction_id or "").strip()

        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalEntry records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalEntry records are immutable and cannot be deleted")
