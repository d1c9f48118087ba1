# documents/models/source_document.py

"""
======================================================
PATH: documents/models/source_document.py
======================================================
SOURCE DOCUMENT

A business document whose posting produces a ledger / inventory footprint.

Rules:
- transaction_id is the grouping key shared by every journal entry the
  document produces. Convention: "<kind>-<id>" (e.g. "bill-42"),
  assigned once right after the row is created.
- The engines reference documents; they never own them.
- payment_applied is set by the external payments module and locks the
  document against edit/delete.
- DELETED documents are terminal.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Q
from django.utils import timezone


class SourceDocument(models.Model):
    class Kind(models.TextChoices):
        BILL = "BILL", "Vendor Bill"
        INVOICE = "INVOICE", "Customer Invoice"
        JOURNAL = "JOURNAL", "Manual Journal"
        ADJUSTMENT = "ADJUSTMENT", "Stock Adjustment"

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        DELETED = "DELETED", "Deleted"

    kind = models.CharField(max_length=12, choices=Kind.choices)

    number = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Human document number (display only)",
    )

    transaction_id = models.CharField(
        max_length=120,
        unique=True,
        null=True,
        blank=True,
        default=None,
        help_text="Ledger grouping key; derived as <kind>-<id> when not supplied",
    )

    document_date = models.DateField(default=timezone.localdate)

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
    )

    payment_applied = models.BooleanField(
        default=False,
        help_text="Set by the payments module; blocks edit/delete",
    )

    # Last posted line set (audit snapshot of what the footprint was built from).
    lines = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-document_date", "-id"]
        indexes = [
            models.Index(fields=["kind", "document_date"], name="idx_document_kind_date"),
            models.Index(fields=["status"], name="idx_document_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(transaction_id=""),
                name="chk_document_transaction_id_not_blank",
            ),
        ]
        verbose_name = "Source Document"
        verbose_name_plural = "Source Documents"

    def __str__(self):
        return f"{self.get_kind_display()} {self.number or self.pk} ({self.transaction_id})"

    @property
    def is_deleted(self) -> bool:
        return self.status == self.Status.DELETED

    def clean(self):
        self.number = (self.number or "").strip()
        if self.transaction_id is not None:
            self.transaction_id = self.transaction_id.strip() or None

    def save(self, *args, **kwargs):
        if self.pk:
            prev = SourceDocument.objects.filter(pk=self.pk).values("status", "kind").first()
            if prev and prev["status"] == self.Status.DELETED:
                raise ValidationError("Deleted documents cannot be modified")
            if prev and prev["kind"] != self.kind:
                raise ValidationError({"kind": "kind is immutable"})

        self.full_clean()

        with transaction.atomic():
            super().save(*args, **kwargs)
            if not self.transaction_id:
                self.transaction_id = f"{self.kind.lower()}-{self.pk}"
                SourceDocument.objects.filter(pk=self.pk).update(transaction_id=self.transaction_id)

    def delete(self, *args, **kwargs):
        raise ValidationError("Source documents are never deleted; use the editor to mark them DELETED")
