# inventory/models/landed_cost.py

"""
LANDED COST ALLOCATION

Share of a service cost (freight, duty, ...) capitalized onto one layer.
Removed only when the allocating document is rolled back.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from .layer import InventoryLayer


class LandedCostAllocation(models.Model):
    class Method(models.TextChoices):
        VALUE = "VALUE", "By Value"
        QUANTITY = "QUANTITY", "By Quantity"

    layer = models.ForeignKey(
        InventoryLayer,
        on_delete=models.PROTECT,
        related_name="landed_cost_allocations",
    )
    document = models.ForeignKey(
        "documents.SourceDocument",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="landed_cost_allocations",
    )
    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="landed_cost_allocations",
    )

    amount = models.PositiveBigIntegerField()
    method = models.CharField(max_length=10, choices=Method.choices)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["document"], name="idx_landed_cost_document"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="chk_landed_cost_amount_gte_zero",
            ),
        ]

    def __str__(self):
        return f"Landed {self.amount} → layer {self.layer_id} ({self.method})"
