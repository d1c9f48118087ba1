# inventory/models/consumption.py

"""
LAYER CONSUMPTION (DEPLETION FOOTPRINT)

One slice taken from one layer by one depletion.

GUARANTEES:
- Never edited; removed only when its document is rolled back
  (the quantity is given back to the same layer first)
- unit_cost is a snapshot of unit_cost + landed adjustment at consumption time
- total_cost is the exact integer value removed from the layer
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .item import Item
from .layer import InventoryLayer


class LayerConsumption(models.Model):
    class Kind(models.TextChoices):
        CONSUME = "CONSUME", "Consumption"
        TRANSFER = "TRANSFER", "Transfer Out"
        ADJUSTMENT = "ADJUSTMENT", "Negative Adjustment"

    layer = models.ForeignKey(
        InventoryLayer,
        on_delete=models.PROTECT,
        related_name="consumptions",
    )
    item = models.ForeignKey(
        Item,
        on_delete=models.PROTECT,
        related_name="consumptions",
    )
    document = models.ForeignKey(
        "documents.SourceDocument",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="consumptions",
    )

    kind = models.CharField(max_length=12, choices=Kind.choices, default=Kind.CONSUME)

    quantity = models.PositiveBigIntegerField()
    unit_cost = models.DecimalField(max_digits=20, decimal_places=6)
    # Minor units taken out of the layer's carrying value; given back on restore.
    total_cost = models.PositiveBigIntegerField(default=0)

    consumed_at = models.DateTimeField(default=timezone.now)
    sequence = models.BigIntegerField(db_index=True)

    class Meta:
        ordering = ["consumed_at", "sequence"]
        indexes = [
            models.Index(fields=["item", "consumed_at", "sequence"], name="idx_consumption_item_time"),
            models.Index(fields=["document"], name="idx_consumption_document"),
            models.Index(fields=["layer"], name="idx_consumption_layer"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_consumption_qty_gt_zero",
            ),
        ]

    def __str__(self):
        return f"{self.kind} {self.quantity} from layer {self.layer_id}"

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("LayerConsumption records are immutable")
        if self.layer_id and self.item_id and self.layer.item_id != self.item_id:
            raise ValidationError("Layer does not belong to item")
        super().save(*args, **kwargs)
