# inventory/models/layer.py

"""
INVENTORY LAYER (FIFO COST LAYER)

One receipt (or production output, transfer-in, positive adjustment) of an
item at a known unit cost.

CANONICAL RULES:
- initial_qty and unit_cost are immutable after creation
- remaining_qty is mutated ONLY by the costing engine, conditionally on
  `version` (optimistic concurrency)
- 0 <= remaining_qty <= initial_qty; is_depleted iff remaining_qty == 0
- remaining_value is the integer carrying value of the remaining units;
  an empty layer carries no value
- FIFO order is (received_at, sequence)
- `document` is the typed link to the source document that created the
  layer (batch_number is display only)
- Physically deleted only by a full rollback of its source document
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from .item import Item

DEFAULT_WAREHOUSE = "MAIN"


class InventoryLayer(models.Model):
    class SourceKind(models.TextChoices):
        RECEIPT = "RECEIPT", "Receipt"
        PRODUCE = "PRODUCE", "Production Output"
        TRANSFER = "TRANSFER", "Transfer In"
        ADJUSTMENT = "ADJUSTMENT", "Positive Adjustment"

    item = models.ForeignKey(
        Item,
        on_delete=models.PROTECT,
        related_name="layers",
    )

    batch_number = models.CharField(max_length=128, blank=True, default="")

    document = models.ForeignKey(
        "documents.SourceDocument",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="layers",
    )

    source_kind = models.CharField(
        max_length=12,
        choices=SourceKind.choices,
        default=SourceKind.RECEIPT,
    )

    origin_layer = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transferred_layers",
        help_text="Source layer of a transfer-in",
    )

    warehouse_code = models.CharField(max_length=32, default=DEFAULT_WAREHOUSE)

    initial_qty = models.PositiveBigIntegerField()
    remaining_qty = models.PositiveBigIntegerField()

    # Minor units per base unit.
    unit_cost = models.PositiveBigIntegerField()
    landed_cost_adjustment = models.DecimalField(
        max_digits=20,
        decimal_places=6,
        default=Decimal("0"),
        help_text="Per-unit landed cost added after receipt",
    )
    # Carrying value of the remaining units in minor units. Slices take the
    # drop in this value, so the last unit absorbs every rounding residue.
    remaining_value = models.PositiveBigIntegerField(default=0)

    received_at = models.DateTimeField(default=timezone.now)
    sequence = models.BigIntegerField(db_index=True)

    is_depleted = models.BooleanField(default=False)
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["received_at", "sequence"]
        indexes = [
            models.Index(fields=["item", "is_depleted", "received_at", "sequence"], name="idx_layer_fifo"),
            models.Index(fields=["item", "warehouse_code"], name="idx_layer_item_warehouse"),
            models.Index(fields=["document"], name="idx_layer_document"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(initial_qty__gt=0),
                name="chk_layer_initial_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_qty__lte=F("initial_qty")),
                name="chk_layer_remaining_lte_initial",
            ),
            models.CheckConstraint(
                condition=(Q(is_depleted=True) & Q(remaining_qty=0))
                | (Q(is_depleted=False) & Q(remaining_qty__gt=0)),
                name="chk_layer_depleted_iff_empty",
            ),
            models.CheckConstraint(
                condition=Q(remaining_qty__gt=0) | Q(remaining_value=0),
                name="chk_layer_empty_has_no_value",
            ),
        ]

    def __str__(self):
        return f"{self.item} | Layer {self.batch_number or self.pk} ({self.remaining_qty}/{self.initial_qty})"

    @property
    def effective_unit_cost(self) -> Decimal:
        return Decimal(int(self.unit_cost)) + Decimal(self.landed_cost_adjustment or 0)

    @property
    def is_untouched(self) -> bool:
        return int(self.remaining_qty) == int(self.initial_qty)

    def clean(self):
        if int(self.initial_qty or 0) <= 0:
            raise ValidationError({"initial_qty": "initial_qty must be greater than zero"})
        if int(self.remaining_qty) > int(self.initial_qty):
            raise ValidationError({"remaining_qty": "remaining_qty cannot exceed initial_qty"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = InventoryLayer.objects.only("initial_qty", "unit_cost").get(pk=self.pk)
            if self.initial_qty != original.initial_qty:
                raise ValidationError({"initial_qty": "initial_qty is immutable"})
            if self.unit_cost != original.unit_cost:
                raise ValidationError({"unit_cost": "unit_cost is immutable"})

        # is_depleted is ALWAYS derived
        self.is_depleted = int(self.remaining_qty or 0) == 0

        self.full_clean()
        super().save(*args, **kwargs)
