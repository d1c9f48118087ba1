# inventory/models/item.py

"""
ITEM (MASTER-DATA PROJECTION)

The costing engine's view of a stock item.

Rules:
- sku is unique and normalized
- quantity_on_hand / average_cost are caches maintained by the costing
  engine (F() updates), checked by reconciliation against the layers
- the inventory asset account is the explicit override or, failing that,
  the item classification default (settings.INVENTORY_CLASS_ACCOUNTS)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Item(models.Model):
    class ItemClass(models.TextChoices):
        RAW_MATERIAL = "RAW_MATERIAL", "Raw Material"
        WIP = "WIP", "Work in Progress"
        FINISHED_GOODS = "FINISHED_GOODS", "Finished Goods"
        SERVICE = "SERVICE", "Service"

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=200)

    item_class = models.CharField(
        max_length=20,
        choices=ItemClass.choices,
        default=ItemClass.FINISHED_GOODS,
    )

    asset_account_code = models.CharField(
        max_length=10,
        blank=True,
        default="",
        help_text="Overrides the classification's default inventory account",
    )
    income_account_code = models.CharField(
        max_length=10,
        blank=True,
        default="",
        help_text="Revenue account for sales; falls back to SALES_REVENUE",
    )

    # Caches (service-managed only)
    quantity_on_hand = models.BigIntegerField(default=0)
    average_cost = models.DecimalField(
        max_digits=20,
        decimal_places=6,
        default=Decimal("0"),
    )

    version = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["sku"]
        indexes = [
            models.Index(fields=["item_class"], name="idx_item_class"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(sku=""),
                name="chk_item_sku_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.sku} – {self.name}"

    @property
    def is_stocked(self) -> bool:
        return self.item_class != self.ItemClass.SERVICE

    @property
    def inventory_account_code(self) -> str:
        if self.asset_account_code:
            return self.asset_account_code
        mapping = getattr(settings, "INVENTORY_CLASS_ACCOUNTS", {}) or {}
        return str(mapping.get(self.item_class) or "")

    def clean(self):
        self.sku = (self.sku or "").strip().upper()
        self.name = (self.name or "").strip()
        self.asset_account_code = (self.asset_account_code or "").strip()
        self.income_account_code = (self.income_account_code or "").strip()

        if not self.sku:
            raise ValidationError({"sku": "sku is required"})
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)
