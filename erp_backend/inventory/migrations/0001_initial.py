from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
        ("documents", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Item",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=200)),
                (
                    "item_class",
                    models.CharField(
                        choices=[
                            ("RAW_MATERIAL", "Raw Material"),
                            ("WIP", "Work in Progress"),
                            ("FINISHED_GOODS", "Finished Goods"),
                            ("SERVICE", "Service"),
                        ],
                        default="FINISHED_GOODS",
                        max_length=20,
                    ),
                ),
                (
                    "asset_account_code",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Overrides the classification's default inventory account",
                        max_length=10,
                    ),
                ),
                (
                    "income_account_code",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Revenue account for sales; falls back to SALES_REVENUE",
                        max_length=10,
                    ),
                ),
                ("quantity_on_hand", models.BigIntegerField(default=0)),
                ("average_cost", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=20)),
                ("version", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["sku"],
                "indexes": [models.Index(fields=["item_class"], name="idx_item_class")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("sku", ""), _negated=True), name="chk_item_sku_not_blank"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SequenceCounter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=32, unique=True)),
                ("value", models.BigIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="InventoryLayer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("batch_number", models.CharField(blank=True, default="", max_length=128)),
                (
                    "source_kind",
                    models.CharField(
                        choices=[
                            ("RECEIPT", "Receipt"),
                            ("PRODUCE", "Production Output"),
                            ("TRANSFER", "Transfer In"),
                            ("ADJUSTMENT", "Positive Adjustment"),
                        ],
                        default="RECEIPT",
                        max_length=12,
                    ),
                ),
                ("warehouse_code", models.CharField(default="MAIN", max_length=32)),
                ("initial_qty", models.PositiveBigIntegerField()),
                ("remaining_qty", models.PositiveBigIntegerField()),
                ("unit_cost", models.PositiveBigIntegerField()),
                (
                    "landed_cost_adjustment",
                    models.DecimalField(
                        decimal_places=6,
                        default=Decimal("0"),
                        help_text="Per-unit landed cost added after receipt",
                        max_digits=20,
                    ),
                ),
                ("remaining_value", models.PositiveBigIntegerField(default=0)),
                ("received_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("sequence", models.BigIntegerField(db_index=True)),
                ("is_depleted", models.BooleanField(default=False)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "document",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="layers",
                        to="documents.sourcedocument",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="layers",
                        to="inventory.item",
                    ),
                ),
                (
                    "origin_layer",
                    models.ForeignKey(
                        blank=True,
                        help_text="Source layer of a transfer-in",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transferred_layers",
                        to="inventory.inventorylayer",
                    ),
                ),
            ],
            options={
                "ordering": ["received_at", "sequence"],
                "indexes": [
                    models.Index(fields=["item", "is_depleted", "received_at", "sequence"], name="idx_layer_fifo"),
                    models.Index(fields=["item", "warehouse_code"], name="idx_layer_item_warehouse"),
                    models.Index(fields=["document"], name="idx_layer_document"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("initial_qty__gt", 0)), name="chk_layer_initial_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("remaining_qty__lte", models.F("initial_qty"))),
                        name="chk_layer_remaining_lte_initial",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("is_depleted", True), ("remaining_qty", 0)),
                            models.Q(("is_depleted", False), ("remaining_qty__gt", 0)),
                            _connector="OR",
                        ),
                        name="chk_layer_depleted_iff_empty",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("remaining_qty__gt", 0), ("remaining_value", 0), _connector="OR"),
                        name="chk_layer_empty_has_no_value",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LayerConsumption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("CONSUME", "Consumption"),
                            ("TRANSFER", "Transfer Out"),
                            ("ADJUSTMENT", "Negative Adjustment"),
                        ],
                        default="CONSUME",
                        max_length=12,
                    ),
                ),
                ("quantity", models.PositiveBigIntegerField()),
                ("unit_cost", models.DecimalField(decimal_places=6, max_digits=20)),
                ("total_cost", models.PositiveBigIntegerField(default=0)),
                ("consumed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("sequence", models.BigIntegerField(db_index=True)),
                (
                    "document",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="consumptions",
                        to="documents.sourcedocument",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="consumptions",
                        to="inventory.item",
                    ),
                ),
                (
                    "layer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="consumptions",
                        to="inventory.inventorylayer",
                    ),
                ),
            ],
            options={
                "ordering": ["consumed_at", "sequence"],
                "indexes": [
                    models.Index(fields=["item", "consumed_at", "sequence"], name="idx_consumption_item_time"),
                    models.Index(fields=["document"], name="idx_consumption_document"),
                    models.Index(fields=["layer"], name="idx_consumption_layer"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_consumption_qty_gt_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LandedCostAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.PositiveBigIntegerField()),
                (
                    "method",
                    models.CharField(choices=[("VALUE", "By Value"), ("QUANTITY", "By Quantity")], max_length=10),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "document",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="landed_cost_allocations",
                        to="documents.sourcedocument",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="landed_cost_allocations",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "layer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="landed_cost_allocations",
                        to="inventory.inventorylayer",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [models.Index(fields=["document"], name="idx_landed_cost_document")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gte", 0)), name="chk_landed_cost_amount_gte_zero"),
                ],
            },
        ),
    ]
