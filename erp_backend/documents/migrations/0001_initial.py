import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SourceDocument",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("BILL", "Vendor Bill"),
                            ("INVOICE", "Customer Invoice"),
                            ("JOURNAL", "Manual Journal"),
                            ("ADJUSTMENT", "Stock Adjustment"),
                        ],
                        max_length=12,
                    ),
                ),
                (
                    "number",
                    models.CharField(blank=True, default="", help_text="Human document number (display only)", max_length=64),
                ),
                (
                    "transaction_id",
                    models.CharField(
                        blank=True,
                        default=None,
                        help_text="Ledger grouping key; derived as <kind>-<id> when not supplied",
                        max_length=120,
                        null=True,
                        unique=True,
                    ),
                ),
                ("document_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "status",
                    models.CharField(choices=[("OPEN", "Open"), ("DELETED", "Deleted")], default="OPEN", max_length=10),
                ),
                (
                    "payment_applied",
                    models.BooleanField(default=False, help_text="Set by the payments module; blocks edit/delete"),
                ),
                ("lines", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Source Document",
                "verbose_name_plural": "Source Documents",
                "ordering": ["-document_date", "-id"],
                "indexes": [
                    models.Index(fields=["kind", "document_date"], name="idx_document_kind_date"),
                    models.Index(fields=["status"], name="idx_document_status"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("transaction_id", ""), _negated=True),
                        name="chk_document_transaction_id_not_blank",
                    ),
                ],
            },
        ),
    ]
