import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=10, unique=True)),
                ("name", models.CharField(max_length=150)),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("ASSET", "Asset"),
                            ("LIABILITY", "Liability"),
                            ("EQUITY", "Equity"),
                            ("REVENUE", "Revenue"),
                            ("EXPENSE", "Expense"),
                        ],
                        max_length=20,
                    ),
                ),
                ("balance", models.BigIntegerField(default=0, help_text="Cached sum(debit) - sum(credit), minor units")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="idx_account_type"),
                    models.Index(fields=["is_active"], name="idx_account_active"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("code", ""), _negated=True), name="chk_account_code_not_blank"),
                    models.CheckConstraint(condition=models.Q(("name", ""), _negated=True), name="chk_account_name_not_blank"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("posted_at", models.DateField(default=django.utils.timezone.localdate, help_text="Accounting effective date")),
                ("description", models.TextField(help_text="Narrative description of the journal entry")),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Free-text external reference (document number, etc.)",
                        max_length=100,
                    ),
                ),
                (
                    "transaction_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Grouping key linking the entry to its source document",
                        max_length=120,
                    ),
                ),
                (
                    "entry_type",
                    models.CharField(
                        choices=[
                            ("TRANSACTION", "Transaction"),
                            ("REVERSAL", "Reversal"),
                            ("ADJUSTMENT", "Adjustment"),
                            ("RESYNC", "Balance Resync"),
                        ],
                        default="TRANSACTION",
                        max_length=12,
                    ),
                ),
                ("is_posted", models.BooleanField(default=True, help_text="Once posted, journal entries are immutable")),
                (
                    "reversal_of",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversals",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, help_text="Timestamp when the journal entry was created"),
                ),
            ],
            options={
                "verbose_name": "Journal Entry",
                "verbose_name_plural": "Journal Entries",
                "ordering": ["posted_at", "id"],
                "indexes": [
                    models.Index(fields=["posted_at"], name="idx_journal_posted_at"),
                    models.Index(fields=["created_at"], name="idx_journal_created_at"),
                    models.Index(fields=["transaction_id"], name="idx_journal_transaction_id"),
                    models.Index(fields=["entry_type"], name="idx_journal_entry_type"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("reversal_of__isnull", False)),
                        fields=("reversal_of",),
                        name="uniq_journal_single_reversal",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("entry_type", "REVERSAL"), ("reversal_of__isnull", False)),
                            models.Q(
                                models.Q(("entry_type", "REVERSAL"), _negated=True),
                                ("reversal_of__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="chk_journal_reversal_link",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit", models.PositiveBigIntegerField(default=0)),
                ("credit", models.PositiveBigIntegerField(default=0)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lines",
                        to="accounting.account",
                    ),
                ),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lines",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Entry Line",
                "verbose_name_plural": "Journal Entry Lines",
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["account"], name="idx_jline_account"),
                    models.Index(fields=["entry"], name="idx_jline_entry"),
                    models.Index(fields=["account", "entry"], name="idx_jline_account_entry"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            models.Q(("debit", 0), ("credit__gt", 0)),
                            _connector="OR",
                        ),
                        name="chk_journal_line_one_side",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PeriodClose",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Period Close",
                "verbose_name_plural": "Period Closes",
                "ordering": ["-end_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["start_date", "end_date"], name="idx_period_close_range"),
                    models.Index(fields=["end_date"], name="idx_period_close_end"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("start_date", "end_date"), name="uniq_period_close_start_end"),
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gte", models.F("start_date"))),
                        name="chk_period_close_end_gte_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BalanceDiscrepancy",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("run_id", models.UUIDField(db_index=True, default=uuid.uuid4)),
                ("cached_balance", models.BigIntegerField()),
                ("ledger_balance", models.BigIntegerField()),
                ("delta", models.BigIntegerField(help_text="cached - ledger, minor units")),
                ("detected_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="discrepancies",
                        to="accounting.account",
                    ),
                ),
                (
                    "corrected_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="RESYNC journal entry that reset the cached balance",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="corrected_discrepancies",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Balance Discrepancy",
                "verbose_name_plural": "Balance Discrepancies",
                "ordering": ["-detected_at", "account__code"],
                "indexes": [
                    models.Index(fields=["account", "detected_at"], name="idx_discrepancy_account_time"),
                    models.Index(fields=["corrected_by"], name="idx_discrepancy_corrected"),
                ],
            },
        ),
    ]
