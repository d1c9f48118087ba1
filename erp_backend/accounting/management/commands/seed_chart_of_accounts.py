# accounting/management/commands/seed_chart_of_accounts.py

from django.core.management.base import BaseCommand
from django.db import transaction

from accounting.models.account import Account
from accounting.services.account_resolver import inventory_class_codes, resolve_code

# semantic key -> (name, type); codes come from LEDGER_ACCOUNT_CODES
SEMANTIC_ACCOUNTS = [
    ("ACCOUNTS_RECEIVABLE", "Accounts Receivable", Account.ASSET),
    ("ACCOUNTS_PAYABLE", "Accounts Payable", Account.LIABILITY),
    ("LANDED_COST_CLEARING", "Landed Cost Clearing", Account.LIABILITY),
    ("SALES_REVENUE", "Sales Revenue", Account.REVENUE),
    ("COGS", "Cost of Goods Sold", Account.EXPENSE),
    ("INVENTORY_ADJUSTMENT", "Inventory Adjustments", Account.EXPENSE),
    ("RECONCILIATION_SUSPENSE", "Reconciliation Suspense", Account.EQUITY),
]

INVENTORY_NAMES = {
    "RAW_MATERIAL": "Inventory - Raw Materials",
    "WIP": "Inventory - Work in Progress",
    "FINISHED_GOODS": "Inventory - Finished Goods",
}


def default_accounts() -> list[tuple[str, str, str]]:
    rows = [(resolve_code(key), name, kind) for key, name, kind in SEMANTIC_ACCOUNTS]
    for item_class, code in inventory_class_codes().items():
        rows.append((code, INVENTORY_NAMES.get(item_class, f"Inventory - {item_class}"), Account.ASSET))
    return rows


class Command(BaseCommand):
    help = "Seed the accounts referenced by LEDGER_ACCOUNT_CODES and INVENTORY_CLASS_ACCOUNTS"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding chart of accounts...")

        created_count = 0
        updated_count = 0

        for code, name, account_type in default_accounts():
            acc, acc_created = Account.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "is_active": True,
                },
            )

            if acc_created:
                created_count += 1
                continue

            # Existing names are kept; only the type and active flag are enforced.
            needs_update = False
            if acc.account_type != account_type:
                acc.account_type = account_type
                needs_update = True
            if not acc.is_active:
                acc.is_active = True
                needs_update = True

            if needs_update:
                acc.save(update_fields=["account_type", "is_active", "updated_at"])
                updated_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Chart of accounts seeded ({created_count} new accounts, {updated_count} updated)."
            )
        )
