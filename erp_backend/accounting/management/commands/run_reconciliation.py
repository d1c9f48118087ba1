# accounting/management/commands/run_reconciliation.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from accounting.services.reconciliation_service import run_reconciliation


class Command(BaseCommand):
    help = (
        "Recompute account balances and inventory valuation from ledger/layer "
        "truth and report drift. --apply posts a RESYNC correction entry and "
        "rebuilds stale item caches from the layers."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Correct cached balances (RESYNC journal entry) and item caches.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if drift remains after the run.",
        )

    def handle(self, *args, **options):
        apply = bool(options.get("apply"))
        strict = bool(options.get("strict"))

        report = run_reconciliation(apply=apply, strict=False)

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger Reconciliation"))
        self.stdout.write(f"Run: {report.run_id}")

        # -----------------------------
        # Account balances
        # -----------------------------
        if report.discrepancies:
            self.stderr.write(
                self.style.ERROR(f"[FAIL] Cached balance drift on {len(report.discrepancies)} account(s)")
            )
            for d in report.discrepancies:
                self.stderr.write(
                    f"  {d.account_code}: cached={d.cached_balance} ledger={d.ledger_balance} delta={d.delta}"
                )
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Cached account balances match the ledger"))

        if report.correction_entry_id is not None:
            self.stdout.write(
                self.style.SUCCESS(f"[FIXED] RESYNC journal entry #{report.correction_entry_id} posted")
            )

        # -----------------------------
        # Inventory valuation
        # -----------------------------
        inventory = report.inventory
        for row in inventory.get("by_account", []):
            line = (
                f"  {row['account_code']} ({', '.join(row['item_classes'])}): "
                f"gl={row['gl_balance']} layers={row['layer_value']} diff={row['discrepancy']}"
            )
            if row["discrepancy"]:
                self.stderr.write(self.style.ERROR(line))
            else:
                self.stdout.write(line)

        if report.items_resynced:
            self.stdout.write(
                self.style.SUCCESS(f"[FIXED] Item caches resynced for {len(report.items_resynced)} item(s)")
            )

        for problem in inventory.get("problem_items", []):
            self.stderr.write(
                self.style.ERROR(f"[FAIL] Item {problem['sku']}: {', '.join(problem['problems'])} out of sync")
            )

        if report.has_inventory_drift:
            self.stderr.write(
                self.style.ERROR(
                    f"[FAIL] Inventory valuation drift: {inventory.get('global_discrepancy', 0)}"
                )
            )
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Inventory valuation matches the GL"))

        balance_uncorrected = report.has_balance_drift and report.correction_entry_id is None
        return self._exit(strict and (balance_uncorrected or report.has_inventory_drift))

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
