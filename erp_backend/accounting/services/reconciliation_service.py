# accounting/services/reconciliation_service.py

"""
======================================================
PATH: accounting/services/reconciliation_service.py
======================================================
RECONCILIATION SERVICE

Recomputes truth independently of every cache and reports drift:
- Account.balance vs sum(debit) - sum(credit) of posted lines
- Inventory GL accounts vs FIFO layer valuation
- Item.quantity_on_hand / Item.average_cost vs the layers

Corrections go through the ledger engine (RESYNC entry) and the costing
engine (item cache resync); this module never writes a cache itself.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field

from django.db import transaction

from accounting.models.account import Account
from accounting.models.reconciliation import BalanceDiscrepancy
from accounting.services.account_resolver import inventory_class_codes
from accounting.services.balance_service import ledger_balances
from accounting.services.exceptions import ReconciliationDriftError
from accounting.services.journal_entry_service import resync_account_balances

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Discrepancy:
    account_id: int
    account_code: str
    cached_balance: int
    ledger_balance: int

    @property
    def delta(self) -> int:
        return self.cached_balance - self.ledger_balance


@dataclass
class ReconciliationReport:
    run_id: uuid.UUID
    discrepancies: list[Discrepancy] = field(default_factory=list)
    inventory: dict = field(default_factory=dict)
    correction_entry_id: int | None = None
    items_resynced: list[int] = field(default_factory=list)

    @property
    def has_balance_drift(self) -> bool:
        return bool(self.discrepancies)

    @property
    def has_inventory_drift(self) -> bool:
        return bool(self.inventory.get("problem_items")) or self.inventory.get("global_discrepancy", 0) != 0

    @property
    def is_clean(self) -> bool:
        return not self.has_balance_drift and not self.has_inventory_drift

    def as_dict(self) -> dict:
        return {
            "run_id": str(self.run_id),
            "clean": self.is_clean,
            "discrepancies": [
                {
                    "account_id": d.account_id,
                    "account_code": d.account_code,
                    "cached_balance": d.cached_balance,
                    "ledger_balance": d.ledger_balance,
                    "delta": d.delta,
                }
                for d in self.discrepancies
            ],
            "inventory": self.inventory,
            "correction_entry_id": self.correction_entry_id,
            "items_resynced": self.items_resynced,
        }


# ============================================================
# ACCOUNT BALANCES
# ============================================================


def recompute_account_balances(*, run_id=None, persist: bool = True) -> list[Discrepancy]:
    """Compare every cached Account.balance to ledger truth."""
    run_id = run_id or uuid.uuid4()
    truth = ledger_balances()

    found: list[Discrepancy] = []
    for account in Account.objects.only("id", "code", "balance").order_by("code"):
        ledger = truth.get(account.id, 0)
        if int(account.balance) == ledger:
            continue

        d = Discrepancy(
            account_id=account.id,
            account_code=account.code,
            cached_balance=int(account.balance),
            ledger_balance=ledger,
        )
        found.append(d)
        logger.warning(
            "Cached balance drift",
            extra={
                "run_id": str(run_id),
                "account_code": d.account_code,
                "cached": d.cached_balance,
                "ledger": d.ledger_balance,
                "delta": d.delta,
            },
        )

    if persist and found:
        BalanceDiscrepancy.objects.bulk_create(
            [
                BalanceDiscrepancy(
                    run_id=run_id,
                    account_id=d.account_id,
                    cached_balance=d.cached_balance,
                    ledger_balance=d.ledger_balance,
                    delta=d.delta,
                )
                for d in found
            ]
        )

    return found


# ============================================================
# INVENTORY VALUATION
# ============================================================


def recompute_inventory_valuation() -> dict:
    """
    Layer valuation per item, grouped by classification and by inventory
    account, compared with the GL balance of those accounts. Also checks the
    item quantity / average cost caches.
    """
    from inventory.models import Item
    from inventory.services.costing import expected_average_cost, layer_totals

    value_by_class: dict[str, int] = defaultdict(int)
    value_by_code: dict[str, int] = defaultdict(int)
    classes_by_code: dict[str, set] = defaultdict(set)
    problem_items: list[dict] = []

    for item in Item.objects.exclude(item_class=Item.ItemClass.SERVICE).order_by("sku"):
        qty, value = layer_totals(item.pk)
        code = item.inventory_account_code

        value_by_class[item.item_class] += value
        value_by_code[code] += value
        classes_by_code[code].add(item.item_class)

        problems = []
        if int(item.quantity_on_hand) != qty:
            problems.append("quantity_on_hand")
        if item.average_cost != expected_average_cost(item.pk):
            problems.append("average_cost")
        if problems:
            problem_items.append(
                {
                    "item_id": item.pk,
                    "sku": item.sku,
                    "problems": problems,
                    "cached_quantity": int(item.quantity_on_hand),
                    "layer_quantity": qty,
                    "cached_average_cost": str(item.average_cost),
                    "layer_average_cost": str(expected_average_cost(item.pk)),
                }
            )

    for item_class, code in inventory_class_codes().items():
        value_by_code.setdefault(code, 0)
        classes_by_code[code].add(item_class)

    codes = sorted(value_by_code)
    accounts = {a.code: a for a in Account.objects.filter(code__in=codes)}
    truth = ledger_balances(account_ids=[a.id for a in accounts.values()])

    by_account = []
    global_discrepancy = 0
    for code in codes:
        account = accounts.get(code)
        gl = truth.get(account.id, 0) if account else 0
        diff = gl - value_by_code[code]
        global_discrepancy += diff
        by_account.append(
            {
                "account_code": code,
                "item_classes": sorted(classes_by_code[code]),
                "gl_balance": gl,
                "layer_value": value_by_code[code],
                "discrepancy": diff,
            }
        )

    if global_discrepancy or problem_items:
        logger.warning(
            "Inventory valuation drift",
            extra={"global_discrepancy": global_discrepancy, "problem_items": len(problem_items)},
        )

    return {
        "by_class": dict(sorted(value_by_class.items())),
        "by_account": by_account,
        "problem_items": problem_items,
        "global_discrepancy": global_discrepancy,
    }


# ============================================================
# CORRECTIONS
# ============================================================


@transaction.atomic
def apply_corrections(*, run_id=None):
    """
    Post one RESYNC entry for every uncorrected discrepancy, resetting the
    cached balances to ledger truth. Returns the entry, or None if nothing
    was flagged.
    """
    flagged = list(
        BalanceDiscrepancy.objects.select_for_update()
        .filter(corrected_by__isnull=True)
        .order_by("account_id", "id")
    )
    if not flagged:
        return None

    entry = resync_account_balances(discrepancies=flagged, run_id=run_id or flagged[-1].run_id)

    logger.info(
        "Reconciliation corrections applied",
        extra={"journal_entry_id": entry.id, "discrepancies": len(flagged)},
    )
    return entry


def apply_item_cache_corrections(problem_items) -> list[int]:
    """
    Rebuild the quantity / average cost caches of the reported items from
    their layers. Returns the ids that were actually rewritten.
    """
    from inventory.services.costing import resync_item_caches

    item_ids = [p["item_id"] for p in problem_items or []]
    if not item_ids:
        return []

    fixed = resync_item_caches(items=item_ids)
    logger.info("Item cache corrections applied", extra={"items": fixed})
    return fixed


def run_reconciliation(*, apply: bool = False, strict: bool = False, persist: bool = True) -> ReconciliationReport:
    """
    Batch wrapper: detect balance + inventory drift, optionally correct
    balances and item caches. strict=True raises ReconciliationDriftError
    when drift remains uncorrected after the run.
    """
    run_id = uuid.uuid4()
    report = ReconciliationReport(run_id=run_id)

    report.discrepancies = recompute_account_balances(run_id=run_id, persist=persist or apply)
    report.inventory = recompute_inventory_valuation()

    if apply and report.discrepancies:
        entry = apply_corrections(run_id=run_id)
        report.correction_entry_id = getattr(entry, "id", None)

    if apply and report.inventory.get("problem_items"):
        report.items_resynced = apply_item_cache_corrections(report.inventory["problem_items"])
        report.inventory = recompute_inventory_valuation()

    logger.info(
        "Reconciliation run finished",
        extra={
            "run_id": str(run_id),
            "discrepancies": len(report.discrepancies),
            "corrected": report.correction_entry_id is not None,
            "inventory_discrepancy": report.inventory.get("global_discrepancy", 0),
        },
    )

    if strict:
        balance_uncorrected = report.has_balance_drift and report.correction_entry_id is None
        if balance_uncorrected or report.has_inventory_drift:
            raise ReconciliationDriftError(
                "Reconciliation found uncorrected drift",
                discrepancies=report.discrepancies,
            )

    return report
