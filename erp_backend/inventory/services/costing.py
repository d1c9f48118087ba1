# inventory/services/costing.py

"""
======================================================
PATH: inventory/services/costing.py
======================================================
FIFO INVENTORY COSTING ENGINE

This module is the ONLY place allowed to:
- Create / delete InventoryLayer rows
- Move InventoryLayer.remaining_qty, remaining_value and landed_cost_adjustment
- Create / delete LayerConsumption and LandedCostAllocation rows
- Move Item.quantity_on_hand / Item.average_cost caches

Rules:
- Quantities are whole base units; unit costs are whole minor units
  (landed adjustments are per-unit decimals)
- Depletion is strictly oldest-first: (received_at, sequence)
- Every layer write is conditional on the version that was read;
  a mismatch raises ConcurrentModificationError and the whole
  operation rolls back (callers may retry)
- Insufficient stock fails before anything is mutated
- A slice costs the drop in the layer's rounded carrying value; the
  last unit out takes whatever value is left, so a layer's slices always
  sum to the value it was booked at
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounting.services.account_resolver import (
    get_account_by_code,
    get_landed_cost_clearing_account,
)
from accounting.services.journal_entry_service import post_entry
from accounting.services.store_errors import translate_store_errors
from inventory.models import InventoryLayer, Item, LandedCostAllocation, LayerConsumption
from inventory.models.layer import DEFAULT_WAREHOUSE
from inventory.services.exceptions import (
    ConcurrentModificationError,
    InsufficientInventoryError,
    InventoryServiceError,
    LayerConsumedError,
    LayerIntegrityError,
)
from inventory.services.sequence import next_sequence

logger = logging.getLogger(__name__)

QUANT6 = Decimal("0.000001")

SourceKind = InventoryLayer.SourceKind
ConsumptionKind = LayerConsumption.Kind
AllocationMethod = LandedCostAllocation.Method


# ============================================================
# RESULT TYPES
# ============================================================


class ConsumedSlice(NamedTuple):
    """(layer, quantity taken, unit cost at consumption, integer cost) for one FIFO step."""

    layer: InventoryLayer
    quantity: int
    unit_cost: Decimal
    cost: int


@dataclass(frozen=True)
class AdjustmentResult:
    item: Item
    quantity_delta: int
    value: int
    layer: InventoryLayer | None = None
    consumed: list[ConsumedSlice] = field(default_factory=list)


@dataclass(frozen=True)
class LandedCostResult:
    allocations: list[LandedCostAllocation]
    postings: list[dict]
    journal_entry: object | None = None


# ============================================================
# NORMALIZERS
# ============================================================


def _to_int_qty(value, *, label: str = "quantity") -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise InventoryServiceError(f"{label} must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)

    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)

    raise InventoryServiceError(f"{label} must be a whole integer unit")


def round_half_up(value: Decimal) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_aware_dt(value: date | datetime | None) -> datetime:
    if value is None:
        return timezone.now()
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value, timezone.get_current_timezone())
    return value


def _resolve_item(item) -> Item:
    if isinstance(item, Item):
        return item
    try:
        return Item.objects.get(pk=item)
    except Item.DoesNotExist as exc:
        raise InventoryServiceError(f"Item {item!r} not found") from exc


def _require_stocked(item: Item) -> None:
    if not item.is_stocked:
        raise InventoryServiceError(f"Item {item.sku} is a service item and carries no inventory")


# ============================================================
# CONDITIONAL WRITES / CACHES
# ============================================================


def update_layer_conditionally(*, layer_id: int, expected_version: int, **changes) -> None:
    """
    UPDATE layer SET ..., version = version + 1 WHERE id = ? AND version = ?
    Zero rows means someone else touched the layer first.
    """
    updated = InventoryLayer.objects.filter(pk=layer_id, version=expected_version).update(
        version=F("version") + 1,
        **changes,
    )
    if updated != 1:
        logger.warning(
            "Layer version conflict",
            extra={"layer_id": layer_id, "expected_version": expected_version},
        )
        raise ConcurrentModificationError(
            f"Inventory layer {layer_id} changed concurrently (expected version {expected_version})"
        )


def _bump_item_quantity(item_id: int, delta: int) -> None:
    if delta:
        Item.objects.filter(pk=item_id).update(
            quantity_on_hand=F("quantity_on_hand") + delta,
            version=F("version") + 1,
        )


def layer_value(quantity: int, effective_unit_cost: Decimal) -> int:
    """Carrying value of `quantity` units at a per-unit cost, rounded half-up."""
    return round_half_up(Decimal(int(quantity)) * Decimal(effective_unit_cost))


def layer_totals(item_id: int) -> tuple[int, int]:
    """(remaining quantity, remaining carrying value) over the item's non-depleted layers."""
    qty = 0
    value = 0
    rows = InventoryLayer.objects.filter(item_id=item_id, is_depleted=False).values_list(
        "remaining_qty", "remaining_value"
    )
    for remaining, carrying in rows:
        qty += int(remaining)
        value += int(carrying)
    return qty, value


def expected_average_cost(item_id: int) -> Decimal:
    qty, value = layer_totals(item_id)
    if qty <= 0:
        return Decimal("0")
    return (Decimal(value) / qty).quantize(QUANT6, rounding=ROUND_HALF_UP)


def refresh_average_cost(item_id: int) -> Decimal:
    avg = expected_average_cost(item_id)
    Item.objects.filter(pk=item_id).update(average_cost=avg)
    return avg


@transaction.atomic
def resync_item_caches(*, items=None) -> list[int]:
    """
    Rebuild Item.quantity_on_hand and Item.average_cost from the layers.
    Returns the ids of the items whose caches were stale.
    """
    qs = Item.objects.select_for_update().exclude(item_class=Item.ItemClass.SERVICE)
    if items is not None:
        qs = qs.filter(pk__in=[getattr(item, "pk", item) for item in items])

    fixed: list[int] = []
    with translate_store_errors("resync_item_caches"):
        for item in qs.order_by("pk"):
            qty, _value = layer_totals(item.pk)
            avg = expected_average_cost(item.pk)
            if int(item.quantity_on_hand) == qty and item.average_cost == avg:
                continue

            Item.objects.filter(pk=item.pk).update(
                quantity_on_hand=qty,
                average_cost=avg,
                version=F("version") + 1,
            )
            fixed.append(item.pk)
            logger.warning(
                "Item cache resynced",
                extra={
                    "item_id": item.pk,
                    "cached_quantity": int(item.quantity_on_hand),
                    "layer_quantity": qty,
                    "cached_average_cost": str(item.average_cost),
                    "layer_average_cost": str(avg),
                },
            )
    return fixed


# ============================================================
# RECEIVE
# ============================================================


@transaction.atomic
def receive(
    *,
    item,
    quantity,
    unit_cost,
    document=None,
    batch_number: str = "",
    source_kind: str = SourceKind.RECEIPT,
    warehouse_code: str = DEFAULT_WAREHOUSE,
    received_at: date | datetime | None = None,
    landed_cost_adjustment: Decimal = Decimal("0"),
    origin_layer: InventoryLayer | None = None,
    value: int | None = None,
) -> InventoryLayer:
    """
    Open a new cost layer with remaining == initial == quantity.
    `value` overrides the carrying value (a transfer-in keeps the exact
    cost that left the source layer).
    """
    item = _resolve_item(item)
    _require_stocked(item)

    qty = _to_int_qty(quantity)
    if qty <= 0:
        raise InventoryServiceError("Received quantity must be greater than zero")

    cost = _to_int_qty(unit_cost, label="unit_cost")
    if cost < 0:
        raise InventoryServiceError("unit_cost cannot be negative")

    landed = Decimal(landed_cost_adjustment or 0).quantize(QUANT6)
    carrying = layer_value(qty, Decimal(cost) + landed) if value is None else _to_int_qty(value, label="value")
    if carrying < 0:
        raise InventoryServiceError("Layer value cannot be negative")

    with translate_store_errors("receive"):
        layer = InventoryLayer.objects.create(
            item=item,
            batch_number=(batch_number or "").strip(),
            document=document,
            source_kind=source_kind,
            origin_layer=origin_layer,
            warehouse_code=(warehouse_code or DEFAULT_WAREHOUSE).strip(),
            initial_qty=qty,
            remaining_qty=qty,
            unit_cost=cost,
            landed_cost_adjustment=landed,
            remaining_value=carrying,
            received_at=_as_aware_dt(received_at),
            sequence=next_sequence(),
        )

        _bump_item_quantity(item.pk, qty)
        refresh_average_cost(item.pk)

    logger.info(
        "Inventory layer received",
        extra={
            "item_id": item.pk,
            "layer_id": layer.pk,
            "quantity": qty,
            "unit_cost": cost,
            "source_kind": source_kind,
        },
    )
    return layer


# ============================================================
# FIFO DEPLETION
# ============================================================


@transaction.atomic
def deplete(
    *,
    item,
    quantity,
    document=None,
    kind: str = ConsumptionKind.CONSUME,
    warehouse_code: str | None = None,
    consumed_at: date | datetime | None = None,
) -> list[ConsumedSlice]:
    """
    Consume `quantity` from the oldest non-depleted layers first.

    Returns one ConsumedSlice per layer touched, in FIFO order.
    Raises InsufficientInventoryError (nothing mutated) when the layers
    cannot cover the quantity.
    """
    item = _resolve_item(item)
    _require_stocked(item)

    qty = _to_int_qty(quantity)
    if qty < 0:
        raise InventoryServiceError("Depletion quantity cannot be negative")
    if qty == 0:
        return []

    with translate_store_errors("deplete"):
        qs = InventoryLayer.objects.filter(item=item, is_depleted=False)
        if warehouse_code:
            qs = qs.filter(warehouse_code=warehouse_code)
        layers = list(qs.order_by("received_at", "sequence"))

        available = sum(int(layer.remaining_qty) for layer in layers)
        if available < qty:
            logger.warning(
                "Insufficient inventory",
                extra={"item_id": item.pk, "requested": qty, "available": available},
            )
            raise InsufficientInventoryError(
                f"Insufficient stock for {item.sku}. Requested: {qty}, Available: {available}",
                requested=qty,
                available=available,
            )

        when = _as_aware_dt(consumed_at)
        still_needed = qty
        slices: list[ConsumedSlice] = []

        for layer in layers:
            if still_needed <= 0:
                break

            take = min(int(layer.remaining_qty), still_needed)
            new_remaining = int(layer.remaining_qty) - take

            carrying = int(layer.remaining_value)
            if new_remaining == 0:
                cost = carrying
            else:
                cost = carrying - layer_value(new_remaining, layer.effective_unit_cost)
                cost = min(max(cost, 0), carrying)

            update_layer_conditionally(
                layer_id=layer.pk,
                expected_version=layer.version,
                remaining_qty=new_remaining,
                remaining_value=carrying - cost,
                is_depleted=new_remaining == 0,
            )

            unit_cost = layer.effective_unit_cost.quantize(QUANT6, rounding=ROUND_HALF_UP)
            LayerConsumption.objects.create(
                layer=layer,
                item=item,
                document=document,
                kind=kind,
                quantity=take,
                unit_cost=unit_cost,
                total_cost=cost,
                consumed_at=when,
                sequence=next_sequence(),
            )

            layer.remaining_qty = new_remaining
            layer.remaining_value = carrying - cost
            layer.is_depleted = new_remaining == 0
            layer.version += 1

            slices.append(ConsumedSlice(layer, take, unit_cost, cost))
            still_needed -= take

        _bump_item_quantity(item.pk, -qty)
        refresh_average_cost(item.pk)

    logger.info(
        "Inventory depleted",
        extra={"item_id": item.pk, "quantity": qty, "layers": len(slices), "kind": kind},
    )
    return slices


def weighted_unit_cost(consumed, quantity) -> int:
    """round_half_up( sum(slice cost) / quantity )"""
    qty = _to_int_qty(quantity)
    if qty <= 0:
        raise InventoryServiceError("quantity must be greater than zero")

    return round_half_up(Decimal(consumed_cost(consumed)) / qty)


def consumed_cost(consumed) -> int:
    """Total integer cost of a depletion (sum of its slice costs)."""
    return sum(int(s.cost) for s in consumed)


# ============================================================
# LANDED COST
# ============================================================


def layer_is_consumed(layer: InventoryLayer) -> bool:
    return (not layer.is_untouched) or layer.consumptions.exists() or layer.transferred_layers.exists()


def _load_targets(layers) -> list[InventoryLayer]:
    ids = [getattr(layer, "pk", layer) for layer in layers]
    if not ids:
        raise InventoryServiceError("At least one target layer is required")
    if len(set(ids)) != len(ids):
        raise InventoryServiceError("Target layers must be distinct")

    by_id = {
        layer.pk: layer
        for layer in InventoryLayer.objects.select_related("item").filter(pk__in=ids)
    }
    missing = [i for i in ids if i not in by_id]
    if missing:
        raise InventoryServiceError(f"Target layers not found: {missing}")
    return [by_id[i] for i in ids]


@transaction.atomic
def allocate_landed_cost(
    *,
    amount,
    layers,
    method: str = AllocationMethod.VALUE,
    document=None,
    posted_at: date | None = None,
    post: bool = True,
    description: str = "",
) -> LandedCostResult:
    """
    Capitalize a service amount onto target layers.

    - VALUE weights by initial_qty * unit_cost, QUANTITY by initial_qty
    - integer shares; the rounding remainder lands on the LAST target
    - targets must be untouched (LayerConsumedError otherwise)
    - post=True posts DR inventory (grouped) / CR landed-cost clearing;
      post=False returns the debit postings for a caller that credits
      its own account (e.g. a vendor bill crediting AP)
    """
    total = _to_int_qty(amount, label="amount")
    if total <= 0:
        raise InventoryServiceError("Landed cost amount must be greater than zero")

    if method not in AllocationMethod.values:
        raise InventoryServiceError(f"Unsupported allocation method: {method}")

    targets = _load_targets(layers)

    for layer in targets:
        if layer_is_consumed(layer):
            raise LayerConsumedError(
                f"Layer {layer.pk} has already been consumed and cannot absorb landed cost",
                layer_id=layer.pk,
            )

    if method == AllocationMethod.VALUE:
        weights = [int(t.initial_qty) * int(t.unit_cost) for t in targets]
    else:
        weights = [int(t.initial_qty) for t in targets]

    weight_sum = sum(weights)
    if weight_sum <= 0:
        raise InventoryServiceError("Target layers carry no weight for this allocation method")

    shares = [total * w // weight_sum for w in weights[:-1]]
    shares.append(total - sum(shares))

    allocations: list[LandedCostAllocation] = []
    debit_by_code: dict[str, int] = defaultdict(int)

    with translate_store_errors("allocate_landed_cost"):
        for layer, share in zip(targets, shares):
            if share <= 0:
                continue

            per_unit = (Decimal(share) / int(layer.initial_qty)).quantize(QUANT6, rounding=ROUND_HALF_UP)
            update_layer_conditionally(
                layer_id=layer.pk,
                expected_version=layer.version,
                landed_cost_adjustment=F("landed_cost_adjustment") + per_unit,
                remaining_value=F("remaining_value") + share,
            )
            allocations.append(
                LandedCostAllocation.objects.create(
                    layer=layer,
                    document=document,
                    amount=share,
                    method=method,
                )
            )
            debit_by_code[layer.item.inventory_account_code] += share

        for item_id in sorted({t.item_id for t in targets}):
            refresh_average_cost(item_id)

        postings = [
            {
                "account": get_account_by_code(code),
                "debit": value,
                "credit": 0,
                "description": "Landed cost capitalized",
            }
            for code, value in debit_by_code.items()
        ]

        journal_entry = None
        if post:
            journal_entry = post_entry(
                lines=postings
                + [
                    {
                        "account": get_landed_cost_clearing_account(),
                        "debit": 0,
                        "credit": total,
                        "description": "Landed cost clearing",
                    }
                ],
                description=description or "Landed cost allocation",
                posted_at=posted_at or (document.document_date if document else None),
                transaction_id=getattr(document, "transaction_id", "") or "",
                reference=getattr(document, "number", "") or "",
            )
            LandedCostAllocation.objects.filter(pk__in=[a.pk for a in allocations]).update(
                journal_entry=journal_entry
            )

    logger.info(
        "Landed cost allocated",
        extra={"amount": total, "method": method, "targets": [t.pk for t in targets]},
    )
    return LandedCostResult(allocations=allocations, postings=postings, journal_entry=journal_entry)


@transaction.atomic
def reverse_landed_cost(*, document) -> int:
    """Remove every allocation a document made, restoring the layers' per-unit cost."""
    allocations = list(
        LandedCostAllocation.objects.filter(document=document).select_related("layer").order_by("-id")
    )
    if not allocations:
        return 0

    item_ids = set()
    with translate_store_errors("reverse_landed_cost"):
        for allocation in allocations:
            layer = InventoryLayer.objects.get(pk=allocation.layer_id)
            if layer_is_consumed(layer):
                raise LayerConsumedError(
                    f"Layer {layer.pk} has already been consumed; its landed cost is locked",
                    layer_id=layer.pk,
                )

            per_unit = (Decimal(int(allocation.amount)) / int(layer.initial_qty)).quantize(
                QUANT6, rounding=ROUND_HALF_UP
            )
            update_layer_conditionally(
                layer_id=layer.pk,
                expected_version=layer.version,
                landed_cost_adjustment=F("landed_cost_adjustment") - per_unit,
                remaining_value=F("remaining_value") - int(allocation.amount),
            )
            item_ids.add(layer.item_id)

        LandedCostAllocation.objects.filter(pk__in=[a.pk for a in allocations]).delete()
        for item_id in sorted(item_ids):
            refresh_average_cost(item_id)

    logger.info(
        "Landed cost allocation removed",
        extra={"document_id": getattr(document, "pk", None), "allocations": len(allocations)},
    )
    return len(allocations)


# ============================================================
# DOCUMENT ROLLBACK HELPERS
# ============================================================


@transaction.atomic
def restore_consumption(*, document) -> int:
    """
    Give every slice a document consumed back to the exact layer it came from,
    newest first, then drop the consumption rows. Returns the quantity restored.
    """
    rows = list(LayerConsumption.objects.filter(document=document).order_by("-sequence"))
    if not rows:
        return 0

    restored = 0
    item_ids = set()
    with translate_store_errors("restore_consumption"):
        for row in rows:
            layer = InventoryLayer.objects.get(pk=row.layer_id)
            new_remaining = int(layer.remaining_qty) + int(row.quantity)
            if new_remaining > int(layer.initial_qty):
                raise LayerIntegrityError(
                    f"Restoring {row.quantity} to layer {layer.pk} would exceed its initial quantity"
                )

            update_layer_conditionally(
                layer_id=layer.pk,
                expected_version=layer.version,
                remaining_qty=new_remaining,
                remaining_value=F("remaining_value") + int(row.total_cost),
                is_depleted=False,
            )
            _bump_item_quantity(row.item_id, int(row.quantity))
            item_ids.add(row.item_id)
            restored += int(row.quantity)

        LayerConsumption.objects.filter(pk__in=[r.pk for r in rows]).delete()
        for item_id in sorted(item_ids):
            refresh_average_cost(item_id)

    logger.info(
        "Consumption restored",
        extra={"document_id": getattr(document, "pk", None), "quantity": restored},
    )
    return restored


@transaction.atomic
def delete_document_layers(*, document) -> int:
    """
    Physically delete the layers a document created.
    Every layer must be untouched (no consumption, no foreign landed cost).
    """
    layers = list(InventoryLayer.objects.filter(document=document))
    if not layers:
        return 0

    for layer in layers:
        if layer_is_consumed(layer):
            raise LayerIntegrityError(f"Layer {layer.pk} has been consumed and cannot be deleted")
        if layer.landed_cost_allocations.exclude(document=document).exists():
            raise LayerIntegrityError(f"Layer {layer.pk} carries landed cost from another document")

    item_ids = set()
    with translate_store_errors("delete_document_layers"):
        LandedCostAllocation.objects.filter(layer__in=layers).delete()
        for layer in layers:
            _bump_item_quantity(layer.item_id, -int(layer.remaining_qty))
            item_ids.add(layer.item_id)

        InventoryLayer.objects.filter(pk__in=[layer.pk for layer in layers]).delete()
        for item_id in sorted(item_ids):
            refresh_average_cost(item_id)

    logger.info(
        "Document layers deleted",
        extra={"document_id": getattr(document, "pk", None), "layers": len(layers)},
    )
    return len(layers)


# ============================================================
# ADJUSTMENTS / TRANSFERS
# ============================================================


@transaction.atomic
def adjust(
    *,
    item,
    quantity_delta,
    unit_cost=None,
    document=None,
    warehouse_code: str = DEFAULT_WAREHOUSE,
    occurred_at: date | datetime | None = None,
) -> AdjustmentResult:
    """
    +N -> new ADJUSTMENT layer (unit_cost defaults to the item's average cost)
    -N -> FIFO depletion of kind ADJUSTMENT
    `value` is the signed inventory value change in minor units.
    """
    item = _resolve_item(item)
    delta = _to_int_qty(quantity_delta, label="quantity_delta")
    if delta == 0:
        raise InventoryServiceError("quantity_delta cannot be 0")

    if delta > 0:
        if unit_cost is None:
            item.refresh_from_db(fields=["average_cost", "quantity_on_hand"])
            if int(item.quantity_on_hand) <= 0:
                raise InventoryServiceError(
                    f"unit_cost is required to adjust {item.sku} up from zero stock"
                )
            cost = round_half_up(item.average_cost)
        else:
            cost = _to_int_qty(unit_cost, label="unit_cost")

        layer = receive(
            item=item,
            quantity=delta,
            unit_cost=cost,
            document=document,
            batch_number=f"ADJ-{getattr(document, 'pk', '') or 'MANUAL'}-{item.pk}",
            source_kind=SourceKind.ADJUSTMENT,
            warehouse_code=warehouse_code,
            received_at=occurred_at,
        )
        return AdjustmentResult(item=item, quantity_delta=delta, value=delta * cost, layer=layer)

    slices = deplete(
        item=item,
        quantity=-delta,
        document=document,
        kind=ConsumptionKind.ADJUSTMENT,
        warehouse_code=warehouse_code,
        consumed_at=occurred_at,
    )
    return AdjustmentResult(
        item=item,
        quantity_delta=delta,
        value=-consumed_cost(slices),
        consumed=slices,
    )


@transaction.atomic
def transfer(
    *,
    item,
    quantity,
    from_warehouse: str,
    to_warehouse: str,
    document=None,
    occurred_at: date | datetime | None = None,
) -> list[InventoryLayer]:
    """
    Move stock between warehouses. Each consumed slice re-appears as a
    TRANSFER layer in the destination with the same unit cost, landed
    adjustment and received_at (FIFO age carries over). No GL impact.
    """
    from_warehouse = (from_warehouse or "").strip()
    to_warehouse = (to_warehouse or "").strip()
    if not from_warehouse or not to_warehouse:
        raise InventoryServiceError("Both from_warehouse and to_warehouse are required")
    if from_warehouse == to_warehouse:
        raise InventoryServiceError("Cannot transfer within the same warehouse")

    slices = deplete(
        item=item,
        quantity=quantity,
        document=document,
        kind=ConsumptionKind.TRANSFER,
        warehouse_code=from_warehouse,
        consumed_at=occurred_at,
    )

    created: list[InventoryLayer] = []
    for source, qty, _unit_cost, cost in slices:
        created.append(
            receive(
                item=source.item_id,
                quantity=qty,
                unit_cost=source.unit_cost,
                document=document,
                batch_number=source.batch_number,
                source_kind=SourceKind.TRANSFER,
                warehouse_code=to_warehouse,
                received_at=source.received_at,
                landed_cost_adjustment=source.landed_cost_adjustment,
                origin_layer=source,
                value=cost,
            )
        )

    logger.info(
        "Inventory transferred",
        extra={
            "from_warehouse": from_warehouse,
            "to_warehouse": to_warehouse,
            "layers": len(created),
        },
    )
    return created


# ============================================================
# VALUATION
# ============================================================


def item_valuation(item) -> int:
    """Sum of the carrying values of the item's non-depleted layers."""
    item = _resolve_item(item)
    _qty, value = layer_totals(item.pk)
    return value
