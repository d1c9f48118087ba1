# inventory/services/movements.py

"""
======================================================
PATH: inventory/services/movements.py
======================================================
ITEM MOVEMENT HISTORY

Chronological quantity history of one item, built as a lazy k-way merge
(heapq.merge) of independent per-kind streams. Each stream is already
ordered by (occurred_at, sequence) straight from the database, so the
merge never materializes the full history.

Sources:
- RECEIPT / PRODUCE / ADJUSTMENT(+) / TRANSFER(+)  -> InventoryLayer rows
- CONSUME / ADJUSTMENT(-) / TRANSFER(-)           -> LayerConsumption rows

Transfer-in layers keep the source layer's received_at (FIFO age), so
their movement time is the layer's created_at instead.
"""

from __future__ import annotations

import enum
import heapq
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from inventory.models import InventoryLayer, Item, LayerConsumption


class MovementKind(str, enum.Enum):
    RECEIPT = "RECEIPT"
    CONSUME = "CONSUME"
    PRODUCE = "PRODUCE"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"


@dataclass(frozen=True)
class MovementEvent:
    kind: MovementKind
    occurred_at: datetime
    sequence: int
    qty_change: int
    unit_cost: Decimal
    document_id: int | None
    transaction_id: str
    layer_id: int
    warehouse_code: str

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.occurred_at, self.sequence)


@dataclass(frozen=True)
class MovementWindow:
    item_id: int
    start: datetime | None
    end: datetime | None


def _bound(value: date | datetime | None, *, end: bool) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.max if end else time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value, timezone.get_current_timezone())
    return value


# ============================================================
# STREAMS
# ============================================================


def _layer_events(window: MovementWindow, source_kind: str, kind: MovementKind, time_field: str):
    qs = InventoryLayer.objects.filter(item_id=window.item_id, source_kind=source_kind)
    if window.start is not None:
        qs = qs.filter(**{f"{time_field}__gte": window.start})
    if window.end is not None:
        qs = qs.filter(**{f"{time_field}__lte": window.end})

    for layer in qs.select_related("document").order_by(time_field, "sequence").iterator():
        yield MovementEvent(
            kind=kind,
            occurred_at=getattr(layer, time_field),
            sequence=layer.sequence,
            qty_change=int(layer.initial_qty),
            unit_cost=layer.effective_unit_cost,
            document_id=layer.document_id,
            transaction_id=getattr(layer.document, "transaction_id", "") or "",
            layer_id=layer.pk,
            warehouse_code=layer.warehouse_code,
        )


def _consumption_events(window: MovementWindow, consumption_kind: str, kind: MovementKind):
    qs = LayerConsumption.objects.filter(item_id=window.item_id, kind=consumption_kind)
    if window.start is not None:
        qs = qs.filter(consumed_at__gte=window.start)
    if window.end is not None:
        qs = qs.filter(consumed_at__lte=window.end)

    for row in qs.select_related("document", "layer").order_by("consumed_at", "sequence").iterator():
        yield MovementEvent(
            kind=kind,
            occurred_at=row.consumed_at,
            sequence=row.sequence,
            qty_change=-int(row.quantity),
            unit_cost=row.unit_cost,
            document_id=row.document_id,
            transaction_id=getattr(row.document, "transaction_id", "") or "",
            layer_id=row.layer_id,
            warehouse_code=row.layer.warehouse_code,
        )


def receipt_stream(window: MovementWindow) -> Iterator[MovementEvent]:
    return _layer_events(window, InventoryLayer.SourceKind.RECEIPT, MovementKind.RECEIPT, "received_at")


def production_stream(window: MovementWindow) -> Iterator[MovementEvent]:
    return _layer_events(window, InventoryLayer.SourceKind.PRODUCE, MovementKind.PRODUCE, "received_at")


def consumption_stream(window: MovementWindow) -> Iterator[MovementEvent]:
    return _consumption_events(window, LayerConsumption.Kind.CONSUME, MovementKind.CONSUME)


def transfer_stream(window: MovementWindow) -> Iterator[MovementEvent]:
    return heapq.merge(
        _consumption_events(window, LayerConsumption.Kind.TRANSFER, MovementKind.TRANSFER),
        _layer_events(window, InventoryLayer.SourceKind.TRANSFER, MovementKind.TRANSFER, "created_at"),
        key=lambda e: e.sort_key,
    )


def adjustment_stream(window: MovementWindow) -> Iterator[MovementEvent]:
    return heapq.merge(
        _layer_events(window, InventoryLayer.SourceKind.ADJUSTMENT, MovementKind.ADJUSTMENT, "received_at"),
        _consumption_events(window, LayerConsumption.Kind.ADJUSTMENT, MovementKind.ADJUSTMENT),
        key=lambda e: e.sort_key,
    )


STREAMS: dict[MovementKind, Callable[[MovementWindow], Iterator[MovementEvent]]] = {
    MovementKind.RECEIPT: receipt_stream,
    MovementKind.CONSUME: consumption_stream,
    MovementKind.PRODUCE: production_stream,
    MovementKind.TRANSFER: transfer_stream,
    MovementKind.ADJUSTMENT: adjustment_stream,
}

if set(STREAMS) != set(MovementKind):
    raise ImproperlyConfigured("Every MovementKind needs a movement stream")


# ============================================================
# PUBLIC API
# ============================================================


def _opening_quantity(window: MovementWindow) -> int:
    if window.start is None:
        return 0

    history = MovementWindow(item_id=window.item_id, start=None, end=window.start)
    total = 0
    for event in iter_movements(history):
        if event.occurred_at < window.start:
            total += event.qty_change
    return total


def iter_movements(window: MovementWindow, kinds=None) -> Iterator[MovementEvent]:
    selected = [MovementKind(k) for k in kinds] if kinds else list(MovementKind)
    return heapq.merge(*(STREAMS[k](window) for k in selected), key=lambda e: e.sort_key)


def get_item_movement_history(
    item,
    *,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
    kinds=None,
) -> Iterator[dict]:
    """
    Lazily yield the item's movements in chronological order, each with a
    running on-hand balance. With date_from the running balance starts from
    the quantity moved before the window.
    """
    item_id = item.pk if isinstance(item, Item) else int(item)
    window = MovementWindow(
        item_id=item_id,
        start=_bound(date_from, end=False),
        end=_bound(date_to, end=True),
    )

    running = _opening_quantity(window) if not kinds else 0
    for event in iter_movements(window, kinds):
        running += event.qty_change
        yield {
            "kind": event.kind.value,
            "occurred_at": event.occurred_at,
            "sequence": event.sequence,
            "qty_change": event.qty_change,
            "unit_cost": event.unit_cost,
            "document_id": event.document_id,
            "transaction_id": event.transaction_id,
            "layer_id": event.layer_id,
            "warehouse_code": event.warehouse_code,
            "running_balance": running,
        }
