# documents/services/lines.py

"""
DOCUMENT LINE NORMALIZATION

Turns raw line dicts into typed lines per document kind, and back into a
JSON snapshot stored on the document.

Line shapes:
- BILL:       {item, quantity, unit_price, warehouse_code?, batch_number?}
              SERVICE items on a bill are landed cost:
              {item, quantity, unit_price, allocate_to?: [layer ids], method?}
- INVOICE:    {item, quantity, unit_price, warehouse_code?}
- JOURNAL:    {account_code, debit, credit, description?}
- ADJUSTMENT: {item, quantity_delta, unit_cost?, warehouse_code?}
"""

from __future__ import annotations

from dataclasses import dataclass, field

from inventory.models import Item, LandedCostAllocation
from inventory.models.layer import DEFAULT_WAREHOUSE

from documents.models import SourceDocument
from documents.services.exceptions import InvalidDocumentLinesError


@dataclass(frozen=True)
class BillLine:
    item: Item
    quantity: int
    unit_price: int
    warehouse_code: str = DEFAULT_WAREHOUSE
    batch_number: str = ""
    allocate_to: list[int] = field(default_factory=list)
    method: str = LandedCostAllocation.Method.VALUE

    @property
    def amount(self) -> int:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class InvoiceLine:
    item: Item
    quantity: int
    unit_price: int
    warehouse_code: str | None = None

    @property
    def amount(self) -> int:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class JournalLine:
    account_code: str
    debit: int
    credit: int
    description: str = ""


@dataclass(frozen=True)
class AdjustmentLine:
    item: Item
    quantity_delta: int
    unit_cost: int | None = None
    warehouse_code: str = DEFAULT_WAREHOUSE


def _int(value, *, label: str, index: int, allow_negative: bool = False) -> int:
    if isinstance(value, bool) or value is None or value == "":
        raise InvalidDocumentLinesError(f"Line {index}: {label} is required and must be an integer")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidDocumentLinesError(f"Line {index}: {label} must be an integer") from exc
    if not allow_negative and number < 0:
        raise InvalidDocumentLinesError(f"Line {index}: {label} cannot be negative")
    return number


def _item(value, *, index: int) -> Item:
    if isinstance(value, Item):
        return value
    if value is None or value == "":
        raise InvalidDocumentLinesError(f"Line {index}: item is required")
    try:
        return Item.objects.get(pk=int(value))
    except (Item.DoesNotExist, TypeError, ValueError) as exc:
        raise InvalidDocumentLinesError(f"Line {index}: item {value!r} not found") from exc


def _bill_line(raw: dict, index: int) -> BillLine:
    item = _item(raw.get("item"), index=index)
    quantity = _int(raw.get("quantity"), label="quantity", index=index)
    if quantity <= 0:
        raise InvalidDocumentLinesError(f"Line {index}: quantity must be greater than zero")

    method = str(raw.get("method") or LandedCostAllocation.Method.VALUE).upper()
    if method not in LandedCostAllocation.Method.values:
        raise InvalidDocumentLinesError(f"Line {index}: unsupported allocation method {method!r}")

    allocate_to = raw.get("allocate_to") or []
    if allocate_to and item.is_stocked:
        raise InvalidDocumentLinesError(f"Line {index}: only service lines can allocate landed cost")

    return BillLine(
        item=item,
        quantity=quantity,
        unit_price=_int(raw.get("unit_price"), label="unit_price", index=index),
        warehouse_code=str(raw.get("warehouse_code") or DEFAULT_WAREHOUSE).strip(),
        batch_number=str(raw.get("batch_number") or "").strip(),
        allocate_to=[_int(v, label="allocate_to", index=index) for v in allocate_to],
        method=method,
    )


def _invoice_line(raw: dict, index: int) -> InvoiceLine:
    quantity = _int(raw.get("quantity"), label="quantity", index=index)
    if quantity <= 0:
        raise InvalidDocumentLinesError(f"Line {index}: quantity must be greater than zero")
    warehouse = str(raw.get("warehouse_code") or "").strip() or None
    return InvoiceLine(
        item=_item(raw.get("item"), index=index),
        quantity=quantity,
        unit_price=_int(raw.get("unit_price"), label="unit_price", index=index),
        warehouse_code=warehouse,
    )


def _journal_line(raw: dict, index: int) -> JournalLine:
    code = str(raw.get("account_code") or "").strip()
    if not code:
        raise InvalidDocumentLinesError(f"Line {index}: account_code is required")
    debit = _int(raw.get("debit") or 0, label="debit", index=index)
    credit = _int(raw.get("credit") or 0, label="credit", index=index)
    if (debit > 0) == (credit > 0):
        raise InvalidDocumentLinesError(f"Line {index}: exactly one of debit or credit must be set")
    return JournalLine(
        account_code=code,
        debit=debit,
        credit=credit,
        description=str(raw.get("description") or "").strip(),
    )


def _adjustment_line(raw: dict, index: int) -> AdjustmentLine:
    item = _item(raw.get("item"), index=index)
    if not item.is_stocked:
        raise InvalidDocumentLinesError(f"Line {index}: service items cannot be adjusted")
    delta = _int(raw.get("quantity_delta"), label="quantity_delta", index=index, allow_negative=True)
    if delta == 0:
        raise InvalidDocumentLinesError(f"Line {index}: quantity_delta cannot be 0")
    unit_cost = raw.get("unit_cost")
    return AdjustmentLine(
        item=item,
        quantity_delta=delta,
        unit_cost=None if unit_cost in (None, "") else _int(unit_cost, label="unit_cost", index=index),
        warehouse_code=str(raw.get("warehouse_code") or DEFAULT_WAREHOUSE).strip(),
    )


_PARSERS = {
    SourceDocument.Kind.BILL: _bill_line,
    SourceDocument.Kind.INVOICE: _invoice_line,
    SourceDocument.Kind.JOURNAL: _journal_line,
    SourceDocument.Kind.ADJUSTMENT: _adjustment_line,
}


def normalize_lines(kind: str, lines) -> list:
    if not isinstance(lines, (list, tuple)) or not lines:
        raise InvalidDocumentLinesError("A document needs at least one line")

    parser = _PARSERS.get(kind)
    if parser is None:
        raise InvalidDocumentLinesError(f"Unsupported document kind: {kind}")

    parsed = []
    for index, raw in enumerate(lines, start=1):
        if not isinstance(raw, dict):
            raise InvalidDocumentLinesError(f"Line {index}: each line must be an object/dict")
        parsed.append(parser(raw, index))

    if kind == SourceDocument.Kind.BILL:
        has_stock = any(line.item.is_stocked for line in parsed)
        for index, line in enumerate(parsed, start=1):
            if not line.item.is_stocked and not line.allocate_to and not has_stock:
                raise InvalidDocumentLinesError(
                    f"Line {index}: a service line needs allocate_to when the bill has no stock lines"
                )
    return parsed


def snapshot_lines(lines: list) -> list[dict]:
    """JSON-safe copy of normalized lines (items stored by id)."""
    out = []
    for line in lines:
        row = {}
        for key, value in line.__dict__.items():
            row[key] = value.pk if isinstance(value, Item) else value
        out.append(row)
    return out
