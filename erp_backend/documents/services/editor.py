# documents/services/editor.py

"""
======================================================
PATH: documents/services/editor.py
======================================================
REVERSAL-AND-REPLAY EDITOR (APPLICATION SERVICE)

Purpose:
- Post a source document's initial footprint (layers / depletions + one
  balanced journal entry).
- Edit or delete a posted document WITHOUT rewriting history:
  the old journal entries are reversed (never updated), the layers the
  document created are removed, the slices it consumed are given back,
  and the new lines are replayed.

Footprint of a document:
- live journal entries for its transaction_id (not yet reversed)
- InventoryLayer / LayerConsumption / LandedCostAllocation rows linked
  through the explicit document FK

Lock rules (checked before anything is modified):
- payment applied                   -> DocumentLockedError(PAYMENT_APPLIED)
- any created layer already used    -> DocumentLockedError(ITEMS_CONSUMED)
- created layers carry foreign landed cost -> DocumentLockedError(LANDED_COST_APPLIED)

An edit replays at the moment of the footprint it replaces, so the new
layers keep their FIFO position and the new slices their place in history.

Every operation is one atomic unit, retried as a whole up to
EDITOR_MAX_RETRIES times on RetryableError (layer version conflicts,
transient store errors). Anything else propagates unchanged.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, time

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.models import JournalEntry
from accounting.services.exceptions import IdempotencyError, RetryableError
from accounting.services.journal_entry_service import (
    live_entries_for_transaction,
    post_entry,
    reverse_entry,
)
from documents.models import SourceDocument
from documents.services import posting_rules
from documents.services.exceptions import (
    DocumentLockedError,
    DocumentNotFoundError,
    InvalidDocumentLinesError,
)
from documents.services.lines import normalize_lines, snapshot_lines
from inventory.models import InventoryLayer, LandedCostAllocation, LayerConsumption
from inventory.services import costing
from inventory.services.exceptions import LayerConsumedError

logger = logging.getLogger(__name__)

Kind = SourceDocument.Kind


# ============================================================
# RESULT TYPES
# ============================================================


@dataclass(frozen=True)
class DocumentFootprint:
    document: SourceDocument
    entries: list[JournalEntry] = field(default_factory=list)
    layers: list[InventoryLayer] = field(default_factory=list)
    consumptions: list[LayerConsumption] = field(default_factory=list)
    allocations: list[LandedCostAllocation] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.entries or self.layers or self.consumptions or self.allocations)


@dataclass(frozen=True)
class EditResult:
    document: SourceDocument
    reversals: list[JournalEntry]
    entry: JournalEntry | None


# ============================================================
# RETRY WRAPPER
# ============================================================


def with_retries(func):
    """
    Re-run the whole operation on RetryableError, up to EDITOR_MAX_RETRIES
    attempts in total. Each attempt is its own atomic unit.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, int(getattr(settings, "EDITOR_MAX_RETRIES", 3) or 1))
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except RetryableError as exc:
                if attempt >= attempts:
                    logger.exception(
                        "Editor operation failed after retries",
                        extra={"operation": func.__name__, "attempts": attempt},
                    )
                    raise
                logger.warning(
                    "Retrying editor operation",
                    extra={"operation": func.__name__, "attempt": attempt, "error": str(exc)},
                )

    return wrapper


# ============================================================
# LOOKUP / FOOTPRINT
# ============================================================


def _document_moment(document: SourceDocument) -> datetime:
    """Movement timestamp for a document: now for today's documents, else start of its date."""
    if document.document_date == timezone.localdate():
        return timezone.now()
    return timezone.make_aware(
        datetime.combine(document.document_date, time.min),
        timezone.get_current_timezone(),
    )


def _footprint_moment(footprint: DocumentFootprint) -> datetime | None:
    """Earliest movement time of an existing footprint, or None when it has none."""
    moments = [layer.received_at for layer in footprint.layers]
    moments += [row.consumed_at for row in footprint.consumptions]
    return min(moments) if moments else None


@contextmanager
def _consumed_layers_locked(document: SourceDocument):
    try:
        yield
    except LayerConsumedError as exc:
        raise DocumentLockedError(
            DocumentLockedError.ITEMS_CONSUMED, transaction_id=document.transaction_id
        ) from exc


def get_document(transaction_id: str, *, for_update: bool = False) -> SourceDocument:
    qs = SourceDocument.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(transaction_id=(transaction_id or "").strip())
    except SourceDocument.DoesNotExist as exc:
        raise DocumentNotFoundError(f"No document with transaction id {transaction_id!r}") from exc


def load_footprint(document: SourceDocument) -> DocumentFootprint:
    return DocumentFootprint(
        document=document,
        entries=list(live_entries_for_transaction(document.transaction_id)),
        layers=list(InventoryLayer.objects.filter(document=document).order_by("sequence")),
        consumptions=list(LayerConsumption.objects.filter(document=document).order_by("sequence")),
        allocations=list(LandedCostAllocation.objects.filter(document=document).order_by("id")),
    )


def lock_reason(footprint: DocumentFootprint) -> str | None:
    document = footprint.document

    if document.payment_applied:
        return DocumentLockedError.PAYMENT_APPLIED

    for layer in footprint.layers:
        if costing.layer_is_consumed(layer):
            return DocumentLockedError.ITEMS_CONSUMED
        if layer.landed_cost_allocations.exclude(document=document).exists():
            return DocumentLockedError.LANDED_COST_APPLIED

    allocated_layer_ids = {a.layer_id for a in footprint.allocations}
    for layer in InventoryLayer.objects.filter(pk__in=allocated_layer_ids).exclude(document=document):
        if costing.layer_is_consumed(layer):
            return DocumentLockedError.ITEMS_CONSUMED

    return None


def assert_editable(footprint: DocumentFootprint) -> None:
    document = footprint.document
    if document.is_deleted:
        raise DocumentLockedError(
            DocumentLockedError.ALREADY_DELETED, transaction_id=document.transaction_id
        )

    reason = lock_reason(footprint)
    if reason:
        logger.warning(
            "Document edit rejected",
            extra={"transaction_id": document.transaction_id, "reason": reason},
        )
        raise DocumentLockedError(reason, transaction_id=document.transaction_id)


# ============================================================
# ROLLBACK / REPLAY
# ============================================================


def _rollback(footprint: DocumentFootprint) -> list[JournalEntry]:
    document = footprint.document

    with _consumed_layers_locked(document):
        costing.reverse_landed_cost(document=document)
    costing.delete_document_layers(document=document)
    costing.restore_consumption(document=document)

    return [reverse_entry(entry.id) for entry in footprint.entries]


def _replay_bill(document: SourceDocument, lines, moment: datetime) -> list[dict]:
    inventory_by_code: dict[str, int] = defaultdict(int)
    payable_total = 0
    created: list[InventoryLayer] = []

    for line in lines:
        if not line.item.is_stocked:
            continue
        created.append(
            costing.receive(
                item=line.item,
                quantity=line.quantity,
                unit_cost=line.unit_price,
                document=document,
                batch_number=line.batch_number or f"BILL-{document.pk}-{line.item.pk}",
                warehouse_code=line.warehouse_code,
                received_at=moment,
            )
        )
        inventory_by_code[line.item.inventory_account_code] += line.amount
        payable_total += line.amount

    for line in lines:
        if line.item.is_stocked or line.amount <= 0:
            continue
        targets = line.allocate_to or [layer.pk for layer in created]
        with _consumed_layers_locked(document):
            result = costing.allocate_landed_cost(
                amount=line.amount,
                layers=targets,
                method=line.method,
                document=document,
                post=False,
            )
        for posting in result.postings:
            inventory_by_code[posting["account"].code] += posting["debit"]
        payable_total += line.amount

    return posting_rules.bill_postings(
        inventory_by_code=dict(inventory_by_code),
        payable_total=payable_total,
    )


def _replay_invoice(document: SourceDocument, lines, moment: datetime) -> list[dict]:
    revenue_by_code: dict[str, int] = defaultdict(int)
    cogs_by_code: dict[str, int] = defaultdict(int)

    for line in lines:
        revenue_by_code[posting_rules.income_code_for(line.item)] += line.amount
        if not line.item.is_stocked:
            continue
        slices = costing.deplete(
            item=line.item,
            quantity=line.quantity,
            document=document,
            warehouse_code=line.warehouse_code,
            consumed_at=moment,
        )
        cogs_by_code[line.item.inventory_account_code] += costing.consumed_cost(slices)

    return posting_rules.invoice_postings(
        revenue_by_code=dict(revenue_by_code),
        cogs_by_inventory_code=dict(cogs_by_code),
    )


def _replay_adjustment(document: SourceDocument, lines, moment: datetime) -> list[dict]:
    value_by_code: dict[str, int] = defaultdict(int)

    for line in lines:
        result = costing.adjust(
            item=line.item,
            quantity_delta=line.quantity_delta,
            unit_cost=line.unit_cost,
            document=document,
            warehouse_code=line.warehouse_code,
            occurred_at=moment,
        )
        value_by_code[line.item.inventory_account_code] += result.value

    return posting_rules.adjustment_postings(value_by_code=dict(value_by_code))


def _replay(document: SourceDocument, lines, *, moment: datetime | None = None) -> JournalEntry | None:
    moment = moment or _document_moment(document)
    if document.kind == Kind.BILL:
        postings = _replay_bill(document, lines, moment)
        entry_type = JournalEntry.EntryType.TRANSACTION
    elif document.kind == Kind.INVOICE:
        postings = _replay_invoice(document, lines, moment)
        entry_type = JournalEntry.EntryType.TRANSACTION
    elif document.kind == Kind.JOURNAL:
        postings = posting_rules.journal_postings(lines)
        entry_type = JournalEntry.EntryType.TRANSACTION
    elif document.kind == Kind.ADJUSTMENT:
        postings = _replay_adjustment(document, lines, moment)
        entry_type = JournalEntry.EntryType.ADJUSTMENT
    else:
        raise InvalidDocumentLinesError(f"Unsupported document kind: {document.kind}")

    if not postings:
        return None

    entry = post_entry(
        lines=postings,
        description=f"{document.get_kind_display()} {document.number or document.pk}",
        posted_at=document.document_date,
        reference=document.number,
        transaction_id=document.transaction_id,
        entry_type=entry_type,
    )

    LandedCostAllocation.objects.filter(document=document, journal_entry__isnull=True).update(
        journal_entry=entry
    )
    return entry


def _resolve(document_or_tid) -> SourceDocument:
    if isinstance(document_or_tid, SourceDocument):
        return get_document(document_or_tid.transaction_id, for_update=True)
    return get_document(str(document_or_tid), for_update=True)


# ============================================================
# PUBLIC OPERATIONS
# ============================================================


@with_retries
@transaction.atomic
def post_for_document(document, lines) -> JournalEntry | None:
    """
    Initial posting of a document's footprint.
    Raises IdempotencyError if the document already has a live footprint.
    """
    document = _resolve(document)
    if document.is_deleted:
        raise DocumentLockedError(
            DocumentLockedError.ALREADY_DELETED, transaction_id=document.transaction_id
        )

    parsed = normalize_lines(document.kind, lines)

    if not load_footprint(document).is_empty:
        raise IdempotencyError(f"Document {document.transaction_id} is already posted")

    entry = _replay(document, parsed)

    document.lines = snapshot_lines(parsed)
    document.save(update_fields=["lines", "updated_at"])

    logger.info(
        "Document posted",
        extra={
            "transaction_id": document.transaction_id,
            "kind": document.kind,
            "journal_entry_id": getattr(entry, "id", None),
        },
    )
    return entry


@with_retries
@transaction.atomic
def edit_document(transaction_id, new_lines) -> EditResult:
    """
    Reverse the document's live footprint and replay `new_lines`, atomically.
    Raises DocumentLockedError (nothing modified) when the footprint is depended upon.
    """
    document = _resolve(transaction_id)
    footprint = load_footprint(document)
    assert_editable(footprint)

    parsed = normalize_lines(document.kind, new_lines)

    moment = _footprint_moment(footprint)
    reversals = _rollback(footprint)
    entry = _replay(document, parsed, moment=moment)

    document.lines = snapshot_lines(parsed)
    document.save(update_fields=["lines", "updated_at"])

    logger.info(
        "Document edited",
        extra={
            "transaction_id": document.transaction_id,
            "reversed": [r.reversal_of_id for r in reversals],
            "journal_entry_id": getattr(entry, "id", None),
        },
    )
    return EditResult(document=document, reversals=reversals, entry=entry)


@with_retries
@transaction.atomic
def delete_document(transaction_id) -> EditResult:
    """Reverse 100% of the document's footprint and mark it DELETED."""
    document = _resolve(transaction_id)
    footprint = load_footprint(document)
    assert_editable(footprint)

    reversals = _rollback(footprint)

    document.status = SourceDocument.Status.DELETED
    document.save(update_fields=["status", "updated_at"])

    logger.info(
        "Document deleted",
        extra={
            "transaction_id": document.transaction_id,
            "reversed": [r.reversal_of_id for r in reversals],
        },
    )
    return EditResult(document=document, reversals=reversals, entry=None)
