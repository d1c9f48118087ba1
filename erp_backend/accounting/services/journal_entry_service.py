# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (LEDGER ENGINE)

This module is the ONLY place allowed to:
- Create JournalEntry / JournalEntryLine
- Enforce debit == credit
- Enforce period locks (no posting into closed periods)
- Move Account.balance (cached) in the same transaction as the lines
- Reverse entries (swap sides, link reversal_of)

Everything else (documents, costing, reconciliation) must pass through here.

Amounts are integer minor units. Lines hitting the same account on the same
side are grouped into one line per entry.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.services.account_resolver import get_account_by_code
from accounting.services.exceptions import (
    EntryAlreadyReversedError,
    EntryNotFoundError,
    ImbalancedEntryError,
    JournalEntryCreationError,
)
from accounting.services.period_lock import assert_period_open
from accounting.services.store_errors import translate_store_errors

logger = logging.getLogger("ledger")

EntryType = JournalEntry.EntryType


# ============================================================
# NORMALIZERS
# ============================================================


def _to_minor(value) -> int:
    """
    Money normalizer.
    HARD RULE: amounts are whole minor units (no fractions).
    """
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise JournalEntryCreationError("Amount must be an integer number of minor units")

    if isinstance(value, int):
        return value

    if isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise JournalEntryCreationError(f"Amount must be whole minor units: {value!r}")
        return int(value)

    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError as exc:
            raise JournalEntryCreationError(f"Invalid amount: {value!r}") from exc

    raise JournalEntryCreationError(f"Invalid amount: {value!r}")


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            value = timezone.make_aware(value, timezone.get_current_timezone())
        return timezone.localtime(value).date()
    return value


def reversal_transaction_id(entry: JournalEntry) -> str:
    suffix = getattr(settings, "LEDGER_REVERSAL_SUFFIX", "-reversal")
    base = entry.transaction_id or f"je-{entry.id}"
    return f"{base}{suffix}"


def _resolve_line_account(line: dict) -> Account:
    account = line.get("account")
    if account is None:
        code = line.get("account_code")
        if not code:
            raise JournalEntryCreationError("Posting missing account")
        account = get_account_by_code(code, active_only=False)

    if not getattr(account, "is_active", True):
        raise JournalEntryCreationError(
            f"Account {getattr(account, 'code', 'UNKNOWN')} is inactive"
        )
    return account


def group_postings(postings: list) -> list[dict]:
    """
    Validate raw posting dicts and collapse them to one line per account per side.

    Input lines: {"account" | "account_code", "debit", "credit", "description"?}
    Order of first appearance is preserved.
    """
    grouped: dict[tuple[int, str], dict] = {}

    for line in postings:
        if not isinstance(line, dict):
            raise JournalEntryCreationError("Each posting must be an object/dict")

        account = _resolve_line_account(line)
        debit = _to_minor(line.get("debit"))
        credit = _to_minor(line.get("credit"))

        if debit < 0 or credit < 0:
            raise JournalEntryCreationError("Debit or credit cannot be negative")

        if debit > 0 and credit > 0:
            raise JournalEntryCreationError("A posting cannot have both debit and credit")

        if debit == 0 and credit == 0:
            raise JournalEntryCreationError("A posting must have either debit or credit")

        side = "D" if debit > 0 else "C"
        key = (account.pk, side)
        bucket = grouped.get(key)
        if bucket is None:
            grouped[key] = {
                "account": account,
                "debit": debit,
                "credit": credit,
                "description": str(line.get("description") or "").strip()[:255],
            }
        else:
            bucket["debit"] += debit
            bucket["credit"] += credit

    return list(grouped.values())


# ============================================================
# CORE WRITE PATH
# ============================================================


def _write_entry(
    *,
    postings: list,
    description: str,
    posted_at: date,
    reference: str,
    transaction_id: str,
    entry_type: str,
    reversal_of: JournalEntry | None = None,
) -> JournalEntry:
    if not postings:
        raise JournalEntryCreationError("Journal entry must contain at least one posting")

    description = (description or "").strip()
    if not description:
        raise JournalEntryCreationError("Journal entry description is required")

    lines = group_postings(postings)

    total_debits = sum(line["debit"] for line in lines)
    total_credits = sum(line["credit"] for line in lines)

    if total_debits == 0 or total_credits == 0:
        raise JournalEntryCreationError("Journal entry needs at least one debit and one credit")

    if total_debits != total_credits:
        raise ImbalancedEntryError(
            f"Journal entry not balanced: debits={total_debits} credits={total_credits}"
        )

    # Period lock enforcement (engine choke-point)
    assert_period_open(posted_at=posted_at)

    try:
        entry = JournalEntry.objects.create(
            description=description,
            reference=reference or "",
            transaction_id=transaction_id or "",
            posted_at=posted_at,
            entry_type=entry_type,
            reversal_of=reversal_of,
            is_posted=True,
        )
    except (IntegrityError, ValidationError) as exc:
        if reversal_of is not None:
            raise EntryAlreadyReversedError(
                f"Journal entry {reversal_of.id} is already reversed"
            ) from exc
        raise JournalEntryCreationError(f"Failed to create journal entry: {exc}") from exc

    JournalEntryLine.objects.bulk_create(
        [
            JournalEntryLine(
                entry=entry,
                account=line["account"],
                debit=line["debit"],
                credit=line["credit"],
                description=line["description"],
            )
            for line in lines
        ]
    )

    # Cached balances move with the lines (same transaction).
    delta_by_account: dict[int, int] = defaultdict(int)
    for line in lines:
        delta_by_account[line["account"].pk] += line["debit"] - line["credit"]

    for account_id in sorted(delta_by_account):
        delta = delta_by_account[account_id]
        if delta:
            Account.objects.filter(pk=account_id).update(balance=F("balance") + delta)

    logger.info(
        "Journal entry posted",
        extra={
            "journal_entry_id": entry.id,
            "transaction_id": entry.transaction_id,
            "entry_type": entry.entry_type,
            "amount": total_debits,
            "lines": len(lines),
        },
    )
    return entry


@transaction.atomic
def post_entry(
    *,
    lines: list,
    description: str,
    posted_at: date | datetime | None = None,
    reference: str = "",
    transaction_id: str = "",
    entry_type: str = EntryType.TRANSACTION,
) -> JournalEntry:
    """
    Post one balanced journal entry (header + lines) atomically.

    Raises:
        ImbalancedEntryError: debits != credits (nothing written)
        PeriodLockedError: posted_at inside a closed period
        JournalEntryCreationError: malformed lines / inactive account
        AccountResolutionError: unknown account code
        TransientStoreError: deadlock / lock timeout
    """
    if entry_type not in (EntryType.TRANSACTION, EntryType.ADJUSTMENT):
        raise JournalEntryCreationError(
            f"post_entry cannot create {entry_type} entries; use the dedicated operation"
        )

    with translate_store_errors("post_entry"):
        return _write_entry(
            postings=lines,
            description=description,
            posted_at=_as_date(posted_at),
            reference=reference,
            transaction_id=transaction_id,
            entry_type=entry_type,
        )


@transaction.atomic
def reverse_entry(
    entry_id: int,
    *,
    posted_at: date | datetime | None = None,
    description: str | None = None,
) -> JournalEntry:
    """
    Post the mirror image of an entry (debits and credits swapped).

    The original stays untouched; the reversal links back via reversal_of and
    carries transaction_id "<original><LEDGER_REVERSAL_SUFFIX>".
    Reversals are dated today unless posted_at is given.
    """
    with translate_store_errors("reverse_entry"):
        try:
            original = JournalEntry.objects.select_for_update().get(pk=entry_id)
        except JournalEntry.DoesNotExist as exc:
            raise EntryNotFoundError(f"Journal entry {entry_id} not found") from exc

        if original.entry_type == EntryType.REVERSAL:
            raise EntryAlreadyReversedError(
                f"Journal entry {original.id} is itself a reversal and cannot be reversed"
            )

        if original.entry_type == EntryType.RESYNC:
            raise JournalEntryCreationError(
                f"Journal entry {original.id} is a balance resync and cannot be reversed"
            )

        if JournalEntry.objects.filter(reversal_of=original).exists():
            raise EntryAlreadyReversedError(f"Journal entry {original.id} is already reversed")

        swapped = [
            {
                "account": line.account,
                "debit": line.credit,
                "credit": line.debit,
                "description": line.description,
            }
            for line in original.lines.select_related("account").order_by("id")
        ]

        reversal = _write_entry(
            postings=swapped,
            description=description or f"Reversal of journal entry #{original.id}: {original.description}",
            posted_at=_as_date(posted_at),
            reference=original.reference,
            transaction_id=reversal_transaction_id(original),
            entry_type=EntryType.REVERSAL,
            reversal_of=original,
        )

    logger.info(
        "Journal entry reversed",
        extra={"journal_entry_id": original.id, "reversal_id": reversal.id},
    )
    return reversal


# ============================================================
# TRANSACTION FOOTPRINT READS
# ============================================================


def get_transaction_entries(transaction_id: str, *, include_reversals: bool = True):
    """
    GL impact of a source document: every entry posted under transaction_id
    (and, by default, the reversals derived from it), lines prefetched.
    """
    transaction_id = (transaction_id or "").strip()
    ids = [transaction_id]
    if include_reversals:
        suffix = getattr(settings, "LEDGER_REVERSAL_SUFFIX", "-reversal")
        ids.append(f"{transaction_id}{suffix}")

    return (
        JournalEntry.objects.filter(transaction_id__in=ids, is_posted=True)
        .prefetch_related("lines__account")
        .order_by("posted_at", "id")
    )


def live_entries_for_transaction(transaction_id: str):
    """Entries for transaction_id that have not been reversed (current GL footprint)."""
    return (
        JournalEntry.objects.filter(
            transaction_id=(transaction_id or "").strip(),
            is_posted=True,
            reversals__isnull=True,
        )
        .exclude(entry_type__in=[EntryType.REVERSAL, EntryType.RESYNC])
        .prefetch_related("lines__account")
        .order_by("id")
    )


# ============================================================
# BALANCE RESYNC (reconciliation corrections)
# ============================================================


@transaction.atomic
def resync_account_balances(
    *,
    discrepancies: list,
    run_id,
    posted_at: date | datetime | None = None,
) -> JournalEntry:
    """
    Record a RESYNC entry and reset each flagged account's cached balance to
    ledger truth, linking the discrepancies to the entry.

    The RESYNC entry carries no lines: ledger truth and the trial balance are
    unchanged; only the cache moves.
    """
    from accounting.services.balance_service import ledger_balances

    discrepancies = list(discrepancies)
    if not discrepancies:
        raise JournalEntryCreationError("No discrepancies to resync")

    posted_date = _as_date(posted_at)

    with translate_store_errors("resync_account_balances"):
        assert_period_open(posted_at=posted_date)

        account_ids = sorted({d.account_id for d in discrepancies})
        list(Account.objects.select_for_update().filter(pk__in=account_ids).order_by("pk"))

        entry = JournalEntry.objects.create(
            description=f"Cached balance resync ({len(account_ids)} accounts)",
            reference=str(run_id),
            transaction_id=f"reconciliation-{run_id}",
            posted_at=posted_date,
            entry_type=EntryType.RESYNC,
            is_posted=True,
        )

        truth = ledger_balances(account_ids=account_ids)
        for account_id in account_ids:
            Account.objects.filter(pk=account_id).update(balance=truth.get(account_id, 0))

        for d in discrepancies:
            d.corrected_by = entry
            d.save(update_fields=["corrected_by"])

    logger.info(
        "Cached balances resynced",
        extra={"journal_entry_id": entry.id, "accounts": account_ids, "run_id": str(run_id)},
    )
    return entry
