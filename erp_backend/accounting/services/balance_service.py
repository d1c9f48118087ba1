# accounting/services/balance_service.py

"""
BALANCE & LEDGER READ SERVICE (AUTHORITATIVE)

Read-only ledger aggregation helpers.

RULES:
- READ-ONLY: no writes, ever
- JournalEntryLine is the single source of truth (Account.balance is a cache)
- Accounting timeline uses JournalEntry.posted_at
- Only POSTED journals count (entry__is_posted=True)
- Ledger order is (posted_at, entry id, line id)
"""

from __future__ import annotations

from datetime import date

from django.db.models import Sum

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.services.account_resolver import get_account_by_code


def _posted_lines(*, as_of: date | None = None):
    qs = JournalEntryLine.objects.filter(entry__is_posted=True)
    if as_of is not None:
        qs = qs.filter(entry__posted_at__lte=as_of)
    return qs


def ledger_totals(*, account_ids=None, as_of: date | None = None) -> dict[int, tuple[int, int]]:
    """account_id -> (debit_total, credit_total) from posted lines."""
    qs = _posted_lines(as_of=as_of)
    if account_ids is not None:
        qs = qs.filter(account_id__in=list(account_ids))

    rows = qs.values("account_id").annotate(
        debit_total=Sum("debit", default=0),
        credit_total=Sum("credit", default=0),
    )
    return {r["account_id"]: (int(r["debit_total"]), int(r["credit_total"])) for r in rows}


def ledger_balances(*, account_ids=None, as_of: date | None = None) -> dict[int, int]:
    """account_id -> sum(debit) - sum(credit). Accounts without lines are omitted."""
    return {
        account_id: debit - credit
        for account_id, (debit, credit) in ledger_totals(account_ids=account_ids, as_of=as_of).items()
    }


def get_ledger_balance(account: Account, *, as_of: date | None = None) -> int:
    """Signed ledger truth for one account (debit-positive)."""
    return ledger_balances(account_ids=[account.pk], as_of=as_of).get(account.pk, 0)


def get_account_balance(account: Account, *, as_of: date | None = None) -> int:
    """
    Balance in the account's normal direction:
    - Assets & Expenses -> debits - credits
    - Liabilities, Equity & Revenue -> credits - debits
    """
    signed = get_ledger_balance(account, as_of=as_of)
    return signed if account.is_debit_normal else -signed


def get_ledger(
    account_code: str,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    include_reversals: bool = True,
) -> dict:
    """
    Per-account ledger with running balance.

    - opening_balance covers every posted line dated before date_from
    - include_reversals=False hides reversed entries together with their
      reversals (each pair nets to zero, so the running balance still agrees)

    Raises AccountResolutionError for unknown codes.
    """
    account = get_account_by_code(account_code, active_only=False)

    opening = 0
    if date_from is not None:
        before = (
            JournalEntryLine.objects.filter(
                account=account,
                entry__is_posted=True,
                entry__posted_at__lt=date_from,
            ).aggregate(d=Sum("debit", default=0), c=Sum("credit", default=0))
        )
        opening = int(before["d"]) - int(before["c"])

    qs = (
        JournalEntryLine.objects.filter(account=account, entry__is_posted=True)
        .select_related("entry")
        .order_by("entry__posted_at", "entry_id", "id")
    )
    if date_from is not None:
        qs = qs.filter(entry__posted_at__gte=date_from)
    if date_to is not None:
        qs = qs.filter(entry__posted_at__lte=date_to)
    if not include_reversals:
        qs = qs.exclude(entry__entry_type=JournalEntry.EntryType.REVERSAL).filter(
            entry__reversals__isnull=True
        )

    running = opening
    rows = []
    for line in qs:
        running += int(line.debit) - int(line.credit)
        entry = line.entry
        rows.append(
            {
                "line_id": line.id,
                "entry_id": entry.id,
                "posted_at": entry.posted_at,
                "reference": entry.reference,
                "transaction_id": entry.transaction_id,
                "entry_type": entry.entry_type,
                "description": line.description or entry.description,
                "debit": int(line.debit),
                "credit": int(line.credit),
                "running_balance": running,
            }
        )

    return {
        "account_code": account.code,
        "account_name": account.name,
        "account_type": account.account_type,
        "opening_balance": opening,
        "closing_balance": running,
        "lines": rows,
    }
