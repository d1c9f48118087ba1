# documents/services/posting_rules.py

"""
POSTING RULES — SOURCE DOCUMENTS (AUTHORITATIVE)

Defines HOW a costed document maps to accounting intent.

RESPONSIBILITIES:
- Resolve semantic accounts
- Construct debit / credit postings

THIS MODULE DOES NOT:
- Write to the database
- Create JournalEntry directly
- Enforce debit == credit math (the ledger engine does)
"""

from __future__ import annotations

from accounting.services.account_resolver import (
    get_account_by_code,
    get_accounts_payable_account,
    get_accounts_receivable_account,
    get_cogs_account,
    get_inventory_adjustment_account,
    resolve_code,
)


def _debit(account, amount: int, description: str = "") -> dict:
    return {"account": account, "debit": amount, "credit": 0, "description": description}


def _credit(account, amount: int, description: str = "") -> dict:
    return {"account": account, "debit": 0, "credit": amount, "description": description}


def bill_postings(*, inventory_by_code: dict[str, int], payable_total: int) -> list[dict]:
    """
    VENDOR BILL
    - Debit  Inventory asset accounts (grouped by code)
    - Credit Accounts Payable (bill total)
    """
    postings = [
        _debit(get_account_by_code(code), amount, "Inventory received")
        for code, amount in inventory_by_code.items()
        if amount > 0
    ]
    if payable_total > 0:
        postings.append(_credit(get_accounts_payable_account(), payable_total, "Accounts payable"))
    return postings


def invoice_postings(
    *,
    revenue_by_code: dict[str, int],
    cogs_by_inventory_code: dict[str, int],
) -> list[dict]:
    """
    CUSTOMER INVOICE
    - Debit  Accounts Receivable  / Credit Revenue (grouped by income account)
    - Debit  COGS                 / Credit Inventory (grouped, at FIFO cost)
    """
    postings: list[dict] = []

    receivable = sum(v for v in revenue_by_code.values() if v > 0)
    if receivable > 0:
        postings.append(_debit(get_accounts_receivable_account(), receivable, "Accounts receivable"))
        for code, amount in revenue_by_code.items():
            if amount > 0:
                postings.append(_credit(get_account_by_code(code), amount, "Sales revenue"))

    cogs = sum(v for v in cogs_by_inventory_code.values() if v > 0)
    if cogs > 0:
        postings.append(_debit(get_cogs_account(), cogs, "Cost of goods sold"))
        for code, amount in cogs_by_inventory_code.items():
            if amount > 0:
                postings.append(_credit(get_account_by_code(code), amount, "Inventory consumed"))

    return postings


def journal_postings(lines) -> list[dict]:
    """MANUAL JOURNAL: lines already are account postings."""
    return [
        {
            "account_code": line.account_code,
            "debit": line.debit,
            "credit": line.credit,
            "description": line.description,
        }
        for line in lines
    ]


def adjustment_postings(*, value_by_code: dict[str, int]) -> list[dict]:
    """
    STOCK ADJUSTMENT (signed value per inventory account)
    - gain: Debit Inventory / Credit Inventory Adjustment
    - loss: Debit Inventory Adjustment / Credit Inventory
    """
    adjustment_account = None
    postings: list[dict] = []

    for code, value in value_by_code.items():
        if value == 0:
            continue
        if adjustment_account is None:
            adjustment_account = get_inventory_adjustment_account()

        inventory_account = get_account_by_code(code)
        if value > 0:
            postings.append(_debit(inventory_account, value, "Stock adjustment gain"))
            postings.append(_credit(adjustment_account, value, "Stock adjustment gain"))
        else:
            postings.append(_debit(adjustment_account, -value, "Stock adjustment loss"))
            postings.append(_credit(inventory_account, -value, "Stock adjustment loss"))

    return postings


def income_code_for(item) -> str:
    return item.income_account_code or resolve_code("SALES_REVENUE")
