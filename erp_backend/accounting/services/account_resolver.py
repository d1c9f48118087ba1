# accounting/services/account_resolver.py

"""
PATH: accounting/services/account_resolver.py

ACCOUNT RESOLVER (AUTHORITATIVE)

This module answers ONE question:
"Which account should be used for this purpose?"

Semantic keys (ACCOUNTS_PAYABLE, COGS, ...) map to account codes through
settings.LEDGER_ACCOUNT_CODES. Item classifications map to inventory asset
accounts through settings.INVENTORY_CLASS_ACCOUNTS.

Design goals:
- deterministic
- hard-fail on missing setup (so we don't post to wrong accounts)
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist

from accounting.models.account import Account
from accounting.services.exceptions import AccountResolutionError


# ------------------------------------------------------------
# CODE RESOLUTION
# ------------------------------------------------------------


def resolve_code(semantic_key: str) -> str:
    semantic_key = (semantic_key or "").strip().upper()
    if not semantic_key:
        raise AccountResolutionError("semantic_key is required")

    codes = getattr(settings, "LEDGER_ACCOUNT_CODES", {}) or {}
    code = str(codes.get(semantic_key) or "").strip()
    if not code:
        raise AccountResolutionError(
            f"Missing mapping for semantic key '{semantic_key}'. "
            "Add it to LEDGER_ACCOUNT_CODES."
        )
    return code


def inventory_class_codes() -> dict[str, str]:
    mapping = getattr(settings, "INVENTORY_CLASS_ACCOUNTS", {}) or {}
    return {str(k).upper(): str(v).strip() for k, v in mapping.items() if v}


# ------------------------------------------------------------
# ACCOUNT LOOKUP
# ------------------------------------------------------------


def get_account_by_code(code: str, *, active_only: bool = True) -> Account:
    code = (code or "").strip()
    if not code:
        raise AccountResolutionError("Account code is required")

    qs = Account.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)

    try:
        return qs.get(code=code)
    except ObjectDoesNotExist as exc:
        raise AccountResolutionError(
            f"Account with code={code} not found (or inactive). "
            "Create the account and ensure is_active=True."
        ) from exc


def get_account(semantic_key: str) -> Account:
    return get_account_by_code(resolve_code(semantic_key))


# ------------------------------------------------------------
# PUBLIC RESOLVERS
# ------------------------------------------------------------


def get_accounts_receivable_account() -> Account:
    return get_account("ACCOUNTS_RECEIVABLE")


def get_accounts_payable_account() -> Account:
    return get_account("ACCOUNTS_PAYABLE")



def get_cogs_account() -> Account:
    return get_account("COGS")


def get_inventory_adjustment_account() -> Account:
    return get_account("INVENTORY_ADJUSTMENT")


def get_landed_cost_clearing_account() -> Account:
    return get_account("LANDED_COST_CLEARING")
