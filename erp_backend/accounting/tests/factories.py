# accounting/tests/factories.py

from __future__ import annotations

from io import StringIO

from django.core.management import call_command

from accounting.models.account import Account


def seed_accounts() -> dict[str, Account]:
    """Seed the configured chart and return it keyed by code."""
    call_command("seed_chart_of_accounts", stdout=StringIO())
    return {a.code: a for a in Account.objects.all()}


def debit(code: str, amount: int, description: str = "") -> dict:
    return {"account_code": code, "debit": amount, "credit": 0, "description": description}


def credit(code: str, amount: int, description: str = "") -> dict:
    return {"account_code": code, "debit": 0, "credit": amount, "description": description}


def balance_of(code: str) -> int:
    return int(Account.objects.get(code=code).balance)
