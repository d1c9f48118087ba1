# accounting/services/trial_balance_service.py

from __future__ import annotations

from datetime import date

from django.utils import timezone

from accounting.models.account import Account
from accounting.services.balance_service import ledger_totals


class TrialBalanceService:
    """
    Trial Balance computation service.

    Guarantees:
    - Uses POSTED journal_entry.posted_at as accounting timeline
    - Avoids N+1 queries by aggregating in bulk
    - Integer minor units throughout
    - Accounts without activity are skipped
    """

    def __init__(self, account_model=Account):
        self.Account = account_model

    def generate(self, *, as_of: date | None = None) -> dict:
        cutoff = as_of or timezone.localdate()

        totals = ledger_totals(as_of=cutoff)
        accounts = list(
            self.Account.objects.filter(pk__in=list(totals.keys()))
            .only("id", "code", "name", "account_type")
            .order_by("code")
        )

        accounts_output = []
        total_debit = 0
        total_credit = 0

        for acc in accounts:
            debit, credit = totals.get(acc.id, (0, 0))
            if debit == 0 and credit == 0:
                continue

            accounts_output.append(
                {
                    "account_id": acc.id,
                    "account_code": acc.code,
                    "account_name": acc.name,
                    "account_type": acc.account_type,
                    "debit": debit,
                    "credit": credit,
                    "balance": debit - credit,
                }
            )

            total_debit += debit
            total_credit += credit

        return {
            "as_of": cutoff.isoformat(),
            "accounts": accounts_output,
            "totals": {
                "debit": total_debit,
                "credit": total_credit,
                "balanced": total_debit == total_credit,
            },
        }


def trial_balance(*, as_of: date | None = None) -> dict:
    return TrialBalanceService().generate(as_of=as_of)
