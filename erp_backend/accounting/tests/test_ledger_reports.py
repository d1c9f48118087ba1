# accounting/tests/test_ledger_reports.py

from __future__ import annotations

from datetime import date

from django.test import TestCase

from accounting.services.balance_service import get_account_balance, get_ledger
from accounting.services.exceptions import AccountResolutionError
from accounting.services.journal_entry_service import post_entry, reverse_entry
from accounting.services.trial_balance_service import trial_balance
from accounting.tests.factories import credit, debit, seed_accounts


class AccountLedgerTests(TestCase):
    """
    GUARANTEES:
    - Lines come back in posting order with a running balance
    - date_from folds earlier activity into the opening balance
    - include_reversals=False hides reversed pairs without breaking totals
    """

    def setUp(self):
        self.accounts = seed_accounts()
        self.first = post_entry(
            lines=[debit("1200", 1000), credit("4000", 1000)],
            description="Invoice A",
            transaction_id="invoice-a",
            posted_at=date(2026, 1, 5),
        )
        self.second = post_entry(
            lines=[debit("1200", 250), credit("4000", 250)],
            description="Invoice B",
            transaction_id="invoice-b",
            posted_at=date(2026, 1, 10),
        )
        self.third = post_entry(
            lines=[debit("4000", 100), credit("1200", 100)],
            description="Credit note",
            posted_at=date(2026, 1, 20),
        )

    def test_running_balance(self):
        ledger = get_ledger("1200")

        self.assertEqual(ledger["opening_balance"], 0)
        self.assertEqual([row["running_balance"] for row in ledger["lines"]], [1000, 1250, 1150])
        self.assertEqual(ledger["closing_balance"], 1150)
        self.assertEqual(ledger["lines"][0]["transaction_id"], "invoice-a")

    def test_date_window_uses_opening_balance(self):
        ledger = get_ledger("1200", date_from=date(2026, 1, 6), date_to=date(2026, 1, 15))

        self.assertEqual(ledger["opening_balance"], 1000)
        self.assertEqual(len(ledger["lines"]), 1)
        self.assertEqual(ledger["lines"][0]["entry_id"], self.second.id)
        self.assertEqual(ledger["closing_balance"], 1250)

    def test_reversed_pairs_can_be_hidden(self):
        reverse_entry(self.second.id, posted_at=date(2026, 1, 25))

        full = get_ledger("1200")
        hidden = get_ledger("1200", include_reversals=False)

        self.assertEqual(len(full["lines"]), 4)
        self.assertEqual(len(hidden["lines"]), 2)
        self.assertEqual(full["closing_balance"], 900)
        self.assertEqual(hidden["closing_balance"], 900)

    def test_unknown_account(self):
        with self.assertRaises(AccountResolutionError):
            get_ledger("0000")

    def test_normal_side_balance(self):
        self.assertEqual(get_account_balance(self.accounts["1200"]), 1150)
        self.assertEqual(get_account_balance(self.accounts["4000"]), 1150)


class TrialBalanceTests(TestCase):
    def setUp(self):
        seed_accounts()
        post_entry(
            lines=[debit("1340", 5000), credit("2100", 5000)],
            description="Bill 1",
            posted_at=date(2026, 2, 1),
        )
        post_entry(
            lines=[
                debit("1200", 3000),
                credit("4000", 3000),
                debit("5000", 2000),
                credit("1340", 2000),
            ],
            description="Invoice 1",
            posted_at=date(2026, 2, 3),
        )

    def test_totals_balance(self):
        data = trial_balance(as_of=date(2026, 2, 28))

        self.assertTrue(data["totals"]["balanced"])
        self.assertEqual(data["totals"]["debit"], 10000)
        self.assertEqual(data["totals"]["credit"], 10000)

        by_code = {row["account_code"]: row for row in data["accounts"]}
        self.assertEqual(by_code["1340"]["balance"], 3000)
        self.assertEqual(by_code["2100"]["balance"], -5000)

    def test_as_of_cutoff(self):
        data = trial_balance(as_of=date(2026, 2, 1))

        self.assertEqual([row["account_code"] for row in data["accounts"]], ["1340", "2100"])
        self.assertEqual(data["as_of"], "2026-02-01")
