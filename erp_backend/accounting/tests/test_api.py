# accounting/tests/test_api.py

from __future__ import annotations

from datetime import date

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.db.models import F
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account, BalanceDiscrepancy
from accounting.services.journal_entry_service import post_entry
from accounting.tests.factories import credit, debit, seed_accounts

User = get_user_model()


class AccountingApiTests(TestCase):
    """
    GUARANTEES:
    - Every report endpoint requires authentication
    - Query parameters are validated (400 on bad input)
    - The reconciliation endpoint has no side effects
    """

    def setUp(self):
        seed_accounts()
        self.user = User.objects.create_user(username="auditor", password="pass12345")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.entry = post_entry(
            lines=[debit("1200", 700), credit("4000", 700)],
            description="Invoice 9",
            transaction_id="invoice-9",
            posted_at=date(2026, 3, 2),
        )

    def test_anonymous_is_rejected(self):
        response = APIClient().get("/api/accounting/trial-balance/")
        self.assertIn(response.status_code, (401, 403))

    def test_health_is_public(self):
        response = APIClient().get("/api/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["db"], "ok")

    def test_account_ledger(self):
        response = self.client.get("/api/accounting/accounts/1200/ledger/", {"date_from": "2026-03-01"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["account_code"], "1200")
        self.assertEqual(body["closing_balance"], 700)
        self.assertEqual(body["lines"][0]["transaction_id"], "invoice-9")

    def test_account_ledger_unknown_code(self):
        response = self.client.get("/api/accounting/accounts/0000/ledger/")
        self.assertEqual(response.status_code, 404)

    def test_account_ledger_bad_date(self):
        response = self.client.get("/api/accounting/accounts/1200/ledger/", {"date_from": "03/01/2026"})
        self.assertEqual(response.status_code, 400)

    def test_account_ledger_inverted_range(self):
        response = self.client.get(
            "/api/accounting/accounts/1200/ledger/",
            {"date_from": "2026-03-10", "date_to": "2026-03-01"},
        )
        self.assertEqual(response.status_code, 400)

    def test_trial_balance(self):
        response = self.client.get("/api/accounting/trial-balance/", {"as_of": "2026-03-31"})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["totals"]["balanced"])
        self.assertEqual(response.json()["totals"]["debit"], 700)

    def test_reconciliation_report_has_no_side_effects(self):
        Account.objects.filter(code="1200").update(balance=F("balance") + 1)

        response = self.client.get("/api/accounting/reconciliation/")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["clean"])
        self.assertEqual(body["discrepancies"][0]["delta"], 1)
        self.assertIsNone(body["correction_entry_id"])
        self.assertEqual(BalanceDiscrepancy.objects.count(), 0)

    def test_accounts_list(self):
        response = self.client.get("/api/accounting/accounts/")

        self.assertEqual(response.status_code, 200)
        codes = [row["code"] for row in response.json()]
        self.assertIn("1200", codes)
        self.assertEqual(codes, sorted(codes))

    def test_journal_entries_require_permission(self):
        response = self.client.get("/api/accounting/journal-entries/")
        self.assertEqual(response.status_code, 403)

    def test_journal_entries_filter_by_transaction(self):
        self.user.user_permissions.add(Permission.objects.get(codename="view_journalentry"))
        post_entry(lines=[debit("1200", 5), credit("4000", 5)], description="Other", transaction_id="invoice-10")

        client = APIClient()
        client.force_authenticate(user=User.objects.get(pk=self.user.pk))
        response = client.get("/api/accounting/journal-entries/", {"transaction_id": "invoice-9"})

        self.assertEqual(response.status_code, 200)
        rows = response.json()
        self.assertEqual([row["id"] for row in rows], [self.entry.id])
        self.assertEqual(len(rows[0]["lines"]), 2)
