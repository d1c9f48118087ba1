# accounting/tests/test_journal_engine.py

from __future__ import annotations

from datetime import date, timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.utils import timezone

from accounting.models import JournalEntry, JournalEntryLine
from accounting.services.exceptions import (
    AccountResolutionError,
    EntryAlreadyReversedError,
    EntryNotFoundError,
    ImbalancedEntryError,
    JournalEntryCreationError,
    PeriodLockedError,
)
from accounting.services.journal_entry_service import (
    get_transaction_entries,
    live_entries_for_transaction,
    post_entry,
    reverse_entry,
)
from accounting.services.period_lock import close_period, is_period_locked
from accounting.tests.factories import balance_of, credit, debit, seed_accounts


class JournalPostingTests(TestCase):
    """
    GUARANTEES:
    - Only balanced entries are written
    - Cached balances move with the lines, in the same transaction
    - Lines for the same account and side collapse into one
    """

    def setUp(self):
        self.accounts = seed_accounts()

    def test_balanced_entry_updates_cached_balances(self):
        entry = post_entry(
            lines=[debit("1200", 500), credit("4000", 500)],
            description="Invoice 1",
            transaction_id="invoice-1",
        )

        self.assertEqual(entry.entry_type, JournalEntry.EntryType.TRANSACTION)
        self.assertEqual(entry.lines.count(), 2)
        self.assertEqual(balance_of("1200"), 500)
        self.assertEqual(balance_of("4000"), -500)

    def test_imbalanced_entry_writes_nothing(self):
        with self.assertRaises(ImbalancedEntryError):
            post_entry(
                lines=[debit("1200", 500), credit("4000", 499)],
                description="Broken",
            )

        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(JournalEntryLine.objects.count(), 0)
        self.assertEqual(balance_of("1200"), 0)

    def test_same_account_lines_are_grouped(self):
        entry = post_entry(
            lines=[
                debit("1340", 300),
                debit("1340", 200),
                credit("2100", 500),
            ],
            description="Bill with two lines",
        )

        lines = list(entry.lines.order_by("id"))
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[0].account.code, "1340")
        self.assertEqual(lines[0].debit, 500)
        self.assertEqual(balance_of("1340"), 500)

    def test_line_with_both_sides_is_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            post_entry(
                lines=[
                    {"account_code": "1200", "debit": 10, "credit": 10},
                    credit("4000", 0),
                ],
                description="Invalid",
            )

    def test_debit_only_entry_is_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            post_entry(lines=[debit("1200", 10)], description="One-sided")

    def test_unknown_account_code(self):
        with self.assertRaises(AccountResolutionError):
            post_entry(lines=[debit("0000", 10), credit("4000", 10)], description="Unknown")

    def test_inactive_account_is_rejected(self):
        account = self.accounts["4000"]
        account.is_active = False
        account.save()

        with self.assertRaises(JournalEntryCreationError):
            post_entry(lines=[debit("1200", 10), credit("4000", 10)], description="Inactive")

    def test_post_entry_cannot_create_reversals(self):
        with self.assertRaises(JournalEntryCreationError):
            post_entry(
                lines=[debit("1200", 10), credit("4000", 10)],
                description="Sneaky",
                entry_type=JournalEntry.EntryType.REVERSAL,
            )

    def test_entries_are_immutable(self):
        entry = post_entry(lines=[debit("1200", 10), credit("4000", 10)], description="Fixed")

        entry.description = "Changed"
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()
        with self.assertRaises(ValidationError):
            entry.lines.first().delete()


class PeriodLockTests(TestCase):
    def setUp(self):
        seed_accounts()
        self.today = timezone.localdate()

    def test_posting_into_closed_period_is_rejected(self):
        close_period(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))

        self.assertTrue(is_period_locked(date(2025, 1, 15)))
        with self.assertRaises(PeriodLockedError):
            post_entry(
                lines=[debit("1200", 10), credit("4000", 10)],
                description="Late",
                posted_at=date(2025, 1, 15),
            )
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_posting_outside_closed_period_is_allowed(self):
        close_period(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))

        entry = post_entry(
            lines=[debit("1200", 10), credit("4000", 10)],
            description="February",
            posted_at=date(2025, 2, 1),
        )
        self.assertEqual(entry.posted_at, date(2025, 2, 1))

    def test_reversal_into_closed_period_is_rejected(self):
        entry = post_entry(
            lines=[debit("1200", 10), credit("4000", 10)],
            description="Yesterday",
            posted_at=self.today - timedelta(days=1),
        )
        close_period(start_date=self.today - timedelta(days=1), end_date=self.today)

        with self.assertRaises(PeriodLockedError):
            reverse_entry(entry.id)


class ReversalTests(TestCase):
    """
    GUARANTEES:
    - A reversal is the exact mirror of the original and links back to it
    - An entry is reversed at most once
    - Reversals themselves cannot be reversed
    """

    def setUp(self):
        seed_accounts()
        self.entry = post_entry(
            lines=[debit("1200", 1500), credit("4000", 1500)],
            description="Invoice 7",
            transaction_id="invoice-7",
            posted_at=timezone.localdate() - timedelta(days=3),
        )

    def test_reversal_mirrors_original(self):
        reversal = reverse_entry(self.entry.id)

        self.assertEqual(reversal.entry_type, JournalEntry.EntryType.REVERSAL)
        self.assertEqual(reversal.reversal_of_id, self.entry.id)
        self.assertEqual(reversal.transaction_id, "invoice-7-reversal")
        self.assertEqual(reversal.posted_at, timezone.localdate())

        swapped = {(line.account.code, line.debit, line.credit) for line in reversal.lines.all()}
        self.assertEqual(swapped, {("1200", 0, 1500), ("4000", 1500, 0)})

        self.assertEqual(balance_of("1200"), 0)
        self.assertEqual(balance_of("4000"), 0)

    @override_settings(LEDGER_REVERSAL_SUFFIX="/rev")
    def test_reversal_suffix_is_configurable(self):
        reversal = reverse_entry(self.entry.id)
        self.assertEqual(reversal.transaction_id, "invoice-7/rev")

    def test_double_reversal_is_rejected(self):
        reverse_entry(self.entry.id)

        with self.assertRaises(EntryAlreadyReversedError):
            reverse_entry(self.entry.id)

        self.assertEqual(JournalEntry.objects.filter(reversal_of=self.entry).count(), 1)

    def test_reversal_of_reversal_is_rejected(self):
        reversal = reverse_entry(self.entry.id)

        with self.assertRaises(EntryAlreadyReversedError):
            reverse_entry(reversal.id)

    def test_missing_entry(self):
        with self.assertRaises(EntryNotFoundError):
            reverse_entry(999999)

    def test_transaction_footprint_reads(self):
        self.assertEqual(list(live_entries_for_transaction("invoice-7")), [self.entry])

        reversal = reverse_entry(self.entry.id)

        self.assertEqual(list(live_entries_for_transaction("invoice-7")), [])
        self.assertEqual(
            [e.id for e in get_transaction_entries("invoice-7")],
            [self.entry.id, reversal.id],
        )
        self.assertEqual(
            [e.id for e in get_transaction_entries("invoice-7", include_reversals=False)],
            [self.entry.id],
        )
