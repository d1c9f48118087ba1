# documents/tests/test_editor.py

from __future__ import annotations

from django.db.models import Sum
from django.test import TestCase, override_settings

from accounting.models import JournalEntry, JournalEntryLine
from accounting.services.exceptions import IdempotencyError, RetryableError, TransientStoreError
from accounting.services.journal_entry_service import post_entry
from accounting.services.reconciliation_service import recompute_inventory_valuation, run_reconciliation
from accounting.tests.factories import balance_of, credit, debit, seed_accounts
from documents.models import SourceDocument
from documents.services.editor import (
    delete_document,
    edit_document,
    load_footprint,
    post_for_document,
    with_retries,
)
from documents.services.exceptions import (
    DocumentLockedError,
    DocumentNotFoundError,
    InvalidDocumentLinesError,
)
from inventory.models import InventoryLayer, Item, LandedCostAllocation, LayerConsumption
from inventory.services import costing
from inventory.services.exceptions import InsufficientInventoryError
from inventory.tests.factories import make_item


def _grand_totals() -> tuple[int, int]:
    totals = JournalEntryLine.objects.aggregate(d=Sum("debit", default=0), c=Sum("credit", default=0))
    return int(totals["d"]), int(totals["c"])


class EditorTestCase(TestCase):
    def setUp(self):
        seed_accounts()
        self.item = make_item("WIDGET")

    def post_bill(self, quantity=10, unit_price=100, **extra_lines):
        bill = SourceDocument.objects.create(kind=SourceDocument.Kind.BILL, number="B-1")
        lines = [{"item": self.item.pk, "quantity": quantity, "unit_price": unit_price}]
        lines.extend(extra_lines.get("lines", []))
        post_for_document(bill, lines)
        return bill

    def post_invoice(self, quantity=4, unit_price=250):
        invoice = SourceDocument.objects.create(kind=SourceDocument.Kind.INVOICE, number="I-1")
        post_for_document(invoice, [{"item": self.item.pk, "quantity": quantity, "unit_price": unit_price}])
        return invoice


class PostForDocumentTests(EditorTestCase):
    """
    GUARANTEES:
    - Each document kind produces its layers/depletions and one balanced entry
    - Posting twice is rejected
    """

    def test_bill_receives_layers_and_credits_payables(self):
        bill = self.post_bill()

        self.assertEqual(bill.transaction_id, f"bill-{bill.pk}")
        layer = InventoryLayer.objects.get(document=bill)
        self.assertEqual((layer.initial_qty, layer.unit_cost), (10, 100))

        entry = JournalEntry.objects.get(transaction_id=bill.transaction_id)
        self.assertEqual(entry.posted_at, bill.document_date)
        self.assertEqual(balance_of("1340"), 1000)
        self.assertEqual(balance_of("2100"), -1000)

        bill.refresh_from_db()
        self.assertEqual(bill.lines[0]["item"], self.item.pk)

    def test_bill_service_line_is_landed_cost(self):
        freight = make_item("FREIGHT", item_class=Item.ItemClass.SERVICE)
        bill = self.post_bill(lines=[{"item": freight.pk, "quantity": 1, "unit_price": 50}])

        footprint = load_footprint(bill)
        self.assertEqual(len(footprint.allocations), 1)
        self.assertEqual(footprint.allocations[0].journal_entry_id, footprint.entries[0].id)
        self.assertEqual(costing.item_valuation(self.item), 1050)
        self.assertEqual(balance_of("1340"), 1050)
        self.assertEqual(balance_of("2100"), -1050)

    def test_invoice_depletes_fifo_and_posts_cogs(self):
        self.post_bill(quantity=10, unit_price=100)
        invoice = self.post_invoice(quantity=4, unit_price=250)

        self.assertEqual(LayerConsumption.objects.filter(document=invoice).count(), 1)
        self.assertEqual(balance_of("1200"), 1000)
        self.assertEqual(balance_of("4000"), -1000)
        self.assertEqual(balance_of("5000"), 400)
        self.assertEqual(balance_of("1340"), 600)

    def test_journal_document(self):
        journal = SourceDocument.objects.create(kind=SourceDocument.Kind.JOURNAL)
        entry = post_for_document(
            journal,
            [
                {"account_code": "5200", "debit": 75},
                {"account_code": "2100", "credit": 75},
            ],
        )

        self.assertEqual(entry.transaction_id, journal.transaction_id)
        self.assertEqual(balance_of("5200"), 75)

    def test_adjustment_document(self):
        adjustment = SourceDocument.objects.create(kind=SourceDocument.Kind.ADJUSTMENT)
        entry = post_for_document(adjustment, [{"item": self.item.pk, "quantity_delta": 2, "unit_cost": 100}])

        self.assertEqual(entry.entry_type, JournalEntry.EntryType.ADJUSTMENT)
        self.assertEqual(balance_of("1340"), 200)
        self.assertEqual(balance_of("5200"), -200)

    def test_posting_twice_is_rejected(self):
        bill = self.post_bill()

        with self.assertRaises(IdempotencyError):
            post_for_document(bill, [{"item": self.item.pk, "quantity": 1, "unit_price": 1}])

        self.assertEqual(InventoryLayer.objects.count(), 1)

    def test_invalid_lines(self):
        bill = SourceDocument.objects.create(kind=SourceDocument.Kind.BILL)

        with self.assertRaises(InvalidDocumentLinesError):
            post_for_document(bill, [{"item": self.item.pk, "quantity": 0, "unit_price": 1}])
        with self.assertRaises(InvalidDocumentLinesError):
            post_for_document(bill, [])


class EditDocumentTests(EditorTestCase):
    """
    GUARANTEES:
    - An untouched document is rewritten by reversal + replay, never by update
    - A depended-upon document is rejected with nothing modified
    - Any failure during replay rolls the whole edit back
    """

    def test_edit_untouched_bill(self):
        bill = self.post_bill(quantity=10, unit_price=100)
        original = JournalEntry.objects.get(transaction_id=bill.transaction_id)

        result = edit_document(bill.transaction_id, [{"item": self.item.pk, "quantity": 12, "unit_price": 100}])

        self.assertEqual(len(result.reversals), 1)
        self.assertEqual(result.reversals[0].reversal_of_id, original.id)
        self.assertEqual(result.entry.transaction_id, bill.transaction_id)

        layers = list(InventoryLayer.objects.filter(item=self.item))
        self.assertEqual([layer.initial_qty for layer in layers], [12])
        self.assertEqual(balance_of("2100"), -1200)
        self.assertEqual(balance_of("1340"), 1200)

        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity_on_hand, 12)

        # original + reversal + replay
        self.assertEqual(_grand_totals(), (3200, 3200))

    def test_edit_consumed_bill_is_locked(self):
        bill = self.post_bill(quantity=10, unit_price=100)
        self.post_invoice(quantity=1)
        entries_before = JournalEntry.objects.count()

        with self.assertRaises(DocumentLockedError) as ctx:
            edit_document(bill.transaction_id, [{"item": self.item.pk, "quantity": 12, "unit_price": 90}])

        self.assertEqual(ctx.exception.reason, DocumentLockedError.ITEMS_CONSUMED)
        self.assertEqual(JournalEntry.objects.count(), entries_before)
        layer = InventoryLayer.objects.get(document=bill)
        self.assertEqual((layer.initial_qty, layer.remaining_qty, layer.unit_cost), (10, 9, 100))

    def test_edit_keeps_the_fifo_position_of_the_bill(self):
        first = self.post_bill(quantity=5, unit_price=100)
        original = InventoryLayer.objects.get(document=first)
        later = SourceDocument.objects.create(kind=SourceDocument.Kind.BILL, number="B-2")
        post_for_document(later, [{"item": self.item.pk, "quantity": 5, "unit_price": 300}])

        edit_document(first.transaction_id, [{"item": self.item.pk, "quantity": 6, "unit_price": 100}])

        replaced = InventoryLayer.objects.get(document=first)
        self.assertEqual(replaced.received_at, original.received_at)
        slices = costing.deplete(item=self.item, quantity=1)
        self.assertEqual(slices[0].layer.pk, replaced.pk)

    def test_landed_cost_onto_consumed_layer_is_locked(self):
        self.post_bill(quantity=10, unit_price=100)
        self.post_invoice(quantity=1)
        layer = InventoryLayer.objects.get(item=self.item)
        freight = make_item("FREIGHT", item_class=Item.ItemClass.SERVICE)
        freight_bill = SourceDocument.objects.create(kind=SourceDocument.Kind.BILL, number="F-1")
        entries_before = JournalEntry.objects.count()

        with self.assertRaises(DocumentLockedError) as ctx:
            post_for_document(
                freight_bill,
                [{"item": freight.pk, "quantity": 1, "unit_price": 50, "allocate_to": [layer.pk]}],
            )

        self.assertEqual(ctx.exception.reason, DocumentLockedError.ITEMS_CONSUMED)
        self.assertEqual(JournalEntry.objects.count(), entries_before)
        self.assertFalse(LandedCostAllocation.objects.exists())

    def test_payment_applied_is_locked(self):
        bill = self.post_bill()
        bill.payment_applied = True
        bill.save()

        with self.assertRaises(DocumentLockedError) as ctx:
            edit_document(bill.transaction_id, [{"item": self.item.pk, "quantity": 1, "unit_price": 1}])

        self.assertEqual(ctx.exception.reason, DocumentLockedError.PAYMENT_APPLIED)

    def test_edit_invoice_restores_then_redepletes(self):
        self.post_bill(quantity=10, unit_price=100)
        invoice = self.post_invoice(quantity=4, unit_price=250)

        edit_document(invoice.transaction_id, [{"item": self.item.pk, "quantity": 6, "unit_price": 250}])

        layer = InventoryLayer.objects.get(item=self.item)
        self.assertEqual(layer.remaining_qty, 4)
        self.assertEqual(balance_of("5000"), 600)
        self.assertEqual(balance_of("1200"), 1500)
        debit_total, credit_total = _grand_totals()
        self.assertEqual(debit_total, credit_total)

    def test_failed_replay_rolls_everything_back(self):
        self.post_bill(quantity=10, unit_price=100)
        invoice = self.post_invoice(quantity=4)
        entries_before = JournalEntry.objects.count()

        with self.assertRaises(InsufficientInventoryError):
            edit_document(invoice.transaction_id, [{"item": self.item.pk, "quantity": 50, "unit_price": 250}])

        self.assertEqual(JournalEntry.objects.count(), entries_before)
        self.assertEqual(LayerConsumption.objects.get(document=invoice).quantity, 4)
        self.assertEqual(InventoryLayer.objects.get(item=self.item).remaining_qty, 6)
        self.assertEqual(balance_of("5000"), 400)

    def test_invalid_new_lines_modify_nothing(self):
        bill = self.post_bill()

        with self.assertRaises(InvalidDocumentLinesError):
            edit_document(bill.transaction_id, [{"item": 999999, "quantity": 1, "unit_price": 1}])

        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_unknown_document(self):
        with self.assertRaises(DocumentNotFoundError):
            edit_document("bill-999999", [])


class DeleteDocumentTests(EditorTestCase):
    def test_delete_bill_reverses_and_removes_layers(self):
        post_entry(lines=[debit("1200", 500), credit("4000", 500)], description="Unrelated sale")
        bill = self.post_bill()

        result = delete_document(bill.transaction_id)

        self.assertIsNone(result.entry)
        self.assertEqual(len(result.reversals), 1)
        self.assertFalse(InventoryLayer.objects.filter(document=bill).exists())
        self.assertEqual(balance_of("1340"), 0)
        self.assertEqual(balance_of("1200"), 500)
        self.assertEqual(balance_of("4000"), -500)
        self.assertEqual(balance_of("2100"), 0)

        bill.refresh_from_db()
        self.assertTrue(bill.is_deleted)
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity_on_hand, 0)

    def test_delete_invoice_restores_layers(self):
        self.post_bill(quantity=10, unit_price=100)
        invoice = self.post_invoice(quantity=4)

        delete_document(invoice.transaction_id)

        self.assertEqual(InventoryLayer.objects.get(item=self.item).remaining_qty, 10)
        self.assertFalse(LayerConsumption.objects.exists())
        self.assertEqual(balance_of("1200"), 0)
        self.assertEqual(balance_of("5000"), 0)
        self.assertEqual(balance_of("1340"), 1000)

    def test_delete_twice_is_rejected(self):
        bill = self.post_bill()
        delete_document(bill.transaction_id)

        with self.assertRaises(DocumentLockedError) as ctx:
            delete_document(bill.transaction_id)

        self.assertEqual(ctx.exception.reason, DocumentLockedError.ALREADY_DELETED)

    def test_deleted_document_cannot_be_posted_again(self):
        bill = self.post_bill()
        delete_document(bill.transaction_id)

        with self.assertRaises(DocumentLockedError):
            post_for_document(bill.transaction_id, [{"item": self.item.pk, "quantity": 1, "unit_price": 1}])


class LandedCostRoundingTests(EditorTestCase):
    """
    GUARANTEES:
    - A layer carrying an uneven landed cost sells out to exactly zero value
    - Inventory GL and layer valuation agree after every sale and every undo
    """

    def setUp(self):
        super().setUp()
        self.freight = make_item("FREIGHT", item_class=Item.ItemClass.SERVICE)
        self.post_bill(
            quantity=3,
            unit_price=1000,
            lines=[{"item": self.freight.pk, "quantity": 1, "unit_price": 100}],
        )

    def test_selling_one_unit_at_a_time_leaves_no_residue(self):
        cogs = []
        for _ in range(3):
            self.post_invoice(quantity=1, unit_price=1500)
            cogs.append(balance_of("5000") - sum(cogs))
            self.assertEqual(recompute_inventory_valuation()["global_discrepancy"], 0)

        self.assertEqual(cogs, [1033, 1034, 1033])
        self.assertEqual(balance_of("1340"), 0)
        self.assertTrue(run_reconciliation(strict=True).is_clean)

    def test_deleting_an_earlier_sale_keeps_books_in_step(self):
        invoices = [self.post_invoice(quantity=1, unit_price=1500) for _ in range(3)]

        delete_document(invoices[0].transaction_id)

        self.assertEqual(balance_of("1340"), costing.item_valuation(self.item))
        self.assertEqual(balance_of("1340"), 1033)
        self.assertEqual(recompute_inventory_valuation()["global_discrepancy"], 0)


@override_settings(EDITOR_MAX_RETRIES=3)
class RetryWrapperTests(TestCase):
    def test_retryable_errors_are_retried(self):
        calls = []

        @with_retries
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise TransientStoreError("database is locked")
            return "ok"

        self.assertEqual(flaky(), "ok")
        self.assertEqual(len(calls), 3)

    def test_gives_up_after_max_attempts(self):
        calls = []

        @with_retries
        def always_conflicting():
            calls.append(1)
            raise TransientStoreError("deadlock")

        with self.assertRaises(RetryableError):
            always_conflicting()
        self.assertEqual(len(calls), 3)

    def test_other_errors_propagate_immediately(self):
        calls = []

        @with_retries
        def broken():
            calls.append(1)
            raise DocumentNotFoundError("nope")

        with self.assertRaises(DocumentNotFoundError):
            broken()
        self.assertEqual(len(calls), 1)
