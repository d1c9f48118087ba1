# inventory/tests/test_costing.py

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from accounting.models import JournalEntry
from accounting.services.exceptions import RetryableError
from accounting.tests.factories import balance_of, seed_accounts
from documents.models import SourceDocument
from inventory.models import InventoryLayer, Item, LandedCostAllocation, LayerConsumption
from inventory.services import costing
from inventory.services.exceptions import (
    ConcurrentModificationError,
    InsufficientInventoryError,
    InventoryServiceError,
    LayerConsumedError,
)
from inventory.tests.factories import make_item


class FifoDepletionTests(TestCase):
    """
    GUARANTEES:
    - Oldest layers are consumed first, partially if needed
    - Insufficient stock fails before anything changes
    - Item caches follow the layers
    """

    def setUp(self):
        self.item = make_item()
        now = timezone.now()
        self.layer_a = costing.receive(
            item=self.item, quantity=50, unit_cost=1000, received_at=now - timedelta(days=2)
        )
        self.layer_b = costing.receive(
            item=self.item, quantity=50, unit_cost=1200, received_at=now - timedelta(days=1)
        )

    def test_depletes_oldest_first(self):
        slices = costing.deplete(item=self.item, quantity=60)

        self.assertEqual([(s.layer.pk, s.quantity) for s in slices], [(self.layer_a.pk, 50), (self.layer_b.pk, 10)])
        self.assertEqual(costing.weighted_unit_cost(slices, 60), 1033)
        self.assertEqual(costing.consumed_cost(slices), 62000)

        self.layer_a.refresh_from_db()
        self.layer_b.refresh_from_db()
        self.assertTrue(self.layer_a.is_depleted)
        self.assertEqual(self.layer_a.remaining_qty, 0)
        self.assertEqual(self.layer_b.remaining_qty, 40)
        self.assertFalse(self.layer_b.is_depleted)

        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity_on_hand, 40)
        self.assertEqual(self.item.average_cost, Decimal("1200"))

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(InsufficientInventoryError) as ctx:
            costing.deplete(item=self.item, quantity=101)

        self.assertEqual(ctx.exception.requested, 101)
        self.assertEqual(ctx.exception.available, 100)
        self.assertEqual(LayerConsumption.objects.count(), 0)
        self.layer_a.refresh_from_db()
        self.assertEqual(self.layer_a.remaining_qty, 50)

    def test_zero_quantity_is_a_no_op(self):
        self.assertEqual(costing.deplete(item=self.item, quantity=0), [])

    def test_fractional_quantity_is_rejected(self):
        with self.assertRaises(InventoryServiceError):
            costing.deplete(item=self.item, quantity="1.5")

    def test_same_timestamp_breaks_ties_by_sequence(self):
        other = make_item("GADGET")
        moment = timezone.now() - timedelta(hours=1)
        first = costing.receive(item=other, quantity=5, unit_cost=10, received_at=moment)
        costing.receive(item=other, quantity=5, unit_cost=20, received_at=moment)

        slices = costing.deplete(item=other, quantity=3)

        self.assertEqual(slices[0].layer.pk, first.pk)

    def test_stale_version_is_a_retryable_conflict(self):
        with self.assertRaises(ConcurrentModificationError) as ctx:
            costing.update_layer_conditionally(
                layer_id=self.layer_a.pk,
                expected_version=self.layer_a.version + 1,
                remaining_qty=10,
            )

        self.assertIsInstance(ctx.exception, RetryableError)
        self.layer_a.refresh_from_db()
        self.assertEqual(self.layer_a.remaining_qty, 50)

    def test_restore_consumption_returns_slices_to_their_layers(self):
        document = SourceDocument.objects.create(kind=SourceDocument.Kind.INVOICE)
        costing.deplete(item=self.item, quantity=60, document=document)

        restored = costing.restore_consumption(document=document)

        self.assertEqual(restored, 60)
        self.layer_a.refresh_from_db()
        self.layer_b.refresh_from_db()
        self.assertEqual(self.layer_a.remaining_qty, 50)
        self.assertFalse(self.layer_a.is_depleted)
        self.assertEqual(self.layer_b.remaining_qty, 50)
        self.assertFalse(LayerConsumption.objects.exists())

    def test_valuation(self):
        self.assertEqual(costing.item_valuation(self.item), 110000)
        costing.deplete(item=self.item, quantity=60)
        self.assertEqual(costing.item_valuation(self.item), 48000)

    def test_service_items_carry_no_stock(self):
        service = make_item("FREIGHT", item_class=Item.ItemClass.SERVICE)
        with self.assertRaises(InventoryServiceError):
            costing.receive(item=service, quantity=1, unit_cost=10)


class LandedCostTests(TestCase):
    """
    GUARANTEES:
    - Shares are integers; the rounding remainder lands on the last target
    - Capitalization posts DR inventory / CR landed-cost clearing
    - Consumed layers cannot absorb landed cost
    """

    def setUp(self):
        seed_accounts()
        self.item = make_item()
        self.layers = [
            costing.receive(item=self.item, quantity=3, unit_cost=100),
            costing.receive(item=self.item, quantity=3, unit_cost=100),
            costing.receive(item=self.item, quantity=3, unit_cost=100),
        ]

    def test_remainder_goes_to_last_target(self):
        result = costing.allocate_landed_cost(amount=100, layers=self.layers)

        self.assertEqual([a.amount for a in result.allocations], [33, 33, 34])
        last = InventoryLayer.objects.get(pk=self.layers[-1].pk)
        self.assertEqual(last.landed_cost_adjustment, Decimal("11.333333"))
        self.assertEqual(costing.item_valuation(self.item), 1000)

        entry = result.journal_entry
        self.assertIsNotNone(entry)
        self.assertEqual(balance_of("1340"), 100)
        self.assertEqual(balance_of("2150"), -100)
        self.assertEqual(
            set(LandedCostAllocation.objects.values_list("journal_entry_id", flat=True)),
            {entry.id},
        )

    def test_quantity_method(self):
        extra = costing.receive(item=self.item, quantity=6, unit_cost=500)

        result = costing.allocate_landed_cost(
            amount=90,
            layers=[self.layers[0], extra],
            method=LandedCostAllocation.Method.QUANTITY,
            post=False,
        )

        self.assertEqual([a.amount for a in result.allocations], [30, 60])
        self.assertIsNone(result.journal_entry)
        self.assertEqual(result.postings[0]["debit"], 90)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_consumed_layer_is_locked(self):
        costing.deplete(item=self.item, quantity=1)

        with self.assertRaises(LayerConsumedError) as ctx:
            costing.allocate_landed_cost(amount=100, layers=self.layers)

        self.assertEqual(ctx.exception.layer_id, self.layers[0].pk)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_unit_by_unit_depletion_absorbs_rounding(self):
        costing.allocate_landed_cost(amount=100, layers=self.layers, post=False)

        costs = [costing.consumed_cost(costing.deplete(item=self.item, quantity=1)) for _ in range(9)]

        self.assertEqual(costs[6:], [111, 112, 111])
        self.assertEqual(sum(costs), 1000)
        self.assertEqual(costing.item_valuation(self.item), 0)
        self.assertFalse(InventoryLayer.objects.filter(remaining_value__gt=0).exists())

    def test_restore_gives_back_the_exact_slice_cost(self):
        costing.allocate_landed_cost(amount=100, layers=[self.layers[2]], post=False)
        first = SourceDocument.objects.create(kind=SourceDocument.Kind.INVOICE)
        second = SourceDocument.objects.create(kind=SourceDocument.Kind.INVOICE)
        costing.deplete(item=self.item, quantity=7, document=first)
        costing.deplete(item=self.item, quantity=2, document=second)

        costing.restore_consumption(document=first)

        restored = sum(LayerConsumption.objects.filter(document=second).values_list("total_cost", flat=True))
        self.assertEqual(costing.item_valuation(self.item), 1000 - restored)

    def test_reverse_landed_cost(self):
        document = SourceDocument.objects.create(kind=SourceDocument.Kind.BILL)
        costing.allocate_landed_cost(amount=100, layers=self.layers, document=document, post=False)

        removed = costing.reverse_landed_cost(document=document)

        self.assertEqual(removed, 3)
        for layer in InventoryLayer.objects.filter(pk__in=[l.pk for l in self.layers]):
            self.assertEqual(layer.landed_cost_adjustment, Decimal("0"))
        self.assertEqual(costing.item_valuation(self.item), 900)


class AdjustmentAndTransferTests(TestCase):
    def setUp(self):
        self.item = make_item()
        self.received_at = timezone.now() - timedelta(days=5)
        self.layer = costing.receive(
            item=self.item, quantity=10, unit_cost=500, received_at=self.received_at
        )

    def test_positive_adjustment_defaults_to_average_cost(self):
        result = costing.adjust(item=self.item, quantity_delta=2)

        self.assertEqual(result.value, 1000)
        self.assertEqual(result.layer.source_kind, InventoryLayer.SourceKind.ADJUSTMENT)
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity_on_hand, 12)

    def test_negative_adjustment_depletes_fifo(self):
        result = costing.adjust(item=self.item, quantity_delta=-4)

        self.assertEqual(result.value, -2000)
        self.assertEqual(result.consumed[0].layer.pk, self.layer.pk)
        self.assertEqual(LayerConsumption.objects.get().kind, LayerConsumption.Kind.ADJUSTMENT)

    def test_adjust_up_from_zero_needs_a_cost(self):
        empty = make_item("EMPTY")
        with self.assertRaises(InventoryServiceError):
            costing.adjust(item=empty, quantity_delta=1)

        result = costing.adjust(item=empty, quantity_delta=1, unit_cost=42)
        self.assertEqual(result.value, 42)

    def test_zero_adjustment_is_rejected(self):
        with self.assertRaises(InventoryServiceError):
            costing.adjust(item=self.item, quantity_delta=0)

    def test_transfer_preserves_cost_and_age(self):
        created = costing.transfer(item=self.item, quantity=4, from_warehouse="MAIN", to_warehouse="WEST")

        self.assertEqual(len(created), 1)
        moved = created[0]
        self.assertEqual(moved.warehouse_code, "WEST")
        self.assertEqual(moved.initial_qty, 4)
        self.assertEqual(moved.unit_cost, 500)
        self.assertEqual(moved.received_at, self.received_at)
        self.assertEqual(moved.origin_layer_id, self.layer.pk)
        self.assertEqual(moved.source_kind, InventoryLayer.SourceKind.TRANSFER)

        self.layer.refresh_from_db()
        self.assertEqual(self.layer.remaining_qty, 6)
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity_on_hand, 10)
        self.assertEqual(costing.item_valuation(self.item), 5000)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_transfer_within_same_warehouse_is_rejected(self):
        with self.assertRaises(InventoryServiceError):
            costing.transfer(item=self.item, quantity=1, from_warehouse="MAIN", to_warehouse="MAIN")

    def test_transfer_only_draws_from_source_warehouse(self):
        costing.transfer(item=self.item, quantity=4, from_warehouse="MAIN", to_warehouse="WEST")

        with self.assertRaises(InsufficientInventoryError):
            costing.transfer(item=self.item, quantity=5, from_warehouse="WEST", to_warehouse="MAIN")
