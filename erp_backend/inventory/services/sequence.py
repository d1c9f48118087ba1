# inventory/services/sequence.py

"""
Monotonic sequence allocation for layers and consumptions.
"""

from __future__ import annotations

from django.db import transaction
from django.db.models import F

from inventory.models import SequenceCounter

INVENTORY_SEQUENCE = "inventory"


@transaction.atomic
def next_sequence(name: str = INVENTORY_SEQUENCE) -> int:
    counter, _ = SequenceCounter.objects.select_for_update().get_or_create(name=name)
    SequenceCounter.objects.filter(pk=counter.pk).update(value=F("value") + 1)
    counter.refresh_from_db(fields=["value"])
    return counter.value
