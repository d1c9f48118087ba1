# inventory/tests/factories.py

from __future__ import annotations

from inventory.models import Item


def make_item(sku: str = "WIDGET", *, item_class: str = Item.ItemClass.FINISHED_GOODS, **extra) -> Item:
    return Item.objects.create(sku=sku, name=extra.pop("name", sku.title()), item_class=item_class, **extra)
