# inventory/api/views/__init__.py

from inventory.api.views.movements import ItemMovementHistoryView

__all__ = ["ItemMovementHistoryView"]
