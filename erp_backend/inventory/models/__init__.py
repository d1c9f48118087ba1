# inventory/models/__init__.py

"""
INVENTORY MODELS PACKAGE EXPORTS

Keep this file imports-only.
"""

from .item import Item
from .layer import InventoryLayer
from .consumption import LayerConsumption
from .landed_cost import LandedCostAllocation
from .sequence import SequenceCounter

__all__ = [
    "Item",
    "InventoryLayer",
    "LayerConsumption",
    "LandedCostAllocation",
    "SequenceCounter",
]
