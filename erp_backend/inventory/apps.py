# inventory/apps.py

"""
INVENTORY APP CONFIG

FIFO cost layers, consumption footprint, landed-cost allocation and
item movement history.
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory Costing"
