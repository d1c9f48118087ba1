# inventory/services/exceptions.py

"""
INVENTORY SERVICE ERRORS

Domain errors for the FIFO costing engine.
"""

from accounting.services.exceptions import RetryableError


class InventoryServiceError(Exception):
    """Base exception for all costing engine failures."""


class InsufficientInventoryError(InventoryServiceError):
    """Raised when available layers cannot cover the requested quantity."""

    def __init__(self, message: str, *, requested: int = 0, available: int = 0):
        super().__init__(message)
        self.requested = requested
        self.available = available


class LayerIntegrityError(InventoryServiceError):
    """Raised when a layer operation would break layer invariants."""


class ConcurrentModificationError(RetryableError, InventoryServiceError):
    """Raised when a layer changed between read and conditional write."""


class LayerConsumedError(InventoryServiceError):
    """Raised when a layer that later transactions depend on would be rewritten."""

    def __init__(self, message: str, *, layer_id: int | None = None):
        super().__init__(message)
        self.layer_id = layer_id
