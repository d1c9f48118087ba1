# documents/services/exceptions.py

"""
DOCUMENT EDITOR ERRORS

Raised by the reversal-and-replay editor (and by costing operations that
would rewrite history already depended upon downstream).
"""


class DocumentError(Exception):
    """Base exception for source-document operations."""


class DocumentNotFoundError(DocumentError):
    """Raised when no document matches the given transaction id."""


class DocumentLockedError(DocumentError):
    """
    Raised when a document's footprint is depended upon and cannot be rewritten.
    `reason` is a user-facing hint on how to proceed.
    """

    PAYMENT_APPLIED = "payment applied — void payment first"
    ITEMS_CONSUMED = "items already sold/consumed — use an adjustment instead"
    LANDED_COST_APPLIED = "landed cost allocated to these items — remove the allocation first"
    ALREADY_DELETED = "document already deleted"

    def __init__(self, reason: str, *, transaction_id: str = ""):
        self.reason = reason
        self.transaction_id = transaction_id
        label = f"Document {transaction_id} is locked" if transaction_id else "Document is locked"
        super().__init__(f"{label}: {reason}")


class InvalidDocumentLinesError(DocumentError):
    """Raised when document lines cannot be turned into a footprint."""
