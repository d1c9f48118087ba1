# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for the ledger engine and reconciliation.

RetryableError is a marker base: anything deriving from it may be retried
as a whole operation by a caller (the document editor does this).
"""


class RetryableError(Exception):
    """Marker base for failures that may succeed if the whole operation is retried."""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class TransientStoreError(RetryableError, AccountingServiceError):
    """Raised when the database reports a deadlock, lock timeout or busy store."""


class JournalEntryCreationError(AccountingServiceError):
    """Raised when a journal entry cannot be created."""


class ImbalancedEntryError(JournalEntryCreationError):
    """Raised when total debits do not equal total credits."""


class PeriodLockedError(JournalEntryCreationError):
    """Raised when attempting to post into a closed accounting period."""


class EntryNotFoundError(AccountingServiceError):
    """Raised when a referenced journal entry does not exist."""


class EntryAlreadyReversedError(AccountingServiceError):
    """Raised when reversing an entry that is already reversed (or is itself a reversal)."""


class AccountResolutionError(AccountingServiceError):
    """Raised when an expected account cannot be resolved."""


class IdempotencyError(AccountingServiceError):
    """Raised on duplicate or retried accounting events."""


class ReconciliationDriftError(AccountingServiceError):
    """Raised by strict reconciliation runs when uncorrected drift is found."""

    def __init__(self, message: str, *, discrepancies=None):
        super().__init__(message)
        self.discrepancies = list(discrepancies or [])
