# accounting/services/store_errors.py

"""
STORE ERROR TRANSLATION

Database OperationalError (deadlock, lock timeout, "database is locked")
is surfaced to callers as TransientStoreError so whole operations can be
retried. Used by every engine at its service edge.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from django.db import OperationalError

from accounting.services.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(operation: str):
    try:
        yield
    except OperationalError as exc:
        logger.warning(
            "Transient store failure",
            extra={"operation": operation, "error": str(exc)},
        )
        raise TransientStoreError(f"{operation} failed on a transient store error: {exc}") from exc
