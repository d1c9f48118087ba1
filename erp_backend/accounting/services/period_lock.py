# accounting/services/period_lock.py

"""
======================================================
PATH: accounting/services/period_lock.py
======================================================
PERIOD LOCK GUARD

Purpose:
- Prevent posting ANY journal entry whose posted_at date
  falls within a closed period.
- Create closed periods (append-only).

Design:
- Thin, reusable guard
- Called by journal_entry_service (engine choke-point)
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from accounting.models.period_close import PeriodClose
from accounting.services.exceptions import AccountingServiceError, PeriodLockedError

logger = logging.getLogger(__name__)


def _to_date(dt: datetime | date | None) -> date | None:
    if dt is None:
        return None
    if isinstance(dt, datetime):
        if timezone.is_naive(dt):
            dt = timezone.make_aware(dt, timezone.get_current_timezone())
        return timezone.localtime(dt).date()
    if isinstance(dt, date):
        return dt
    return None


def is_period_locked(posted_at: datetime | date | None) -> bool:
    post_date = _to_date(posted_at)
    if post_date is None:
        return False

    return PeriodClose.objects.filter(
        start_date__lte=post_date,
        end_date__gte=post_date,
    ).exists()


def assert_period_open(*, posted_at: datetime | date | None) -> None:
    """
    Assert that posted_at does NOT fall inside a closed period.

    Raises:
        PeriodLockedError if the date is locked.
    """
    if is_period_locked(posted_at):
        post_date = _to_date(posted_at)
        logger.warning("Posting rejected by period lock", extra={"posted_at": str(post_date)})
        raise PeriodLockedError(
            f"Posting blocked: {post_date} falls inside a closed period."
        )


@transaction.atomic
def close_period(*, start_date: date, end_date: date, note: str = "") -> PeriodClose:
    """
    Lock [start_date, end_date] against further postings.
    Overlapping or inverted ranges are rejected.
    """
    try:
        period = PeriodClose.objects.create(
            start_date=start_date,
            end_date=end_date,
            note=(note or "").strip(),
        )
    except ValidationError as exc:
        raise AccountingServiceError(f"Cannot close period: {exc}") from exc

    logger.info(
        "Accounting period closed",
        extra={"start_date": str(start_date), "end_date": str(end_date)},
    )
    return period
