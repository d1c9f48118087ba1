# accounting/models/period_close.py

"""
======================================================
PATH: accounting/models/period_close.py
======================================================
PERIOD CLOSE MODEL

Represents a locked accounting date range.

Audit guarantees:
- Immutable once created
- Non-deletable

Hard rules:
- Closed periods cannot overlap.
- No journal entry may be posted with a posted_at inside a closed range.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


class PeriodClose(models.Model):
    start_date = models.DateField()
    end_date = models.DateField()

    note = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-end_date", "-created_at"]
        indexes = [
            models.Index(fields=["start_date", "end_date"], name="idx_period_close_range"),
            models.Index(fields=["end_date"], name="idx_period_close_end"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["start_date", "end_date"],
                name="uniq_period_close_start_end",
            ),
            models.CheckConstraint(
                condition=Q(end_date__gte=F("start_date")),
                name="chk_period_close_end_gte_start",
            ),
        ]
        verbose_name = "Period Close"
        verbose_name_plural = "Period Closes"

    def __str__(self):
        return f"PeriodClose {self.start_date} → {self.end_date}"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "end_date must be >= start_date"})

        if self.start_date and self.end_date:
            qs = PeriodClose.objects.filter(
                start_date__lte=self.end_date,
                end_date__gte=self.start_date,
            )
            if self.pk:
                qs = qs.exclude(pk=self.pk)

            if qs.exists():
                raise ValidationError(
                    {
                        "start_date": "This period overlaps an existing closed period.",
                        "end_date": "This period overlaps an existing closed period.",
                    }
                )

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("PeriodClose records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PeriodClose records are immutable and cannot be deleted")
