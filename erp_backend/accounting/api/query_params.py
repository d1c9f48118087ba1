# accounting/api/query_params.py

"""
Query-string parsing shared by the read-only report endpoints.
Invalid values raise DRF ValidationError, which renders as HTTP 400.
"""

from __future__ import annotations

from datetime import date

from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def date_param(request, name: str) -> date | None:
    raw = str(request.query_params.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise ValidationError({name: f"Invalid {name} (expected YYYY-MM-DD)"})
    return value


def bool_param(request, name: str, *, default: bool) -> bool:
    raw = str(request.query_params.get(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValidationError({name: f"Invalid {name} (expected true/false)"})


def date_range_params(request, *, start: str = "date_from", end: str = "date_to"):
    date_from = date_param(request, start)
    date_to = date_param(request, end)
    if date_from and date_to and date_from > date_to:
        raise ValidationError({end: f"{end} must be >= {start}"})
    return date_from, date_to
