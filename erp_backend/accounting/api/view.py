# PATH: accounting/api/view.py

"""
PATH: accounting/api/view.py

JOURNAL ENTRY VIEWSET (READ-ONLY / AUDIT SAFE)

- Entries are append-only; this endpoint never writes
- Filtering via django-filter:
    /api/accounting/journal-entries/?transaction_id=bill-12
    /api/accounting/journal-entries/?entry_type=REVERSAL
    /api/accounting/journal-entries/?posted_from=2026-01-01&posted_to=2026-01-31
- Requires accounting.view_journalentry
"""

import django_filters
from drf_spectacular.utils import extend_schema
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.serializers import JournalEntrySerializer
from accounting.models.journal import JournalEntry


class JournalEntryFilter(django_filters.FilterSet):
    posted_from = django_filters.DateFilter(field_name="posted_at", lookup_expr="gte")
    posted_to = django_filters.DateFilter(field_name="posted_at", lookup_expr="lte")

    class Meta:
        model = JournalEntry
        fields = ["transaction_id", "entry_type", "reference"]


@extend_schema(tags=["accounting"])
class JournalEntryViewSet(ReadOnlyModelViewSet):
    """
    Read-only access to journal entries and their lines.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = JournalEntrySerializer
    filterset_class = JournalEntryFilter
    http_method_names = ["get", "head", "options"]

    queryset = (
        JournalEntry.objects.filter(is_posted=True)
        .prefetch_related("lines__account")
        .order_by("-posted_at", "-id")
    )

    def get_queryset(self):
        if not self.request.user.has_perm("accounting.view_journalentry"):
            raise PermissionDenied(
                "You do not have permission to view journal entries."
            )
        return super().get_queryset()
