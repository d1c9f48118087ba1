# accounting/api/views/reconciliation.py

"""
PATH: accounting/api/views/reconciliation.py

RECONCILIATION REPORT API (READ-ONLY)

GET /api/accounting/reconciliation/
Runs detection only: nothing is persisted and nothing is corrected.
Corrections are applied by `manage.py run_reconciliation --apply`.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.services.reconciliation_service import run_reconciliation


class ReconciliationReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["accounting"], responses={200: dict})
    def get(self, request):
        report = run_reconciliation(apply=False, strict=False, persist=False)
        return Response(report.as_dict(), status=status.HTTP_200_OK)
