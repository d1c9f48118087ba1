"""
PATH: accounting/api/views/trial_balance.py

TRIAL BALANCE API VIEW (READ-ONLY)

GET /api/accounting/trial-balance/?as_of=YYYY-MM-DD
Ledger-truth totals per account; cached balances are never read here.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.query_params import date_param
from accounting.services.trial_balance_service import TrialBalanceService


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="as_of",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Snapshot date (YYYY-MM-DD), inclusive. Defaults to today.",
        ),
    ],
    responses={200: dict, 400: dict},
)
class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        as_of = date_param(request, "as_of")
        data = TrialBalanceService().generate(as_of=as_of)
        return Response(data, status=status.HTTP_200_OK)
