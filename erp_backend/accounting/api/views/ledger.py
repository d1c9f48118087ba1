# accounting/api/views/ledger.py

"""
PATH: accounting/api/views/ledger.py

ACCOUNT LEDGER API VIEW (READ-ONLY)

GET /api/accounting/accounts/<code>/ledger/?date_from=&date_to=&include_reversals=
Lines of one account in posting order with a running balance.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.query_params import bool_param, date_range_params
from accounting.services.balance_service import get_ledger
from accounting.services.exceptions import AccountResolutionError


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="date_from",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="First posting date included (YYYY-MM-DD). Earlier lines form the opening balance.",
        ),
        OpenApiParameter(
            name="date_to",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Last posting date included (YYYY-MM-DD).",
        ),
        OpenApiParameter(
            name="include_reversals",
            type=bool,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Show reversed entries and their reversals (default true).",
        ),
    ],
    responses={200: dict, 400: dict, 404: dict},
)
class AccountLedgerView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, code: str):
        date_from, date_to = date_range_params(request)
        include_reversals = bool_param(request, "include_reversals", default=True)

        try:
            data = get_ledger(
                code,
                date_from=date_from,
                date_to=date_to,
                include_reversals=include_reversals,
            )
        except AccountResolutionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        return Response(data, status=status.HTTP_200_OK)
