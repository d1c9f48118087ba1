# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API (READ-ONLY)

GET /api/accounting/accounts/
Active accounts ordered by code, with their cached balances.
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.generics import GenericAPIView
from rest_framework import status

from drf_spectacular.utils import extend_schema

from accounting.models.account import Account
from accounting.api.serializers.accounts import AccountListSerializer


class AccountListView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountListSerializer

    @extend_schema(
        tags=["accounting"],
        responses=AccountListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        qs = Account.objects.filter(is_active=True).order_by("code")
        return Response(AccountListSerializer(qs, many=True).data, status=status.HTTP_200_OK)
