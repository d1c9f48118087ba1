# accounting/api/serializers/accounts.py

from rest_framework import serializers
from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for the chart of accounts.
    balance is the cached debit-minus-credit figure in minor units.
    """

    class Meta:
        model = Account
        fields = ("id", "code", "name", "account_type", "balance", "is_active")
        read_only_fields = fields
