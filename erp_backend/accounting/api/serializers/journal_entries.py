# accounting/api/serializers/journal_entries.py

from rest_framework import serializers

from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine


class JournalEntryLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)

    class Meta:
        model = JournalEntryLine
        fields = ("id", "account", "account_code", "debit", "credit", "description")
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalEntryLineSerializer(many=True, read_only=True)

    class Meta:
        model = JournalEntry
        fields = (
            "id",
            "posted_at",
            "description",
            "reference",
            "transaction_id",
            "entry_type",
            "is_posted",
            "reversal_of",
            "created_at",
            "lines",
        )
        read_only_fields = fields
