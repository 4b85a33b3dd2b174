"""Serializers dedicated to the expenses module."""
from __future__ import annotations

from rest_framework import serializers

from expenses.models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    """Serializer for expenses."""

    class Meta:
        model = Expense
        fields = [
            "id",
            "date",
            "description",
            "category",
            "payment_method",
            "amount",
            "paid_by",
            "notes",
            "status",
            "locked",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "locked", "created_at", "updated_at"]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be strictly greater than 0.")
        return value
