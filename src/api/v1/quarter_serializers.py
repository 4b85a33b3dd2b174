"""DRF serializers for quarters, summaries and KPIs."""
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from quarters.models import Quarter


class QuarterSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = Quarter
        fields = "__all__"
        read_only_fields = [
            f.name for f in Quarter._meta.concrete_fields
        ]


class QuarterTargetsSerializer(serializers.ModelSerializer):
    """Write-only view of the target fields; nothing else is accepted."""

    class Meta:
        model = Quarter
        fields = list(Quarter.TARGET_FIELDS)
        extra_kwargs = {
            name: {"required": False, "allow_null": True, "min_value": Decimal("0")}
            for name in Quarter.TARGET_FIELDS
        }

    def validate(self, attrs):
        unknown = set(self.initial_data) - set(Quarter.TARGET_FIELDS)
        if unknown:
            raise serializers.ValidationError(
                {name: "Not a target field." for name in sorted(unknown)}
            )
        if not attrs:
            raise serializers.ValidationError("Provide at least one target.")
        return attrs


class QuarterlySummarySerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    status = serializers.CharField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_revenue = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_expenses = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_salaries = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_profit = serializers.DecimalField(max_digits=16, decimal_places=2)
    profit_margin = serializers.DecimalField(max_digits=7, decimal_places=1)
    counts = serializers.DictField(child=serializers.IntegerField())
    warnings = serializers.SerializerMethodField()

    def get_warnings(self, obj):
        return [str(w) for w in obj.warnings]


class CloseQuarterSerializer(serializers.Serializer):
    withdrawal_amount = serializers.DecimalField(
        max_digits=16,
        decimal_places=2,
        required=False,
        default=0,
    )


class ClosureResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    quarter_id = serializers.CharField()
    closed_date = serializers.DateTimeField()
    withdrawal_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    remaining_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    report_generated = serializers.BooleanField()
    quarter_closure_id = serializers.CharField()


class MetricSerializer(serializers.Serializer):
    actual = serializers.DecimalField(max_digits=18, decimal_places=2)
    target = serializers.DecimalField(max_digits=18, decimal_places=2)
    progress = serializers.DecimalField(max_digits=7, decimal_places=2)
    is_met = serializers.BooleanField()
    variance = serializers.DecimalField(max_digits=18, decimal_places=2)


class KpiSummarySerializer(serializers.Serializer):
    quarter_id = serializers.CharField()
    name = serializers.CharField()
    status = serializers.CharField()
    closed_date = serializers.DateTimeField(allow_null=True)
    financial = serializers.DictField(child=MetricSerializer())
    clients = serializers.DictField(child=MetricSerializer())
    employees = serializers.DictField(child=MetricSerializer())
    invoices = serializers.DictField(child=MetricSerializer())
    overall_performance = serializers.IntegerField()
    performance_status = serializers.CharField()
    days_remaining = serializers.IntegerField()
    is_closed = serializers.BooleanField()
    last_updated = serializers.DateTimeField()
