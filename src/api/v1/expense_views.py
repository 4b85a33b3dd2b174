"""ViewSets and endpoints for the expenses module."""
from __future__ import annotations

from rest_framework import mixins, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from api.v1.expense_serializers import ExpenseSerializer
from api.v1.pagination import StandardResultsSetPagination
from expenses.models import Expense
from expenses.services import create_expense, update_expense


class ExpenseViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Expenses; rows locked by a quarter close are read-only."""

    serializer_class = ExpenseSerializer
    queryset = Expense.objects.all()
    permission_classes = [IsAuthenticated]
    filterset_fields = ["category", "status", "payment_method", "locked", "date"]
    search_fields = ["description", "paid_by", "notes"]
    ordering_fields = ["date", "amount", "created_at"]
    pagination_class = StandardResultsSetPagination

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            expense = create_expense(
                amount=data["amount"],
                description=data.get("description", ""),
                category=data.get("category", ""),
                expense_date=data.get("date"),
                payment_method=data.get("payment_method", Expense.PaymentMethod.BANK_TRANSFER),
                paid_by=data.get("paid_by", ""),
                notes=data.get("notes", ""),
                status=data.get("status", Expense.Status.PENDING),
            )
        except ValueError as exc:
            raise ValidationError({"detail": str(exc)})
        return Response(self.get_serializer(expense).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        try:
            expense = update_expense(instance, **serializer.validated_data)
        except ValueError as exc:
            raise ValidationError({"detail": str(exc)})
        return Response(self.get_serializer(expense).data)
