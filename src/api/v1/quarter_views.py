"""API views for quarterly reporting and the live dashboard."""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.pagination import QuarterPagination
from api.v1.permissions import CanCloseQuarter, CanSetQuarterTargets
from api.v1.quarter_serializers import (
    CloseQuarterSerializer,
    ClosureResultSerializer,
    KpiSummarySerializer,
    QuarterlySummarySerializer,
    QuarterSerializer,
    QuarterTargetsSerializer,
)
from core.exceptions import NotFoundError
from quarters.aggregation import get_quarterly_summaries
from quarters.closing import close_quarter
from quarters.dashboard import get_dashboard_stats, get_quick_stats, get_recent_activities
from quarters.exceptions import CloseFailedError
from quarters.metrics import generate_kpi_summary
from quarters.models import Quarter
from quarters.services import get_or_create_current_quarter, get_quarter, set_quarter_targets

logger = logging.getLogger("crm")


class QuarterCloseFailed(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Failed to close quarter."
    default_code = "close_failed"


def _run(service, *args, **kwargs):
    """Run an async quarter service and map its errors onto HTTP errors."""
    try:
        return async_to_sync(service)(*args, **kwargs)
    except NotFoundError as exc:
        raise NotFound(str(exc))
    except CloseFailedError as exc:
        raise QuarterCloseFailed(str(exc))
    except ValueError as exc:
        raise ValidationError({"detail": str(exc)})


class QuarterViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Quarter records, their summaries, KPIs and the close action."""

    serializer_class = QuarterSerializer
    queryset = Quarter.objects.all()
    lookup_field = "quarter_id"
    filterset_fields = ["year", "status"]
    ordering_fields = ["year", "quarter", "closed_date"]
    pagination_class = QuarterPagination
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_permissions(self):
        base = [IsAuthenticated()]
        if self.action == "close":
            return base + [CanCloseQuarter()]
        if self.action in ("update", "partial_update"):
            return base + [CanSetQuarterTargets()]
        return base

    def get_object(self):
        self.kwargs[self.lookup_field] = self.kwargs[self.lookup_field].lower()
        return super().get_object()

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = QuarterTargetsSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        quarter = _run(set_quarter_targets, instance.quarter_id, serializer.validated_data)
        return Response(QuarterSerializer(quarter).data)

    @action(detail=False, methods=["get"])
    def current(self, request):
        quarter = _run(get_or_create_current_quarter)
        return Response(QuarterSerializer(quarter).data)

    @action(detail=False, methods=["get"])
    def summaries(self, request):
        year = request.query_params.get("year")
        if year not in (None, ""):
            try:
                year = int(year)
            except (TypeError, ValueError):
                raise ValidationError({"year": "Year must be an integer."})
        else:
            year = None
        summaries = _run(get_quarterly_summaries, year)
        return Response(QuarterlySummarySerializer(summaries, many=True).data)

    @action(detail=True, methods=["post"])
    def close(self, request, quarter_id=None):
        serializer = CloseQuarterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = _run(
            close_quarter,
            quarter_id,
            withdrawal_amount=serializer.validated_data["withdrawal_amount"],
        )
        logger.info("Quarter %s closed by %s", result.quarter_id, request.user)
        return Response(ClosureResultSerializer(result).data)

    @action(detail=True, methods=["get"])
    def kpis(self, request, quarter_id=None):
        quarter = _run(get_quarter, quarter_id)
        return Response(KpiSummarySerializer(generate_kpi_summary(quarter)).data)


class DashboardStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_run(get_dashboard_stats))


class QuickStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_run(get_quick_stats))


class RecentActivityView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_run(get_recent_activities))
