import logging

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import mixins, viewsets, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse
)
from django_filters import rest_framework as df

from src.users.permissions import IsManager, is_advertiser, is_manager

from ..commissions import mark_commissions_paid, monthly_commission_report
from ..models import Commission
from ..serializers import (
    CommissionSerializer, MarkPaidSerializer,
    MonthlyReportQuerySerializer, MonthlyReportSerializer,
)
from ..throttling import ScopedRateThrottleIsolated

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List commissions",
        description="Advertisers see their own commissions; managers see all.",
        parameters=[
            OpenApiParameter("status", OpenApiTypes.STR, description="pending | paid"),
            OpenApiParameter("advertiser", OpenApiTypes.INT, description="Advertiser id (managers)"),
        ],
        responses={200: CommissionSerializer},
    ),
    retrieve=extend_schema(
        summary="Get commission",
        responses={200: CommissionSerializer, 404: OpenApiResponse(description="Not found")},
    ),
)
class CommissionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = CommissionSerializer
    permission_classes = (permissions.IsAuthenticated,)
    filter_backends = (df.DjangoFilterBackend,)
    filterset_fields = ('status', 'advertiser', 'discount_code')
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'commissions'

    def get_queryset(self):
        queryset = Commission.objects.select_related('advertiser', 'discount_code', 'booking').order_by('-created_at')
        user = self.request.user
        if is_manager(user):
            return queryset
        return queryset.filter(advertiser=user)

    @extend_schema(
        summary="Mark commissions paid",
        description="Flip the given pending commissions to paid (managers only)",
        request=MarkPaidSerializer,
        responses={200: OpenApiResponse(description="Number of commissions updated")},
        examples=[OpenApiExample("Example response", value={"updated": 3}, response_only=True)],
    )
    @action(detail=False, methods=['post'], url_path='mark-paid', permission_classes=[IsManager])
    def mark_paid(self, request):
        ser = MarkPaidSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        updated = mark_commissions_paid(Commission.objects.filter(pk__in=ser.validated_data['ids']))
        return Response({"updated": updated})

    @extend_schema(
        summary="Monthly commission report",
        description=(
            "Per-code usage, revenue and tier commission for one month. "
            "Tiers by usage rate: 100% -> 10%, 75% or more -> 5%, over 50% -> 3%. "
            "Managers pass `advertiser`; advertisers get their own report."
        ),
        parameters=[
            OpenApiParameter("year", OpenApiTypes.INT, description="2020-2100, defaults to this year"),
            OpenApiParameter("month", OpenApiTypes.INT, description="1-12, defaults to this month"),
            OpenApiParameter("advertiser", OpenApiTypes.INT, description="Advertiser id (managers only)"),
        ],
        responses={
            200: MonthlyReportSerializer,
            400: OpenApiResponse(description="Invalid year or month"),
            403: OpenApiResponse(description="Advertiser or manager role required"),
        },
    )
    @action(detail=False, methods=['get'], url_path='monthly-report', filter_backends=[])
    def monthly_report(self, request):
        query = MonthlyReportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        today = timezone.localdate()
        year = query.validated_data.get('year', today.year)
        month = query.validated_data.get('month', today.month)

        user = request.user
        advertiser_id = query.validated_data.get('advertiser')
        if is_manager(user) and advertiser_id:
            advertiser = get_user_model().objects.advertisers().filter(pk=advertiser_id).first()
            if advertiser is None:
                raise NotFound("Advertiser not found.")
        elif is_advertiser(user):
            advertiser = user
        else:
            raise PermissionDenied("Only advertisers have commission reports.")

        report = monthly_commission_report(advertiser, year, month)
        return Response(MonthlyReportSerializer(report).data)
