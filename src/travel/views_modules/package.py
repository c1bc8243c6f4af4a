import logging
from collections import Counter

from rest_framework import viewsets, permissions, filters, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse
)
from django.db import transaction
from django_filters import rest_framework as df

from src.users.permissions import IsManager, IsManagerOrReadOnly, is_manager

from ..discounts import validate_code
from ..models import TravelPackage, PackageInclusion
from ..pagination import PackagePagination
from ..pricing import PricingError, quote_for_package
from ..serializers import (
    TravelPackageSerializer, AssignAdvertisersSerializer, TagCountSerializer,
    PriceQuoteSerializer, PackageInclusionSerializer, PackageInclusionsUpdateSerializer,
)
from ..throttling import ScopedRateThrottleIsolated
from .filters import PackageFilter

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List travel packages",
        description="Paginated catalog. Managers also see inactive packages.",
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, description="Search in title, description, location and tags"),
            OpenApiParameter("location", OpenApiTypes.STR, description="Location contains"),
            OpenApiParameter("price_min", OpenApiTypes.NUMBER, description="Minimum base price"),
            OpenApiParameter("price_max", OpenApiTypes.NUMBER, description="Maximum base price"),
            OpenApiParameter("duration_min", OpenApiTypes.INT, description="Minimum duration (days)"),
            OpenApiParameter("duration_max", OpenApiTypes.INT, description="Maximum duration (days)"),
            OpenApiParameter("tag", OpenApiTypes.STR, description="Exact tag"),
            OpenApiParameter("available_on", OpenApiTypes.DATE, description="Travel date (YYYY-MM-DD)"),
            OpenApiParameter("has_capacity", OpenApiTypes.BOOL, description="Only packages with seats left"),
            OpenApiParameter("mine", OpenApiTypes.BOOL, description="Only packages assigned to me"),
        ],
        responses={
            200: TravelPackageSerializer,
            400: OpenApiResponse(description="Invalid filter parameters"),
        }
    ),
    create=extend_schema(
        summary="Create package",
        description="Create a travel package (managers only)",
        responses={
            201: TravelPackageSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Manager role required"),
        }
    ),
    retrieve=extend_schema(
        summary="Get package details",
        responses={
            200: TravelPackageSerializer,
            404: OpenApiResponse(description="Package not found"),
        }
    ),
    update=extend_schema(
        summary="Update package",
        description="Update a package (managers only)",
        responses={
            200: TravelPackageSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Manager role required"),
            404: OpenApiResponse(description="Package not found"),
        }
    ),
    partial_update=extend_schema(
        summary="Partial update package",
        description="Partially update a package (managers only)",
        responses={
            200: TravelPackageSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Manager role required"),
            404: OpenApiResponse(description="Package not found"),
        }
    ),
    destroy=extend_schema(
        summary="Delete package",
        description="Delete a package (managers only)",
        responses={
            204: OpenApiResponse(description="Package deleted"),
            403: OpenApiResponse(description="Manager role required"),
            404: OpenApiResponse(description="Package not found"),
        }
    ),
)
class TravelPackageViewSet(viewsets.ModelViewSet):
    """
    Travel package catalog.

    Anyone can browse active packages; managers maintain the catalog and
    assign advertisers.
    """
    serializer_class = TravelPackageSerializer
    permission_classes = (IsManagerOrReadOnly,)
    pagination_class = PackagePagination
    filter_backends = (df.DjangoFilterBackend, filters.OrderingFilter)
    filterset_class = PackageFilter
    ordering_fields = ['price', 'created_at', 'duration_days', 'available_from']
    ordering = ['-created_at']
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'packages'

    def get_queryset(self):
        queryset = TravelPackage.objects.select_related('created_by').prefetch_related('advertisers')
        if not is_manager(self.request.user):
            queryset = queryset.filter(is_active=True)
        return queryset

    def perform_create(self, serializer):
        package = serializer.save(created_by=self.request.user)
        logger.info("Package %s created by %s", package.pk, self.request.user.pk)

    def perform_destroy(self, instance):
        logger.info("Package %s deleted by %s", instance.pk, self.request.user.pk)
        instance.delete()

    @extend_schema(
        summary="List tags",
        description="Distinct tags across visible packages, most used first",
        responses={200: TagCountSerializer(many=True)},
        examples=[
            OpenApiExample(
                "Example response",
                value=[{"tag": "beach", "count": 12}, {"tag": "family", "count": 7}],
                response_only=True,
            )
        ],
    )
    @action(detail=False, methods=['get'], pagination_class=None, filter_backends=[])
    def tags(self, request):
        counter = Counter()
        for raw in self.get_queryset().exclude(tags="").values_list('tags', flat=True):
            counter.update({t.strip().lower() for t in raw.split(",") if t.strip()})
        data = [{"tag": tag, "count": count} for tag, count in sorted(counter.items(), key=lambda i: (-i[1], i[0]))]
        return Response(TagCountSerializer(data, many=True).data)

    @extend_schema(
        summary="Assign advertisers",
        description="Replace the advertisers allowed to promote this package (managers only)",
        request=AssignAdvertisersSerializer,
        responses={
            200: TravelPackageSerializer,
            400: OpenApiResponse(description="Unknown or non-advertiser user ids"),
            403: OpenApiResponse(description="Manager role required"),
        },
    )
    @action(detail=True, methods=['post'], url_path='assign-advertisers', permission_classes=[IsManager])
    def assign_advertisers(self, request, pk=None):
        package = self.get_object()
        ser = AssignAdvertisersSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        package.advertisers.set(ser.validated_data['advertisers'])
        logger.info("Package %s advertisers set to %s", package.pk, [u.pk for u in ser.validated_data['advertisers']])
        return Response(self.get_serializer(self.get_object()).data)

    @extend_schema(
        summary="Toggle package visibility",
        description="Activate or deactivate a package (managers only)",
        responses={
            200: TravelPackageSerializer,
            403: OpenApiResponse(description="Manager role required"),
        },
    )
    @action(detail=True, methods=['post'], permission_classes=[IsManager])
    def toggle(self, request, pk=None):
        package = self.get_object()
        package.is_active = not package.is_active
        package.save(update_fields=['is_active', 'updated_at'])
        return Response(self.get_serializer(package).data)

    @extend_schema(
        summary="Price quote",
        description="Server-side price for a guest count, optionally with a discount code",
        parameters=[
            OpenApiParameter("guests", OpenApiTypes.INT, required=True, description="Number of guests"),
            OpenApiParameter("code", OpenApiTypes.STR, description="Discount code"),
        ],
        responses={
            200: PriceQuoteSerializer,
            400: OpenApiResponse(description="Invalid guest count or discount code"),
        },
        examples=[
            OpenApiExample(
                "Example response",
                value={
                    "unit_price": "900.00", "guest_count": 2, "subtotal": "1800.00",
                    "discount_amount": "360.00", "final_amount": "1440.00",
                },
                response_only=True,
            )
        ],
    )
    @action(detail=True, methods=['get'], permission_classes=[permissions.AllowAny])
    def quote(self, request, pk=None):
        package = self.get_object()
        try:
            guests = int(request.query_params.get('guests', ''))
        except ValueError:
            raise ValidationError({"guests": "guests must be an integer."})

        discount = None
        code = (request.query_params.get('code') or '').strip()
        if code:
            check = validate_code(code, package)
            if not check.valid:
                return Response(
                    {"code": check.detail, "reason": check.reason},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            discount = check.applied_discount()

        try:
            quote = quote_for_package(package, guests, discount)
        except PricingError as exc:
            raise ValidationError({"guests": str(exc)})
        return Response(PriceQuoteSerializer(quote.as_dict()).data)

    @extend_schema(
        methods=['GET'],
        summary="Package inclusions",
        description="What the package includes or explicitly leaves out, by display order",
        responses={200: PackageInclusionSerializer(many=True)},
    )
    @extend_schema(
        methods=['PUT'],
        summary="Replace package inclusions",
        description="Replace the whole inclusion list of a package (managers only)",
        request=PackageInclusionsUpdateSerializer,
        responses={
            200: PackageInclusionSerializer(many=True),
            400: OpenApiResponse(description="Unknown, inactive or repeated inclusions"),
            403: OpenApiResponse(description="Manager role required"),
        },
        examples=[
            OpenApiExample(
                "Ids only",
                value={"inclusion_ids": [1, 4, 7]},
                request_only=True,
            ),
            OpenApiExample(
                "With notes",
                value={"inclusions": [
                    {"inclusion": 1, "custom_note": "Two nights"},
                    {"inclusion": 5, "is_included": False, "custom_note": "Bring your own snorkel"},
                ]},
                request_only=True,
            ),
        ],
    )
    @action(detail=True, methods=['get', 'put'], pagination_class=None, filter_backends=[])
    def inclusions(self, request, pk=None):
        package = self.get_object()
        if request.method == 'PUT':
            ser = PackageInclusionsUpdateSerializer(data=request.data)
            ser.is_valid(raise_exception=True)
            items = ser.validated_data['items']
            with transaction.atomic():
                package.inclusion_links.all().delete()
                PackageInclusion.objects.bulk_create(
                    [PackageInclusion(package=package, **item) for item in items]
                )
            logger.info("Package %s inclusions set to %s", package.pk, [item['inclusion'].pk for item in items])
        links = package.inclusion_links.select_related('inclusion')
        return Response(PackageInclusionSerializer(links, many=True).data)
