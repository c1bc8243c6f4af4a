import logging

from rest_framework import status, viewsets
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes, OpenApiResponse
from django_filters import rest_framework as df

from src.users.permissions import IsManagerOrReadOnly, is_manager

from ..models import InclusionType
from ..serializers import InclusionTypeSerializer
from ..throttling import ScopedRateThrottleIsolated

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List inclusion types",
        description="Catalog of things a package can include, by display order. Managers also see inactive ones.",
        parameters=[OpenApiParameter("category", OpenApiTypes.STR, description="Exact category")],
        responses={200: InclusionTypeSerializer},
    ),
    create=extend_schema(
        summary="Create inclusion type",
        description="Managers only. Posting an existing name (any case) returns that inclusion with 200.",
        responses={
            200: InclusionTypeSerializer,
            201: InclusionTypeSerializer,
            400: OpenApiResponse(description="Validation error"),
            403: OpenApiResponse(description="Manager role required"),
        },
    ),
    retrieve=extend_schema(summary="Get inclusion type"),
    update=extend_schema(summary="Update inclusion type"),
    partial_update=extend_schema(summary="Partial update inclusion type"),
    destroy=extend_schema(summary="Delete inclusion type"),
)
class InclusionTypeViewSet(viewsets.ModelViewSet):
    serializer_class = InclusionTypeSerializer
    permission_classes = (IsManagerOrReadOnly,)
    filter_backends = (df.DjangoFilterBackend,)
    filterset_fields = ('category', 'is_active')
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'packages'

    def get_queryset(self):
        queryset = InclusionType.objects.all()
        if not is_manager(self.request.user):
            queryset = queryset.filter(is_active=True)
        return queryset

    def create(self, request, *args, **kwargs):
        name = str(request.data.get('name') or '').strip()
        existing = InclusionType.objects.filter(name__iexact=name).first() if name else None
        if existing is not None:
            return Response(self.get_serializer(existing).data, status=status.HTTP_200_OK)
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        inclusion = serializer.save()
        logger.info("Inclusion type %s (%s) created by %s", inclusion.pk, inclusion.name, self.request.user.pk)
