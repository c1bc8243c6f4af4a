import logging

from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiExample, OpenApiResponse
)
from django_filters import rest_framework as df

from src.users.permissions import IsManager, is_manager

from ..discounts import validate_code
from ..models import DiscountCode, GlobalDiscountCode
from ..permissions import IsCodeOwnerOrManager, IsManagerOrAdvertiserReadOnly
from ..serializers import (
    DiscountCodeSerializer, GlobalDiscountCodeSerializer,
    DiscountValidateSerializer, DiscountValidationResultSerializer,
)
from ..throttling import ActionScopedThrottleMixin, ScopedRateThrottleIsolated

logger = logging.getLogger(__name__)


def _crud_schema(label, serializer):
    return dict(
        list=extend_schema(summary=f"List {label}s", responses={200: serializer}),
        create=extend_schema(
            summary=f"Create {label}",
            description="Leave `code` empty to have one generated (managers only)",
            responses={
                201: serializer,
                400: OpenApiResponse(description="Validation error or duplicate code"),
                403: OpenApiResponse(description="Manager role required"),
            },
        ),
        retrieve=extend_schema(
            summary=f"Get {label}",
            responses={200: serializer, 404: OpenApiResponse(description="Code not found")},
        ),
        update=extend_schema(
            summary=f"Update {label}",
            responses={
                200: serializer,
                400: OpenApiResponse(description="Validation error"),
                403: OpenApiResponse(description="Manager role required"),
            },
        ),
        partial_update=extend_schema(
            summary=f"Partial update {label}",
            responses={
                200: serializer,
                400: OpenApiResponse(description="Validation error"),
                403: OpenApiResponse(description="Manager role required"),
            },
        ),
        destroy=extend_schema(
            summary=f"Delete {label}",
            responses={
                204: OpenApiResponse(description="Deleted"),
                403: OpenApiResponse(description="Manager role required"),
            },
        ),
    )


class ToggleActiveMixin:
    @extend_schema(
        summary="Toggle code",
        description="Activate or deactivate a discount code (managers only)",
        request=None,
        responses={200: OpenApiResponse(description="Code with its new state")},
    )
    @action(detail=True, methods=['post'], permission_classes=[IsManager])
    def toggle(self, request, pk=None):
        code = self.get_object()
        code.is_active = not code.is_active
        code.save(update_fields=['is_active', 'updated_at'])
        logger.info("Discount code %s %s by %s", code.code,
                    "activated" if code.is_active else "deactivated", request.user.pk)
        return Response(self.get_serializer(code).data)


@extend_schema_view(**_crud_schema("advertiser discount code", DiscountCodeSerializer))
class DiscountCodeViewSet(ActionScopedThrottleMixin, ToggleActiveMixin, viewsets.ModelViewSet):
    """
    Advertiser discount codes.

    Managers issue and edit codes; an advertiser sees only their own.
    `validate` is open to anyone.
    """
    serializer_class = DiscountCodeSerializer
    permission_classes = (IsManagerOrAdvertiserReadOnly, IsCodeOwnerOrManager)
    filter_backends = (df.DjangoFilterBackend,)
    filterset_fields = ('advertiser', 'package', 'is_active', 'discount_type')
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'discount_codes'
    throttle_scope_map = {'validate': 'discount_validate'}

    def get_queryset(self):
        queryset = DiscountCode.objects.select_related('advertiser', 'package').order_by('-created_at')
        user = self.request.user
        if is_manager(user):
            return queryset
        if not user.is_authenticated:
            return queryset.none()
        return queryset.filter(advertiser=user)

    def perform_create(self, serializer):
        code = serializer.save()
        logger.info("Discount code %s issued to advertiser %s by %s",
                    code.code, code.advertiser_id, self.request.user.pk)

    @extend_schema(
        summary="Validate discount code",
        description=(
            "Check a code against a package. With `guest_count` the response "
            "includes the discounted price. Checks: exists, active, not expired, "
            "under the usage cap, applicable to the package, value in range."
        ),
        request=DiscountValidateSerializer,
        responses={
            200: DiscountValidationResultSerializer,
            400: DiscountValidationResultSerializer,
            429: OpenApiResponse(description="Too many attempts"),
        },
        examples=[
            OpenApiExample(
                "Valid",
                value={
                    "valid": True, "reason": None, "detail": "Discount code applied.",
                    "code": "JOH10A3F9", "code_type": "advertiser",
                    "discount_type": "percentage", "discount_value": "10.00",
                    "quote": {
                        "unit_price": "900.00", "guest_count": 2, "subtotal": "1800.00",
                        "discount_amount": "180.00", "final_amount": "1620.00",
                    },
                },
                response_only=True, status_codes=["200"],
            ),
            OpenApiExample(
                "Rejected",
                value={"valid": False, "reason": "expired", "detail": "This discount code has expired."},
                response_only=True, status_codes=["400"],
            ),
        ],
    )
    @action(detail=False, methods=['post'], permission_classes=[permissions.AllowAny])
    def validate(self, request):
        ser = DiscountValidateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        check = validate_code(data['code'], data['package'], guest_count=data.get('guest_count'))
        if not check.valid:
            return Response(
                {"valid": False, "reason": check.reason, "detail": check.detail},
                status=status.HTTP_400_BAD_REQUEST,
            )

        payload = {
            "valid": True,
            "reason": None,
            "detail": "Discount code applied.",
            "code": check.code.code,
            "code_type": check.kind,
            "discount_type": check.code.discount_type,
            "discount_value": check.code.discount_value,
            "quote": check.quote.as_dict() if check.quote else None,
        }
        return Response(DiscountValidationResultSerializer(payload).data)


@extend_schema_view(**_crud_schema("global discount code", GlobalDiscountCodeSerializer))
class GlobalDiscountCodeViewSet(ToggleActiveMixin, viewsets.ModelViewSet):
    """Platform-wide codes; managers only."""
    serializer_class = GlobalDiscountCodeSerializer
    permission_classes = (IsManager,)
    filter_backends = (df.DjangoFilterBackend,)
    filterset_fields = ('is_active', 'discount_type')
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'discount_codes'

    def get_queryset(self):
        return GlobalDiscountCode.objects.select_related('created_by').order_by('-created_at')

    def perform_create(self, serializer):
        code = serializer.save(created_by=self.request.user)
        logger.info("Global discount code %s created by %s", code.code, self.request.user.pk)
