import logging
from dataclasses import asdict

from django.db.models import Q, Sum
from rest_framework import mixins, viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema_view, extend_schema, OpenApiParameter, OpenApiTypes,
    OpenApiExample, OpenApiResponse
)
from django_filters import rest_framework as df

from src.users.permissions import IsManager, is_manager

from .. import lifecycle, payments
from ..models import Booking
from ..permissions import IsBookingParticipant
from ..serializers import (
    BookingCreateSerializer, BookingSerializer, BookingStatsSerializer,
    CheckoutRequestSerializer, CheckoutSessionSerializer,
    VerifyPaymentRequestSerializer, VerifyPaymentResultSerializer, ExpireResultSerializer,
)
from ..throttling import ActionScopedThrottleMixin, ScopedRateThrottleIsolated
from .filters import BookingFilter

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List bookings",
        description=(
            "Customers see their own bookings, advertisers see bookings on their "
            "assigned packages, managers see everything."
        ),
        parameters=[
            OpenApiParameter("package", OpenApiTypes.INT, description="Filter by package id"),
            OpenApiParameter("status", OpenApiTypes.STR, description="pending | confirmed | cancelled"),
            OpenApiParameter("payment_status", OpenApiTypes.STR, description="pending | completed | failed"),
            OpenApiParameter("date_from", OpenApiTypes.DATE, description="Travel date from"),
            OpenApiParameter("date_to", OpenApiTypes.DATE, description="Travel date to"),
        ],
        responses={200: BookingSerializer},
    ),
    create=extend_schema(
        summary="Create booking",
        description=(
            "Hold seats on a package and create a pending booking. Amounts are "
            "computed on the server; the hold expires unless paid in time."
        ),
        request=BookingCreateSerializer,
        responses={
            201: BookingSerializer,
            400: OpenApiResponse(description="Validation error (capacity, date, discount code)"),
            401: OpenApiResponse(description="Authentication required"),
        },
        examples=[
            OpenApiExample(
                "Request",
                value={"package": 1, "guest_count": 2, "booking_date": "2030-01-15", "discount_code": "JOH10A3F9"},
                request_only=True,
            )
        ],
    ),
    retrieve=extend_schema(
        summary="Get booking details",
        responses={
            200: BookingSerializer,
            404: OpenApiResponse(description="Booking not found"),
        },
    ),
)
class BookingViewSet(ActionScopedThrottleMixin,
                     mixins.CreateModelMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """
    Bookings and their lifecycle: create, pay through checkout, verify,
    cancel. Bookings are never edited or deleted through the API.
    """
    serializer_class = BookingSerializer
    permission_classes = (permissions.IsAuthenticated, IsBookingParticipant)
    filter_backends = (df.DjangoFilterBackend,)
    filterset_class = BookingFilter
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'bookings'
    throttle_scope_map = {'checkout': 'payments', 'verify_payment': 'payments'}

    def get_queryset(self):
        user = self.request.user
        queryset = Booking.objects.select_related(
            'package', 'customer', 'discount_code', 'global_code'
        ).order_by('-created_at')
        if is_manager(user):
            return queryset
        return queryset.filter(Q(customer=user) | Q(package__advertisers=user)).distinct()

    def get_serializer_class(self):
        if self.action == 'create':
            return BookingCreateSerializer
        return BookingSerializer

    def create(self, request, *args, **kwargs):
        ser = BookingCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        booking = lifecycle.create_booking(
            customer=request.user,
            package_id=data['package'].pk,
            guest_count=data['guest_count'],
            booking_date=data['booking_date'],
            discount_code=data['discount_code'],
            contact_name=data['contact_name'],
            contact_phone=data['contact_phone'],
            contact_email=data['contact_email'],
            special_requests=data['special_requests'],
        )
        out = BookingSerializer(booking, context=self.get_serializer_context())
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Start checkout",
        description=(
            "Create a Stripe Checkout Session for a pending booking (customer only). "
            "Without a Stripe key a mock session is returned. Fully discounted "
            "bookings are confirmed immediately and `paid` is true."
        ),
        request=CheckoutRequestSerializer,
        responses={
            200: CheckoutSessionSerializer,
            403: OpenApiResponse(description="Not the booking's customer"),
            409: OpenApiResponse(description="Booking is not pending"),
            502: OpenApiResponse(description="Payment provider error"),
        },
    )
    @action(detail=True, methods=['post'])
    def checkout(self, request, pk=None):
        booking = self.get_object()
        ser = CheckoutRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        session = payments.create_checkout_session(booking, origin=ser.validated_data.get('origin') or None)
        return Response(CheckoutSessionSerializer(asdict(session)).data)

    @extend_schema(
        summary="Verify payment",
        description=(
            "Ask the payment provider whether the checkout session was paid and "
            "confirm the booking if so. Safe to call repeatedly."
        ),
        request=VerifyPaymentRequestSerializer,
        responses={
            200: VerifyPaymentResultSerializer,
            400: OpenApiResponse(description="Unknown or mismatched session"),
            409: OpenApiResponse(description="Booking was cancelled"),
            502: OpenApiResponse(description="Payment provider error"),
        },
    )
    @action(detail=True, methods=['post'], url_path='verify-payment')
    def verify_payment(self, request, pk=None):
        booking = self.get_object()
        ser = VerifyPaymentRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = payments.verify_checkout_session(booking, ser.validated_data.get('session_id') or None)
        return Response({
            'paid': result.paid,
            'session_status': result.session_status,
            'payment_status': result.payment_status,
            'booking': BookingSerializer(result.booking, context=self.get_serializer_context()).data,
        })

    @extend_schema(
        summary="Cancel booking",
        description="Cancel a pending booking and release its seats (customer or manager)",
        request=None,
        responses={
            200: BookingSerializer,
            403: OpenApiResponse(description="Permission denied"),
            409: OpenApiResponse(description="Booking is already confirmed or cancelled"),
        },
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        booking = lifecycle.cancel_booking(self.get_object(), reason=f"cancelled by user {request.user.pk}")
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @extend_schema(
        summary="Expire stale bookings",
        description="Cancel every pending booking whose hold has run out (managers only)",
        request=None,
        responses={200: ExpireResultSerializer},
    )
    @action(detail=False, methods=['post'], permission_classes=[IsManager])
    def expire(self, request):
        count = lifecycle.expire_pending_bookings()
        return Response({"detail": f"{count} booking(s) expired.", "expired": count})

    @extend_schema(
        summary="Booking statistics",
        description="Counts and confirmed revenue over the bookings visible to the caller",
        responses={
            200: BookingStatsSerializer,
        },
        examples=[
            OpenApiExample(
                "Example response",
                value={
                    "total_bookings": 25,
                    "pending_bookings": 3,
                    "confirmed_bookings": 20,
                    "cancelled_bookings": 2,
                    "total_guests": 48,
                    "total_revenue": "96000.00",
                },
                response_only=True,
            )
        ],
    )
    @action(detail=False, methods=['get'])
    def stats(self, request):
        queryset = Booking.objects.filter(pk__in=self.filter_queryset(self.get_queryset()).values('pk'))
        confirmed = queryset.filter(status=Booking.CONFIRMED)
        totals = confirmed.aggregate(guests=Sum('guest_count'), revenue=Sum('final_amount'))
        data = {
            'total_bookings': queryset.count(),
            'pending_bookings': queryset.filter(status=Booking.PENDING).count(),
            'confirmed_bookings': confirmed.count(),
            'cancelled_bookings': queryset.filter(status=Booking.CANCELLED).count(),
            'total_guests': totals['guests'] or 0,
            'total_revenue': totals['revenue'] or 0,
        }
        return Response(BookingStatsSerializer(data).data)
