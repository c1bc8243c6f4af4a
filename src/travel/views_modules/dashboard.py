from datetime import date

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from src.users.permissions import IsAdvertiser, IsManager

from ..models import Booking, Commission, DiscountCode, TravelPackage
from ..serializers import AdvertiserStatsSerializer, ManagerStatsSerializer
from ..throttling import ScopedRateThrottleIsolated

MONTHS_BACK = 12


def _months_ago(day, months):
    index = day.year * 12 + day.month - 1 - months
    return date(index // 12, index % 12 + 1, 1)


def monthly_booking_stats(today=None, months=MONTHS_BACK):
    today = today or timezone.localdate()
    start = _months_ago(today, months - 1)
    rows = (
        Booking.objects.filter(created_at__date__gte=start)
        .annotate(period=TruncMonth('created_at'))
        .values('period')
        .annotate(
            bookings=Count('id'),
            confirmed=Count('id', filter=Q(status=Booking.CONFIRMED)),
            revenue=Sum('final_amount', filter=Q(payment_status=Booking.PAYMENT_COMPLETED)),
        )
    )
    by_month = {row['period'].strftime('%Y-%m'): row for row in rows}

    stats = []
    for offset in range(months - 1, -1, -1):
        key = _months_ago(today, offset).strftime('%Y-%m')
        row = by_month.get(key, {})
        stats.append({
            'month': key,
            'bookings': row.get('bookings', 0),
            'confirmed': row.get('confirmed', 0),
            'revenue': row.get('revenue') or 0,
        })
    return stats


class ManagerStatsView(APIView):
    permission_classes = (IsManager,)
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'dashboard'

    @extend_schema(summary="Manager dashboard", responses={200: ManagerStatsSerializer})
    def get(self, request):
        User = get_user_model()
        today = timezone.localdate()
        bookings = Booking.objects.all()
        data = {
            'total_users': User.objects.count(),
            'total_advertisers': User.objects.advertisers().count(),
            'total_packages': TravelPackage.objects.count(),
            'active_packages': TravelPackage.objects.filter(is_active=True).count(),
            'total_bookings': bookings.count(),
            'bookings_this_month': bookings.filter(
                created_at__date__gte=today.replace(day=1)
            ).count(),
            'pending_bookings': bookings.filter(status=Booking.PENDING).count(),
            'total_revenue': bookings.filter(
                payment_status=Booking.PAYMENT_COMPLETED
            ).aggregate(total=Sum('final_amount'))['total'] or 0,
            'pending_commissions': Commission.objects.filter(
                status=Commission.PENDING
            ).aggregate(total=Sum('amount'))['total'] or 0,
            'monthly': monthly_booking_stats(today),
        }
        return Response(ManagerStatsSerializer(data).data)


class AdvertiserStatsView(APIView):
    permission_classes = (IsAdvertiser,)
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'dashboard'

    @extend_schema(summary="Advertiser dashboard", responses={200: AdvertiserStatsSerializer})
    def get(self, request):
        user = request.user
        codes = DiscountCode.objects.filter(advertiser=user)
        commissions = Commission.objects.filter(advertiser=user).aggregate(
            pending=Sum('amount', filter=Q(status=Commission.PENDING)),
            paid=Sum('amount', filter=Q(status=Commission.PAID)),
        )
        data = {
            'assigned_packages': user.assigned_packages.count(),
            'discount_codes': codes.count(),
            'active_discount_codes': codes.filter(is_active=True).count(),
            'code_uses': codes.aggregate(total=Sum('current_uses'))['total'] or 0,
            'bookings': Booking.objects.filter(discount_code__advertiser=user).count(),
            'commission_pending': commissions['pending'] or 0,
            'commission_paid': commissions['paid'] or 0,
        }
        return Response(AdvertiserStatsSerializer(data).data)
