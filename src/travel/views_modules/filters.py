from django.db.models import F, Q
from django_filters import rest_framework as df

from ..models import Booking, TravelPackage


class PackageFilter(df.FilterSet):
    price_min = df.NumberFilter(field_name='price', lookup_expr='gte', label='Price min')
    price_max = df.NumberFilter(field_name='price', lookup_expr='lte', label='Price max')
    location = df.CharFilter(field_name='location', lookup_expr='icontains', label='Location (contains)')
    duration_min = df.NumberFilter(field_name='duration_days', lookup_expr='gte', label='Duration min (days)')
    duration_max = df.NumberFilter(field_name='duration_days', lookup_expr='lte', label='Duration max (days)')

    q = df.CharFilter(method='filter_q', label='Search')
    tag = df.CharFilter(method='filter_tag', label='Tag')
    available_on = df.DateFilter(method='filter_available_on', label='Travel date (YYYY-MM-DD)')
    has_capacity = df.BooleanFilter(method='filter_has_capacity', label='Seats left')
    mine = df.BooleanFilter(method='filter_mine', label='Only packages assigned to me')

    def filter_q(self, queryset, name, value):
        terms = [t.strip() for t in (value or "").split() if t.strip()]
        for term in terms:
            queryset = queryset.filter(
                Q(title__icontains=term) |
                Q(description__icontains=term) |
                Q(location__icontains=term) |
                Q(tags__icontains=term)
            )
        return queryset

    def filter_tag(self, queryset, name, value):
        tag = (value or "").strip()
        if not tag:
            return queryset
        # tags are stored as "a,b,c"; match whole entries only
        return queryset.filter(
            Q(tags__iexact=tag) |
            Q(tags__istartswith=f"{tag},") |
            Q(tags__iendswith=f",{tag}") |
            Q(tags__icontains=f",{tag},")
        )

    def filter_available_on(self, queryset, name, value):
        return queryset.filter(
            Q(available_from__isnull=True) | Q(available_from__lte=value),
            Q(available_to__isnull=True) | Q(available_to__gte=value),
        )

    def filter_has_capacity(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(current_bookings__lt=F('max_guests'))
        return queryset.filter(current_bookings__gte=F('max_guests'))

    def filter_mine(self, queryset, name, value):
        if not value:
            return queryset
        user = getattr(getattr(self, 'request', None), 'user', None)
        if not user or not user.is_authenticated:
            return queryset.none()
        return queryset.filter(advertisers=user)

    class Meta:
        model = TravelPackage
        fields = [
            'q', 'price_min', 'price_max', 'location',
            'duration_min', 'duration_max',
            'tag', 'available_on', 'has_capacity', 'mine',
        ]


class BookingFilter(df.FilterSet):
    package = df.NumberFilter(field_name='package_id')
    status = df.ChoiceFilter(choices=Booking.STATUS_CHOICES)
    payment_status = df.ChoiceFilter(choices=Booking.PAYMENT_STATUS_CHOICES)
    date_from = df.DateFilter(field_name='booking_date', lookup_expr='gte', label='Travel date from')
    date_to = df.DateFilter(field_name='booking_date', lookup_expr='lte', label='Travel date to')

    class Meta:
        model = Booking
        fields = ['package', 'status', 'payment_status', 'date_from', 'date_to']
