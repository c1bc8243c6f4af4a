from rest_framework import serializers


class MonthlyBookingStatSerializer(serializers.Serializer):
    month = serializers.CharField(help_text="YYYY-MM")
    bookings = serializers.IntegerField()
    confirmed = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)


class ManagerStatsSerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    total_advertisers = serializers.IntegerField()
    total_packages = serializers.IntegerField()
    active_packages = serializers.IntegerField()
    total_bookings = serializers.IntegerField()
    bookings_this_month = serializers.IntegerField()
    pending_bookings = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_commissions = serializers.DecimalField(max_digits=14, decimal_places=2)
    monthly = MonthlyBookingStatSerializer(many=True)


class AdvertiserStatsSerializer(serializers.Serializer):
    assigned_packages = serializers.IntegerField()
    discount_codes = serializers.IntegerField()
    active_discount_codes = serializers.IntegerField()
    code_uses = serializers.IntegerField()
    bookings = serializers.IntegerField()
    commission_pending = serializers.DecimalField(max_digits=14, decimal_places=2)
    commission_paid = serializers.DecimalField(max_digits=14, decimal_places=2)
