from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views_modules import (
    TravelPackageViewSet, BookingViewSet, DiscountCodeViewSet, GlobalDiscountCodeViewSet,
    CommissionViewSet, ManagerStatsView, AdvertiserStatsView, InclusionTypeViewSet,
)

app_name = "travel"

router = DefaultRouter()
router.register(r"packages", TravelPackageViewSet, basename="package")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"discount-codes", DiscountCodeViewSet, basename="discountcode")
router.register(r"global-discount-codes", GlobalDiscountCodeViewSet, basename="globaldiscountcode")
router.register(r"commissions", CommissionViewSet, basename="commission")
router.register(r"inclusions", InclusionTypeViewSet, basename="inclusion")

urlpatterns = [
    path("", include(router.urls)),
    path("manager/stats/", ManagerStatsView.as_view(), name="manager-stats"),
    path("advertiser/stats/", AdvertiserStatsView.as_view(), name="advertiser-stats"),
]
