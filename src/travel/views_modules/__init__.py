from .package import TravelPackageViewSet
from .booking import BookingViewSet
from .discount_code import DiscountCodeViewSet, GlobalDiscountCodeViewSet
from .commission import CommissionViewSet
from .dashboard import ManagerStatsView, AdvertiserStatsView
from .inclusion import InclusionTypeViewSet
from .filters import PackageFilter, BookingFilter

__all__ = [
    "TravelPackageViewSet",
    "BookingViewSet",
    "DiscountCodeViewSet",
    "GlobalDiscountCodeViewSet",
    "CommissionViewSet",
    "ManagerStatsView",
    "AdvertiserStatsView",
    "InclusionTypeViewSet",
    "PackageFilter",
    "BookingFilter",
]
