from .package import TravelPackage
from .discount_code import DiscountCode, GlobalDiscountCode
from .booking import Booking
from .commission import Commission
from .inclusion import InclusionType, PackageInclusion

__all__ = [
    "TravelPackage",
    "DiscountCode",
    "GlobalDiscountCode",
    "Booking",
    "Commission",
    "InclusionType",
    "PackageInclusion",
]
