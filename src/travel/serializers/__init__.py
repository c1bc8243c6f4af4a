from .common import PublicUserTinySerializer, TagListField
from .package import TravelPackageSerializer, AssignAdvertisersSerializer, TagCountSerializer
from .booking import (
    BookingCreateSerializer, BookingSerializer, BookingStatsSerializer,
    CheckoutRequestSerializer, CheckoutSessionSerializer,
    VerifyPaymentRequestSerializer, VerifyPaymentResultSerializer, ExpireResultSerializer,
)
from .discount_code import (
    DiscountCodeSerializer, GlobalDiscountCodeSerializer,
    DiscountValidateSerializer, DiscountValidationResultSerializer, PriceQuoteSerializer,
)
from .commission import (
    CommissionSerializer, MarkPaidSerializer,
    MonthlyReportQuerySerializer, MonthlyReportSerializer,
)
from .dashboard import ManagerStatsSerializer, AdvertiserStatsSerializer
from .inclusion import (
    InclusionTypeSerializer, PackageInclusionSerializer, PackageInclusionsUpdateSerializer,
)

__all__ = [
    "PublicUserTinySerializer",
    "TagListField",
    "TravelPackageSerializer",
    "AssignAdvertisersSerializer",
    "TagCountSerializer",
    "BookingCreateSerializer",
    "BookingSerializer",
    "BookingStatsSerializer",
    "CheckoutRequestSerializer",
    "CheckoutSessionSerializer",
    "VerifyPaymentRequestSerializer",
    "VerifyPaymentResultSerializer",
    "ExpireResultSerializer",
    "DiscountCodeSerializer",
    "GlobalDiscountCodeSerializer",
    "DiscountValidateSerializer",
    "DiscountValidationResultSerializer",
    "PriceQuoteSerializer",
    "CommissionSerializer",
    "MarkPaidSerializer",
    "MonthlyReportQuerySerializer",
    "MonthlyReportSerializer",
    "ManagerStatsSerializer",
    "AdvertiserStatsSerializer",
    "InclusionTypeSerializer",
    "PackageInclusionSerializer",
    "PackageInclusionsUpdateSerializer",
]
