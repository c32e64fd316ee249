from .billing import CREDIT_PLANS, CreditTransaction, PaymentIntent, Product
from .dashboard import CreditStats, DashboardData
from .summary import (
    MeetingMetadata,
    SummaryDetail,
    SummaryListItem,
    SummaryPage,
    SummaryStatus,
    TranscriptItem,
)
from .user import AuthTokens, SessionUser, UserProfile

__all__ = [
    "AuthTokens",
    "CREDIT_PLANS",
    "CreditStats",
    "CreditTransaction",
    "DashboardData",
    "MeetingMetadata",
    "PaymentIntent",
    "Product",
    "SessionUser",
    "SummaryDetail",
    "SummaryListItem",
    "SummaryPage",
    "SummaryStatus",
    "TranscriptItem",
    "UserProfile",
]
