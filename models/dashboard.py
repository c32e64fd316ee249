from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .billing import CreditTransaction
from .summary import SummaryListItem
from .user import UserProfile

RECENT_TRANSACTIONS_SHOWN = 3


@dataclass
class CreditStats:
    current_balance: int
    total_used: int
    recent_transactions: List[CreditTransaction] = field(default_factory=list)

    @property
    def shown_transactions(self) -> List[CreditTransaction]:
        return self.recent_transactions[:RECENT_TRANSACTIONS_SHOWN]


@dataclass
class DashboardData:
    user: UserProfile
    recent_summaries: List[SummaryListItem]
    recent_transactions: List[CreditTransaction]
    credits_used: int = 0

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> "DashboardData":
        data = data or {}
        try:
            credits_used = int(data.get("creditsUsed") or 0)
        except (TypeError, ValueError):
            credits_used = 0
        return cls(
            user=UserProfile.from_api(data.get("user")),
            recent_summaries=[SummaryListItem.from_api(s) for s in data.get("recentSummaries") or []],
            recent_transactions=[CreditTransaction.from_api(t) for t in data.get("recentTransactions") or []],
            credits_used=credits_used,
        )

    @property
    def credit_stats(self) -> CreditStats:
        return CreditStats(
            current_balance=self.user.credits,
            total_used=self.credits_used,
            recent_transactions=self.recent_transactions,
        )
