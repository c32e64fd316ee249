"""
Credit products, payment intents and ledger entries.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Product:
    """A credit pack. ``price`` is in cents."""
    id: str
    name: str
    price: int
    credits: int
    active: bool = True
    description: str = ""
    features: List[str] = field(default_factory=list)
    featured: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            price=_to_int(data.get("price")),
            credits=_to_int(data.get("credits")),
            active=bool(data.get("active", True)),
            description=data.get("description") or "",
            features=list(data.get("features") or []),
            featured=bool(data.get("featured", False)),
        )


# Shown when the backend catalog can't be fetched
CREDIT_PLANS = [
    Product(
        id="credit_100",
        name="100 Credits",
        price=499,
        credits=100,
        description="Perfect for individuals getting started with meeting summaries.",
        features=[
            "100 meeting credits",
            "Basic summary templates",
            "Email support",
        ],
    ),
    Product(
        id="credit_500",
        name="500 Credits",
        price=1999,
        credits=500,
        description="For professionals who need more frequent meeting summaries.",
        features=[
            "500 meeting credits",
            "Advanced summary templates",
            "Priority email support",
            "Export to PDF & DOCX",
        ],
        featured=True,
    ),
    Product(
        id="credit_1000",
        name="1000 Credits",
        price=3499,
        credits=1000,
        description="For teams and organizations with high-volume needs.",
        features=[
            "1000 meeting credits",
            "All Professional features",
            "24/7 priority support",
            "Team collaboration",
        ],
    ),
]


@dataclass
class PaymentIntent:
    client_secret: str
    amount: int
    currency: str
    credits: int
    product_name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PaymentIntent":
        return cls(
            client_secret=data.get("clientSecret") or "",
            amount=_to_int(data.get("amount")),
            currency=(data.get("currency") or "cad").upper(),
            credits=_to_int(data.get("credits")),
            product_name=data.get("productName") or "",
        )


@dataclass
class CreditTransaction:
    change: int
    reason: str
    date: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CreditTransaction":
        return cls(
            change=_to_int(data.get("change")),
            reason=data.get("reason") or "",
            date=data.get("date") or data.get("created_at"),
        )

    @property
    def signed_change(self) -> str:
        return f"+{self.change}" if self.change >= 0 else str(self.change)

    @property
    def is_credit(self) -> bool:
        return self.change >= 0
