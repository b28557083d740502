"""Market data types: price ticks and quote search results."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class PriceTick:
    """A single simulated price change."""

    ticker: str
    price: Decimal
    previous_price: Decimal | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError("Price must be positive")

    @property
    def change(self) -> Decimal:
        """Get the price change since the previous tick."""
        if self.previous_price is None:
            return Decimal("0")
        return self.price - self.previous_price


@dataclass(frozen=True)
class Quote:
    """A ticker search result."""

    ticker: str
    company_name: str
    price: Decimal
