"""Market data: simulated prices and quote search."""

from hypetrad.market.feed import (
    DEFAULT_PRICES,
    PriceFeed,
    ScriptedPriceFeed,
    SimulatedPriceFeed,
    StaticPriceFeed,
)
from hypetrad.market.quotes import (
    LocalQuotesProvider,
    QuotesProvider,
    RapidApiQuotesProvider,
    create_quotes_provider,
)
from hypetrad.market.types import PriceTick, Quote

__all__ = [
    "DEFAULT_PRICES",
    "PriceFeed",
    "PriceTick",
    "Quote",
    "QuotesProvider",
    "LocalQuotesProvider",
    "RapidApiQuotesProvider",
    "ScriptedPriceFeed",
    "SimulatedPriceFeed",
    "StaticPriceFeed",
    "create_quotes_provider",
]
