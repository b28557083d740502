"""Portfolio valuation."""

from hypetrad.valuation.engine import PriceLookup, ValuationEngine
from hypetrad.valuation.types import (
    PALETTE,
    AllocationSlice,
    LotView,
    PortfolioSummary,
)

__all__ = [
    "PALETTE",
    "AllocationSlice",
    "LotView",
    "PortfolioSummary",
    "PriceLookup",
    "ValuationEngine",
]
