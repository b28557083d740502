"""Ticker search for trade entry suggestions."""

import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

import aiohttp

from hypetrad.config import QuotesConfig
from hypetrad.market.types import Quote

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2

# Curated list used when no remote search is configured or it fails
LOCAL_QUOTES: tuple[Quote, ...] = (
    Quote("AAPL", "Apple Inc.", Decimal("185.50")),
    Quote("GOOGL", "Alphabet Inc.", Decimal("138.20")),
    Quote("MSFT", "Microsoft Corporation", Decimal("378.85")),
    Quote("TSLA", "Tesla, Inc.", Decimal("248.42")),
    Quote("AMZN", "Amazon.com Inc.", Decimal("145.86")),
    Quote("NVDA", "NVIDIA Corporation", Decimal("875.30")),
    Quote("META", "Meta Platforms, Inc.", Decimal("480")),
    Quote("GOOG", "Alphabet Inc. (Class C)", Decimal("150")),
    Quote("NFLX", "Netflix, Inc.", Decimal("600")),
    Quote("AMD", "Advanced Micro Devices, Inc.", Decimal("170")),
    Quote("INTC", "Intel Corporation", Decimal("35")),
    Quote("IBM", "International Business Machines", Decimal("170")),
    Quote("ORCL", "Oracle Corporation", Decimal("125")),
    Quote("PYPL", "PayPal Holdings, Inc.", Decimal("65")),
    Quote("SQ", "Block, Inc.", Decimal("70")),
    Quote("DIS", "The Walt Disney Company", Decimal("90")),
    Quote("KO", "The Coca-Cola Company", Decimal("60")),
    Quote("PEP", "PepsiCo, Inc.", Decimal("175")),
    Quote("NKE", "NIKE, Inc.", Decimal("95")),
    Quote("JPM", "JPMorgan Chase & Co.", Decimal("200")),
    Quote("BAC", "Bank of America Corporation", Decimal("38")),
    Quote("XOM", "Exxon Mobil Corporation", Decimal("110")),
    Quote("CVX", "Chevron Corporation", Decimal("160")),
    Quote("UNH", "UnitedHealth Group Incorporated", Decimal("480")),
)


class QuotesProvider(ABC):
    """Searches tickers by symbol or company name."""

    @abstractmethod
    async def search(self, query: str) -> list[Quote]:
        """Return matching quotes; empty for queries under two characters."""
        pass

    async def close(self) -> None:
        """Release any held resources."""


class LocalQuotesProvider(QuotesProvider):
    """Searches a static in-memory quote list."""

    def __init__(
        self,
        quotes: tuple[Quote, ...] | list[Quote] = LOCAL_QUOTES,
        max_results: int = 5,
    ) -> None:
        self._quotes = list(quotes)
        self._max_results = max_results

    async def search(self, query: str) -> list[Quote]:
        return self.search_sync(query)

    def search_sync(self, query: str) -> list[Quote]:
        """Synchronous search over the static list."""
        q = query.strip().upper()
        if len(q) < MIN_QUERY_LENGTH:
            return []
        matches = [
            quote for quote in self._quotes
            if q in quote.ticker or q in quote.company_name.upper()
        ]
        return matches[: self._max_results]


class RapidApiQuotesProvider(QuotesProvider):
    """Yahoo Finance search over RapidAPI, falling back to a local list."""

    def __init__(
        self,
        config: QuotesConfig,
        fallback: QuotesProvider | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._fallback = fallback or LocalQuotesProvider(max_results=config.max_results)
        self._session = session
        self._owns_session = session is None
        self._base_url = f"https://{config.rapidapi_host}"

    def _headers(self) -> dict[str, str]:
        return {
            "X-RapidAPI-Key": self._config.rapidapi_key,
            "X-RapidAPI-Host": self._config.rapidapi_host,
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def search(self, query: str) -> list[Quote]:
        q = query.strip()
        if len(q) < MIN_QUERY_LENGTH:
            return []

        try:
            return await self._remote_search(q)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, KeyError) as e:
            logger.warning("Remote quote search failed for %r, using fallback: %s", q, e)
            return await self._fallback.search(q)

    async def _remote_search(self, query: str) -> list[Quote]:
        session = self._get_session()

        async with session.get(
            f"{self._base_url}/auto-complete",
            params={"q": query, "region": self._config.region},
            headers=self._headers(),
        ) as response:
            response.raise_for_status()
            completions = await response.json()

        symbols = _unique_symbols(completions, self._config.max_results)
        if not symbols:
            return []

        async with session.get(
            f"{self._base_url}/market/v2/get-quotes",
            params={"region": self._config.region, "symbols": ",".join(symbols)},
            headers=self._headers(),
        ) as response:
            response.raise_for_status()
            payload = await response.json()

        results = (payload or {}).get("quoteResponse", {}).get("result", [])
        return [_quote_from_result(r) for r in results]


def _unique_symbols(completions: Any, limit: int) -> list[str]:
    """Extract unique uppercase symbols from an auto-complete response."""
    symbols = [
        str(item["symbol"]).upper()
        for item in (completions or {}).get("quotes", [])
        if item.get("symbol")
    ]
    return list(dict.fromkeys(symbols))[:limit]


def _quote_from_result(result: dict) -> Quote:
    price = result.get("regularMarketPrice")
    return Quote(
        ticker=result["symbol"],
        company_name=result.get("shortName") or result.get("longName") or result["symbol"],
        price=Decimal(str(price)) if isinstance(price, (int, float)) else Decimal("0"),
    )


def create_quotes_provider(config: QuotesConfig) -> QuotesProvider:
    """Use remote search when an API key is configured, else the local list."""
    if config.rapidapi_key:
        return RapidApiQuotesProvider(config)
    return LocalQuotesProvider(max_results=config.max_results)
