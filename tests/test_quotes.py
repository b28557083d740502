"""Tests for quote search - local list and remote search with fallback."""

from decimal import Decimal

import aiohttp
import pytest

from hypetrad.config import QuotesConfig
from hypetrad.market.quotes import (
    LocalQuotesProvider,
    RapidApiQuotesProvider,
    create_quotes_provider,
)
from hypetrad.market.types import Quote


class FakeResponse:
    """Stands in for an aiohttp response context."""

    def __init__(self, payload, status: int = 200) -> None:
        self._payload = payload
        self.status = status

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *args) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientError(f"HTTP {self.status}")

    async def json(self):
        return self._payload


class FakeSession:
    """Returns canned responses per URL suffix and records requests."""

    def __init__(self, responses: dict[str, FakeResponse]) -> None:
        self._responses = responses
        self.requests: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, url: str, params=None, headers=None) -> FakeResponse:
        self.requests.append((url, params or {}))
        for suffix, response in self._responses.items():
            if url.endswith(suffix):
                return response
        raise aiohttp.ClientError(f"Unexpected URL: {url}")

    async def close(self) -> None:
        self.closed = True


def create_config(**kwargs) -> QuotesConfig:
    return QuotesConfig(rapidapi_key="test-key", **kwargs)


class TestLocalQuotes:
    """Static list search."""

    @pytest.mark.asyncio
    async def test_matches_ticker_or_company(self):
        provider = LocalQuotesProvider()

        by_ticker = await provider.search("nvd")
        by_name = await provider.search("micro")

        assert [q.ticker for q in by_ticker] == ["NVDA"]
        assert {q.ticker for q in by_name} == {"MSFT", "AMD"}

    @pytest.mark.asyncio
    async def test_short_query_and_limit(self):
        provider = LocalQuotesProvider(max_results=3)

        assert await provider.search("a") == []
        assert len(await provider.search("in")) == 3


class TestRemoteQuotes:
    """Auto-complete then get-quotes."""

    @pytest.mark.asyncio
    async def test_remote_search(self):
        print("\n" + "=" * 60)
        print("Test: Remote Quote Search")
        print("=" * 60)

        session = FakeSession(
            {
                "/auto-complete": FakeResponse(
                    {"quotes": [{"symbol": "aapl"}, {"symbol": "AAPL"}, {"symbol": "APLE"}, {}]}
                ),
                "/market/v2/get-quotes": FakeResponse(
                    {
                        "quoteResponse": {
                            "result": [
                                {"symbol": "AAPL", "shortName": "Apple Inc.", "regularMarketPrice": 189.84},
                                {"symbol": "APLE", "longName": "Apple Hospitality REIT"},
                            ]
                        }
                    }
                ),
            }
        )
        provider = RapidApiQuotesProvider(create_config(), session=session)

        quotes = await provider.search("apple")
        for quote in quotes:
            print(f"  {quote.ticker}: {quote.company_name} @ {quote.price}")

        assert quotes == [
            Quote("AAPL", "Apple Inc.", Decimal("189.84")),
            Quote("APLE", "Apple Hospitality REIT", Decimal("0")),
        ]
        assert session.requests[1][1]["symbols"] == "AAPL,APLE"
        print("✅ PASS: Unique symbols quoted")

    @pytest.mark.asyncio
    async def test_http_error_falls_back_to_local(self):
        session = FakeSession({"/auto-complete": FakeResponse({}, status=429)})
        provider = RapidApiQuotesProvider(create_config(), session=session)

        quotes = await provider.search("tesla")

        assert [q.ticker for q in quotes] == ["TSLA"]

    @pytest.mark.asyncio
    async def test_malformed_payload_falls_back(self):
        session = FakeSession(
            {
                "/auto-complete": FakeResponse({"quotes": [{"symbol": "ZZZ"}]}),
                "/market/v2/get-quotes": FakeResponse({"quoteResponse": {"result": [{}]}}),
            }
        )
        fallback = LocalQuotesProvider([Quote("ZZZ", "Zed Corp", Decimal("1"))])
        provider = RapidApiQuotesProvider(create_config(), fallback=fallback, session=session)

        assert await provider.search("zzz") == [Quote("ZZZ", "Zed Corp", Decimal("1"))]

    @pytest.mark.asyncio
    async def test_no_completions(self):
        session = FakeSession({"/auto-complete": FakeResponse({"quotes": []})})
        provider = RapidApiQuotesProvider(create_config(), session=session)

        assert await provider.search("qqqqq") == []
        assert len(session.requests) == 1

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        session = FakeSession({})
        provider = RapidApiQuotesProvider(create_config(), session=session)

        await provider.close()

        assert not session.closed


def test_create_quotes_provider():
    assert isinstance(create_quotes_provider(QuotesConfig()), LocalQuotesProvider)
    assert isinstance(create_quotes_provider(create_config()), RapidApiQuotesProvider)
