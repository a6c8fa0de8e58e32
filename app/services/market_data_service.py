"""Market data for a ticker: Finnhub first, Yahoo Finance as fallback."""

import logging
import os
from typing import Any
from urllib.parse import quote

import httpx

from app.models import TickerQuote

logger = logging.getLogger(__name__)

FINNHUB_API_KEY = os.getenv("FINNHUB_API_KEY", "")
FINNHUB_QUOTE_URL = "https://finnhub.io/api/v1/quote"

# Unofficial endpoint, no key required; Yahoo may change it without notice
YAHOO_QUOTE_SUMMARY_URL = "https://query2.finance.yahoo.com/v10/finance/quoteSummary/{symbol}"

REQUEST_TIMEOUT = 10.0

PROVIDER_FINNHUB = "Finnhub"
PROVIDER_YAHOO = "YahooFinance"


def format_market_cap(value: float | int | None) -> str | None:
    """Human-readable market cap: 2.15T, 310.40B, 12.00M or the plain number."""
    if value is None:
        return None
    if value >= 1e12:
        return f"{value / 1e12:.2f}T"
    if value >= 1e9:
        return f"{value / 1e9:.2f}B"
    if value >= 1e6:
        return f"{value / 1e6:.2f}M"
    return f"{value:.0f}"


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


class MarketDataService:
    """Best-effort quote lookup across a fixed provider order."""

    def __init__(self, finnhub_api_key: str = FINNHUB_API_KEY) -> None:
        self._http_client: httpx.AsyncClient | None = None
        self._finnhub_api_key = finnhub_api_key

    @property
    def has_finnhub(self) -> bool:
        return bool(self._finnhub_api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                headers={"User-Agent": "Mozilla/5.0", "Accept": "application/json"},
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def get_quote(self, symbol: str | None) -> tuple[TickerQuote, str] | None:
        """Quote ``symbol`` with the first provider that answers.

        Returns:
            ``(quote, provider_name)`` or None if no provider had data.
        """
        if not symbol:
            return None

        if self.has_finnhub:
            quote_ = await self._fetch_finnhub(symbol)
            if quote_ is not None:
                return quote_, PROVIDER_FINNHUB

        quote_ = await self._fetch_yahoo(symbol)
        if quote_ is not None:
            return quote_, PROVIDER_YAHOO

        logger.info(f"No market data for ticker {symbol}")
        return None

    async def _fetch_finnhub(self, symbol: str) -> TickerQuote | None:
        client = await self._get_client()
        try:
            response = await client.get(
                FINNHUB_QUOTE_URL,
                params={"symbol": symbol, "token": self._finnhub_api_key},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Finnhub quote failed for {symbol}: {e}")
            return None

        price = _number((data or {}).get("c"))
        if price is None:
            return None
        return TickerQuote(ticker=symbol, stock_price=price)

    async def _fetch_yahoo(self, symbol: str) -> TickerQuote | None:
        client = await self._get_client()
        try:
            response = await client.get(
                YAHOO_QUOTE_SUMMARY_URL.format(symbol=quote(symbol, safe="")),
                params={"modules": "price,summaryDetail,defaultKeyStatistics"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Yahoo Finance quote failed for {symbol}: {e}")
            return None

        results = ((data or {}).get("quoteSummary") or {}).get("result") or []
        if not results:
            return None
        result = results[0] or {}

        def raw(module: str, key: str) -> float | None:
            return _number(((result.get(module) or {}).get(key) or {}).get("raw"))

        price = raw("price", "regularMarketPrice")
        if price is None:
            price = raw("price", "postMarketPrice")
        market_cap = raw("price", "marketCap")
        if market_cap is None:
            market_cap = raw("summaryDetail", "marketCap")
        if market_cap is None:
            market_cap = raw("defaultKeyStatistics", "enterpriseValue")

        return TickerQuote(
            ticker=symbol,
            stock_price=price,
            market_cap=format_market_cap(market_cap),
        )


_market_data_service: MarketDataService | None = None


def get_market_data_service() -> MarketDataService:
    """Get the singleton MarketDataService instance."""
    global _market_data_service
    if _market_data_service is None:
        _market_data_service = MarketDataService()
    return _market_data_service
