"""
Coinranking scraper: trending coins and categories, movers, all-time highs,
and BTC dominance.
"""

from __future__ import annotations

import math
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from shared.errors import ScrapeError
from shared.logging import get_logger

from service_crypto.app.canonical import (
    format_percent,
    format_price,
    format_signed_percent,
    number_to_text,
    parse_decimal,
    text_to_number,
)
from service_crypto.app.market_data.records import AggregateRecord, CategoryRecord, MarketRecord
from .page_fetcher import PageFetcher


RANKING_LIMIT = 10
SPONSORED_ROW_CLASS = "table__sponsored-row"


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(node: Tag, selector: str) -> str:
    element = node.select_one(selector)
    return element.get_text().strip() if element is not None else ""


def _change_percent(node: Tag, selector: str) -> float:
    """Read a change figure, trusting the negative CSS class when the text has no sign."""
    element = node.select_one(selector)
    if element is None:
        return math.nan

    value = parse_decimal(element.get_text())
    classes = element.get("class") or []
    if "change--negative" in classes and value > 0:
        value = -value
    return value


def _ranking_rows(soup: BeautifulSoup, table_selector: str, limit: Optional[int]) -> List[Tag]:
    rows: List[Tag] = []
    for row in soup.select(f"{table_selector} tbody tr"):
        if SPONSORED_ROW_CLASS in (row.get("class") or []):
            continue
        rows.append(row)
        if limit is not None and len(rows) >= limit:
            break
    return rows


def _coin_record(row: Tag, *, change_selector: str = ".change__percentage", **extra) -> MarketRecord:
    price = parse_decimal(_text(row, "real-time-price"))
    market_cap = text_to_number(_text(row, ".hidden-tablet-landscape"))
    change = _change_percent(row, change_selector)

    return MarketRecord(
        name=_text(row, ".coin-profile__name"),
        symbol=_text(row, ".coin-profile__symbol"),
        price=price,
        price_formatted=format_price(price),
        market_cap=market_cap,
        market_cap_formatted=number_to_text(market_cap),
        change_percent_24h=change,
        change_percent_24h_formatted=format_signed_percent(change),
        **extra,
    )


def parse_trending_coins(html: str) -> List[MarketRecord]:
    soup = _soup(html)
    return [
        _coin_record(row, trending=True)
        for row in _ranking_rows(soup, "#trending-coins-table", limit=None)
    ]


def parse_trending_categories(html: str) -> List[CategoryRecord]:
    soup = _soup(html)
    categories = []
    for item in soup.select(".trending-categories__item"):
        market_cap = text_to_number(_text(item, ".category-profile__symbol span:first-child"))
        change = _change_percent(item, ".change__percentage")
        categories.append(
            CategoryRecord(
                name=_text(item, ".category-profile__name"),
                market_cap=market_cap,
                market_cap_formatted=number_to_text(market_cap),
                change_percent_24h=change,
                change_percent_24h_formatted=format_signed_percent(change),
            )
        )
    return categories


def parse_movers(html: str, limit: int = RANKING_LIMIT) -> List[MarketRecord]:
    """Parse the gainers or losers table (same markup on both pages)."""
    soup = _soup(html)
    return [_coin_record(row) for row in _ranking_rows(soup, "#coins-table", limit=limit)]


def parse_all_time_highs(html: str, limit: int = RANKING_LIMIT) -> List[MarketRecord]:
    soup = _soup(html)
    records = []
    for row in _ranking_rows(soup, "#all-time-highs-table", limit=limit):
        all_time_high = parse_decimal(_text(row, ".semibold"))
        records.append(
            _coin_record(
                row,
                change_selector=".change",
                all_time_high=all_time_high,
                all_time_high_formatted=format_price(all_time_high, decimals=2),
            )
        )
    return records


def parse_btc_dominance(html: str) -> AggregateRecord:
    soup = _soup(html)
    for row in soup.select("#stats .key-value-table tbody tr"):
        if "BTC dominance" in _text(row, "th"):
            value = parse_decimal(_text(row, ".key-value-table-auto-nav"))
            return AggregateRecord(name="btcDominance", value=value, formatted=format_percent(value))
    raise ScrapeError("BTC dominance row not found", details={"selector": "#stats .key-value-table"})


class CoinrankingClient:
    """Producer functions backed by coinranking.com pages."""

    def __init__(self, fetcher: PageFetcher, base_url: str = "https://coinranking.com"):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("crypto.coinranking")

    async def _page(self, path: str) -> str:
        return await self.fetcher.fetch(f"{self.base_url}{path}")

    async def fetch_trending_coins(self) -> List[MarketRecord]:
        records = parse_trending_coins(await self._page("/"))
        self.logger.debug("Parsed trending coins", count=len(records))
        return records

    async def fetch_trending_categories(self) -> List[CategoryRecord]:
        records = parse_trending_categories(await self._page("/"))
        self.logger.debug("Parsed trending categories", count=len(records))
        return records

    async def fetch_top_gainers(self) -> List[MarketRecord]:
        return parse_movers(await self._page("/coins/gainers"))

    async def fetch_top_losers(self) -> List[MarketRecord]:
        return parse_movers(await self._page("/coins/losers"))

    async def fetch_all_time_highs(self) -> List[MarketRecord]:
        return parse_all_time_highs(await self._page("/coins/all-time-highs"))

    async def fetch_btc_dominance(self) -> AggregateRecord:
        return parse_btc_dominance(await self._page("/"))
