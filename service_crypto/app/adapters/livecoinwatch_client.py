"""
LiveCoinWatch scraper for single-coin detail pages.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Dict, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from shared.logging import get_logger

from service_crypto.app.canonical import (
    format_price,
    format_signed_percent,
    number_to_text,
    parse_decimal,
    text_to_number,
)
from service_crypto.app.market_data.records import (
    PRICE_CHANGE_PERIODS,
    MarketRecord,
    SupplyFigures,
    TradingRange,
)
from .page_fetcher import PageFetcher


def coin_slug(name: str, symbol: str) -> str:
    """``("bitcoin cash", "bch") -> "BitcoinCash-BCH"``."""
    words = [word for word in name.split() if word]
    formatted_name = "".join(word[:1].upper() + word[1:].lower() for word in words)
    return f"{formatted_name}-{symbol.strip().upper()}"


def _item_text(item: Optional[Tag], selector: str) -> str:
    if item is None:
        return ""
    element = item.select_one(selector)
    return element.get_text().strip() if element is not None else ""


def _labelled_items(soup: BeautifulSoup) -> Dict[str, Tag]:
    """Index ``.cion-item`` blocks by their lowercased label text."""
    items: Dict[str, Tag] = {}
    for item in soup.select(".cion-item"):
        label = item.select_one("label")
        if label is None:
            continue
        items.setdefault(label.get_text().strip().lower(), item)
    return items


def _supply(item: Optional[Tag]):
    text = _item_text(item, "span.price")
    if not text:
        return None, None
    value = text_to_number(text)
    return value, number_to_text(value, currency="")


def parse_coin_details(html: str) -> MarketRecord:
    soup = BeautifulSoup(html, "html.parser")
    items = _labelled_items(soup)

    name_el = soup.select_one(".coin-name")
    symbol_el = soup.select_one(".price-container .rate")
    price_el = soup.select_one(".cion-item.coin-price-large .price")
    price = parse_decimal(price_el.get_text()) if price_el is not None else math.nan

    market_cap = text_to_number(_item_text(items.get("market cap"), "span.price"))
    volume = text_to_number(_item_text(items.get("volume"), "span.price"))
    all_time_high = parse_decimal(_item_text(items.get("all time high"), "span"))

    price_changes = {
        period: parse_decimal(_item_text(items.get(f"{period} usd"), "span.percent"))
        for period in PRICE_CHANGE_PERIODS
    }
    change_24h = price_changes["24h"]

    circulating, circulating_formatted = _supply(items.get("circ. supply"))
    total, total_formatted = _supply(items.get("total supply"))
    max_supply, max_formatted = _supply(items.get("max supply"))

    return MarketRecord(
        name=name_el.get_text().strip() if name_el is not None else "",
        symbol=symbol_el.get_text().strip() if symbol_el is not None else "",
        price=price,
        price_formatted=format_price(price),
        market_cap=market_cap,
        market_cap_formatted=number_to_text(market_cap),
        change_percent_24h=change_24h,
        change_percent_24h_formatted=format_signed_percent(change_24h),
        all_time_high=all_time_high,
        all_time_high_formatted=format_price(all_time_high, decimals=2),
        volume_24h=volume,
        volume_24h_formatted=number_to_text(volume),
        price_changes=MappingProxyType(price_changes),
        supply=SupplyFigures(
            circulating=circulating,
            circulating_formatted=circulating_formatted,
            total=total,
            total_formatted=total_formatted,
            max=max_supply,
            max_formatted=max_formatted,
        ),
        trading_24h=TradingRange(
            range=parse_decimal(_item_text(items.get("24 hr range"), "span")),
            low=parse_decimal(_item_text(items.get("24 hr low"), "span")),
            high=parse_decimal(_item_text(items.get("24 hr high"), "span")),
        ),
    )


class LiveCoinWatchClient:
    """Producer for per-coin detail pages on livecoinwatch.com."""

    def __init__(self, fetcher: PageFetcher, base_url: str = "https://www.livecoinwatch.com"):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("crypto.livecoinwatch")

    def coin_url(self, name: str, symbol: str) -> str:
        return f"{self.base_url}/price/{coin_slug(name, symbol)}"

    async def fetch_coin_details(self, name: str, symbol: str) -> MarketRecord:
        url = self.coin_url(name, symbol)
        try:
            html = await self.fetcher.fetch(url)
            return parse_coin_details(html)
        except Exception as exc:
            self.logger.error(
                "Error scraping coin details",
                coin=name,
                symbol=symbol,
                url=url,
                error=str(exc),
            )
            raise
