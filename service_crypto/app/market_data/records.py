"""
Normalized market records produced by the scrapers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

PRICE_CHANGE_PERIODS = ("1h", "24h", "7d", "30d", "90d", "1y")


def json_number(value: Optional[float]) -> Optional[float]:
    """NaN marks an unparsable figure; it is emitted as JSON null."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


@dataclass(frozen=True)
class SupplyFigures:
    """Circulating, total and max supply with their display strings."""

    circulating: Optional[float] = None
    circulating_formatted: Optional[str] = None
    total: Optional[float] = None
    total_formatted: Optional[str] = None
    max: Optional[float] = None
    max_formatted: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "circulating": json_number(self.circulating),
            "circulatingFormatted": self.circulating_formatted,
            "total": json_number(self.total),
            "totalFormatted": self.total_formatted,
            "max": json_number(self.max),
            "maxFormatted": self.max_formatted,
        }


@dataclass(frozen=True)
class TradingRange:
    """24 hour trading range."""

    range: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "range": json_number(self.range),
            "low": json_number(self.low),
            "high": json_number(self.high),
        }


@dataclass(frozen=True)
class MarketRecord:
    """One row of a ranking table, or the detail view of a single coin."""

    name: str
    symbol: str
    price: float
    price_formatted: Optional[str]
    market_cap: Optional[float]
    market_cap_formatted: Optional[str]
    change_percent_24h: Optional[float]
    change_percent_24h_formatted: Optional[str]
    trending: Optional[bool] = None
    all_time_high: Optional[float] = None
    all_time_high_formatted: Optional[str] = None
    volume_24h: Optional[float] = None
    volume_24h_formatted: Optional[str] = None
    price_changes: Optional[Mapping[str, Optional[float]]] = None
    supply: Optional[SupplyFigures] = None
    trading_24h: Optional[TradingRange] = None

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.symbol

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record to a JSON-friendly dictionary."""
        payload: Dict[str, Any] = {
            "name": self.name,
            "symbol": self.symbol,
            "price": json_number(self.price),
            "priceFormatted": self.price_formatted,
            "marketCap": json_number(self.market_cap),
            "marketCapFormatted": self.market_cap_formatted,
            "changePercent24h": json_number(self.change_percent_24h),
            "changePercent24hFormatted": self.change_percent_24h_formatted,
        }

        if self.trending is not None:
            payload["trending"] = self.trending
        if self.all_time_high is not None:
            payload["allTimeHigh"] = json_number(self.all_time_high)
            payload["allTimeHighFormatted"] = self.all_time_high_formatted
        if self.volume_24h is not None:
            payload["volume24h"] = json_number(self.volume_24h)
            payload["volume24hFormatted"] = self.volume_24h_formatted
        if self.price_changes is not None:
            payload["priceChanges"] = {
                period: json_number(value) for period, value in self.price_changes.items()
            }
        if self.supply is not None:
            payload["supply"] = self.supply.to_dict()
        if self.trading_24h is not None:
            payload["trading24h"] = self.trading_24h.to_dict()
        return payload


@dataclass(frozen=True)
class CategoryRecord:
    """A trending coin category."""

    name: str
    market_cap: Optional[float]
    market_cap_formatted: Optional[str]
    change_percent_24h: Optional[float]
    change_percent_24h_formatted: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "marketCap": json_number(self.market_cap),
            "marketCapFormatted": self.market_cap_formatted,
            "changePercent24h": json_number(self.change_percent_24h),
            "changePercent24hFormatted": self.change_percent_24h_formatted,
        }


@dataclass(frozen=True)
class AggregateRecord:
    """A single named market-wide figure such as BTC dominance."""

    name: str
    value: Optional[float]
    formatted: Optional[str]

    @property
    def is_empty(self) -> bool:
        # zero is treated as "not reported" as well
        return not json_number(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.name: json_number(self.value),
            f"{self.name}Formatted": self.formatted,
        }
