"""
Market data service layer for the Crypto Market API.
"""

from .records import AggregateRecord, CategoryRecord, MarketRecord, SupplyFigures, TradingRange
from .service import STALE_FALLBACK_MESSAGE, MarketDataService, ServedResult

__all__ = [
    "AggregateRecord",
    "CategoryRecord",
    "MarketDataService",
    "MarketRecord",
    "STALE_FALLBACK_MESSAGE",
    "ServedResult",
    "SupplyFigures",
    "TradingRange",
]
