"""
Unit tests for the Coinranking scraper.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_crypto.app.adapters.coinranking_client import (
    CoinrankingClient,
    parse_all_time_highs,
    parse_btc_dominance,
    parse_movers,
    parse_trending_categories,
    parse_trending_coins,
)
from shared.errors import ScrapeError


def coin_row(name, symbol, price, market_cap, change, negative=False, row_class=""):
    change_class = "change__percentage change--negative" if negative else "change__percentage"
    return f"""
    <tr class="{row_class}">
      <td>
        <span class="coin-profile__name">{name}</span>
        <span class="coin-profile__symbol">{symbol}</span>
      </td>
      <td><real-time-price>{price}</real-time-price></td>
      <td class="hidden-tablet-landscape">{market_cap}</td>
      <td><span class="{change_class}">{change}</span></td>
    </tr>
    """


TRENDING_HTML = f"""
<html><body>
<table id="trending-coins-table"><tbody>
{coin_row("Bitcoin", "BTC", "43,250.12", "$845.20 billion", "1.25%", negative=True)}
{coin_row("Sponsored", "ADS", "1", "$1 million", "0%", row_class="table__sponsored-row")}
{coin_row("Ethereum", "ETH", "2,250.5", "$270.40 billion", "3.10%")}
</tbody></table>
<div class="trending-categories__item">
  <span class="category-profile__name">DeFi</span>
  <span class="category-profile__symbol"><span>$25.4 billion</span><span>12 coins</span></span>
  <span class="change__percentage">2.5%</span>
</div>
<div class="trending-categories__item">
  <span class="category-profile__name">Meme</span>
  <span class="category-profile__symbol"><span>$980 million</span></span>
  <span class="change__percentage change--negative">4%</span>
</div>
<div id="stats">
  <table class="key-value-table"><tbody>
    <tr><th>Market cap</th><td class="key-value-table-auto-nav">$1.6 trillion</td></tr>
    <tr><th>BTC dominance</th><td class="key-value-table-auto-nav">52.34%</td></tr>
  </tbody></table>
</div>
</body></html>
"""


def movers_html(count):
    rows = "".join(
        coin_row(f"Coin {i}", f"C{i}", f"{i}.5", f"${i} million", f"{i}%")
        for i in range(1, count + 1)
    )
    return f'<table id="coins-table"><tbody>{rows}</tbody></table>'


ATH_HTML = """
<table id="all-time-highs-table"><tbody>
  <tr>
    <td>
      <span class="coin-profile__name">Bitcoin</span>
      <span class="coin-profile__symbol">BTC</span>
    </td>
    <td><real-time-price>43250.12</real-time-price></td>
    <td class="hidden-tablet-landscape">$845.20 billion</td>
    <td><span class="semibold">$69,044.77</span></td>
    <td><span class="change">-35.12%</span></td>
  </tr>
</tbody></table>
"""


class TestCoinrankingParsers:
    """Test cases for the pure HTML parsers."""

    def test_trending_coins(self):
        """Sponsored rows are skipped and records are normalized."""
        records = parse_trending_coins(TRENDING_HTML)

        assert [record.symbol for record in records] == ["BTC", "ETH"]
        btc = records[0].to_dict()
        assert btc == {
            "name": "Bitcoin",
            "symbol": "BTC",
            "price": 43250.12,
            "priceFormatted": "$43250.12",
            "marketCap": pytest.approx(845.2e9),
            "marketCapFormatted": "$845.20 billion",
            "changePercent24h": -1.25,
            "changePercent24hFormatted": "-1.25%",
            "trending": True,
        }
        assert records[1].change_percent_24h_formatted == "+3.10%"

    def test_trending_categories(self):
        """Category market caps come from the first symbol span."""
        categories = parse_trending_categories(TRENDING_HTML)

        assert [category.name for category in categories] == ["DeFi", "Meme"]
        assert categories[0].to_dict()["marketCapFormatted"] == "$25.40 billion"
        assert categories[1].market_cap == pytest.approx(980e6)
        assert categories[1].change_percent_24h_formatted == "-4.00%"

    def test_movers_are_limited_to_ten(self):
        """Gainers and losers stop after ten rows."""
        records = parse_movers(movers_html(12))

        assert len(records) == 10
        assert records[0].name == "Coin 1"
        assert records[-1].symbol == "C10"

    def test_all_time_highs(self):
        """ATH rows carry the formatted high and the signed change."""
        [record] = parse_all_time_highs(ATH_HTML)

        payload = record.to_dict()
        assert payload["allTimeHigh"] == pytest.approx(69044.77)
        assert payload["allTimeHighFormatted"] == "$69044.77"
        assert payload["changePercent24hFormatted"] == "-35.12%"

    def test_btc_dominance(self):
        """The dominance row is found by its header text."""
        record = parse_btc_dominance(TRENDING_HTML)

        assert record.to_dict() == {"btcDominance": 52.34, "btcDominanceFormatted": "52.34%"}
        assert record.is_empty is False

    def test_btc_dominance_missing_row(self):
        """A page without the stats row is a scrape error."""
        with pytest.raises(ScrapeError):
            parse_btc_dominance("<html><body></body></html>")

    def test_empty_page_has_no_records(self):
        """Missing tables parse to empty lists."""
        assert parse_trending_coins("<html></html>") == []
        assert parse_movers("<html></html>") == []


class TestCoinrankingClient:
    """Test cases for CoinrankingClient."""

    @pytest.fixture
    def fetcher(self):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=TRENDING_HTML)
        return fetcher

    @pytest.fixture
    def client(self, fetcher):
        return CoinrankingClient(fetcher, "https://coinranking.test/")

    @pytest.mark.asyncio
    async def test_trending_coins_uses_home_page(self, client, fetcher):
        records = await client.fetch_trending_coins()

        assert len(records) == 2
        fetcher.fetch.assert_awaited_once_with("https://coinranking.test/")

    @pytest.mark.asyncio
    async def test_movers_pages(self, client, fetcher):
        fetcher.fetch.return_value = movers_html(3)

        gainers = await client.fetch_top_gainers()
        losers = await client.fetch_top_losers()

        assert len(gainers) == len(losers) == 3
        urls = [call.args[0] for call in fetcher.fetch.await_args_list]
        assert urls == [
            "https://coinranking.test/coins/gainers",
            "https://coinranking.test/coins/losers",
        ]

    @pytest.mark.asyncio
    async def test_all_time_highs_page(self, client, fetcher):
        fetcher.fetch.return_value = ATH_HTML

        records = await client.fetch_all_time_highs()

        assert records[0].name == "Bitcoin"
        fetcher.fetch.assert_awaited_once_with("https://coinranking.test/coins/all-time-highs")

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self, client, fetcher):
        fetcher.fetch.side_effect = RuntimeError("connection reset")

        with pytest.raises(RuntimeError):
            await client.fetch_btc_dominance()
