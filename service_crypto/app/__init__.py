"""
Crypto Market API service package.

Scrapes public market pages and serves normalized records over HTTP,
fronted by an in-memory response cache that falls back to the last good
payload when an upstream refresh fails.

Structure:
- app.main: FastAPI app, routes, and startup/shutdown wiring.
- app.adapters: Page fetching and HTML parsing (the cache producers).
- app.canonical: Text <-> number conversions used by the parsers.
- app.caching: Response cache, envelopes, and the periodic sweeper.
- app.market_data: Record types and the stale-fallback service.
"""
