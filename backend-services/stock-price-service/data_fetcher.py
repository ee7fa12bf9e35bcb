# backend-services/stock-price-service/data_fetcher.py
import logging
import math
import os
from urllib.parse import quote

import requests

from shared.contracts import QuoteResult

logger = logging.getLogger(__name__)

# Configuration
QUOTE_API_URL = os.getenv("QUOTE_API_URL", "https://stock-price-checker-proxy.freecodecamp.rocks")
_TIMEOUT = float(os.getenv("QUOTE_HTTP_TIMEOUT_SECONDS", "10"))

# --- Shared requests Session for connection pooling ---
# No retry adapter is mounted: a failed quote is reported as unavailable, never retried.
session = requests.Session()


def _parse_price(raw):
    """Return a finite non-negative float, or None if the upstream value is unusable."""
    if isinstance(raw, bool) or raw is None:
        return None
    try:
        price = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price) or price < 0:
        return None
    return price


def fetch_quote(symbol: str) -> QuoteResult:
    """
    Fetch the latest quote for one symbol from the upstream price source.

    The upstream answers {"symbol": ..., "latestPrice": ...}. Transport errors,
    bad status codes, non-JSON bodies and missing/non-numeric prices all
    degrade to an unavailable QuoteResult (price=None). Never raises.
    """
    url = f"{QUOTE_API_URL}/v1/stock/{quote(symbol, safe='')}/quote"
    try:
        response = session.get(url, timeout=_TIMEOUT)
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        logger.warning(f"Quote request for {symbol} failed: {e}")
        return QuoteResult(symbol=symbol, price=None)
    except ValueError as e:
        logger.warning(f"Quote response for {symbol} was not valid JSON: {e}")
        return QuoteResult(symbol=symbol, price=None)

    if not isinstance(payload, dict):
        logger.warning(f"Unexpected quote payload for {symbol}: {type(payload).__name__}")
        return QuoteResult(symbol=symbol, price=None)

    price = _parse_price(payload.get("latestPrice"))
    reported = payload.get("symbol")
    reported_symbol = reported.upper() if isinstance(reported, str) and reported.strip() else symbol
    if price is None:
        logger.warning(f"Quote for {symbol} has no usable latestPrice: {payload.get('latestPrice')!r}")
        return QuoteResult(symbol=reported_symbol, price=None)

    return QuoteResult(symbol=reported_symbol, price=price)
