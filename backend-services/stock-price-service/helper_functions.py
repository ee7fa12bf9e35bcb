# stock-price-service/helper_functions.py
import hashlib
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from shared.contracts import (
    MAX_SYMBOLS_PER_REQUEST,
    MAX_TICKER_LEN,
    TICKER_PATTERN,
    QuoteResult,
    StockDataRelative,
    StockDataSingle,
    StockPriceResponse,
)

logger = logging.getLogger(__name__)

_TICKER_RE = re.compile(TICKER_PATTERN)
_TRUTHY = {"1", "true", "yes", "y", "on"}


class InvalidRequestError(ValueError):
    """Raised when the requested symbols cannot be served (zero, too many, malformed)."""


def anonymize_ip(raw_address: Optional[str], salt: str = "") -> str:
    """
    One-way SHA-256 digest of a client address, used as the like dedup key.
    The same address (and salt) always yields the same identifier.
    """
    h = hashlib.sha256()
    h.update(salt.encode("utf-8"))
    h.update((raw_address or "").encode("utf-8"))
    return h.hexdigest()


def parse_like_flag(value: Any) -> bool:
    """Normalize the `like` query value. Only explicit truthy strings count."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def normalize_symbols(raw_symbols: Optional[Iterable[str]]) -> List[str]:
    """
    Drop blank values, validate and uppercase the requested symbols.

    Raises:
        InvalidRequestError: zero symbols, more than two, or a malformed ticker.
    """
    symbols = [s.strip() for s in (raw_symbols or []) if isinstance(s, str) and s.strip()]
    if not 1 <= len(symbols) <= MAX_SYMBOLS_PER_REQUEST:
        raise InvalidRequestError(f"Expected 1 or {MAX_SYMBOLS_PER_REQUEST} symbols, got {len(symbols)}")
    for s in symbols:
        if len(s) > MAX_TICKER_LEN or not _TICKER_RE.match(s):
            raise InvalidRequestError(f"Invalid ticker format: {s!r}")
    return [s.upper() for s in symbols]


def _price_or_zero(quote: QuoteResult) -> float:
    # Unavailable quotes are reported as 0; available prices keep full upstream precision
    return float(quote.price) if quote.available else 0.0


def compose_single_response(quote: QuoteResult, likes: int) -> Dict[str, Any]:
    """{"stockData": {"stock", "price", "likes"}}"""
    item = StockDataSingle(stock=quote.symbol, price=_price_or_zero(quote), likes=likes)
    return StockPriceResponse(stockData=item).model_dump()


def compose_pair_response(results: Sequence[tuple]) -> Dict[str, Any]:
    """
    Build the two-symbol payload from [(quote, likes), (quote, likes)].
    rel_likes is each symbol's count minus the other's, so the pair always sums to 0.
    """
    (first, first_likes), (second, second_likes) = results
    items = [
        StockDataRelative(stock=first.symbol, price=_price_or_zero(first), rel_likes=first_likes - second_likes),
        StockDataRelative(stock=second.symbol, price=_price_or_zero(second), rel_likes=second_likes - first_likes),
    ]
    return StockPriceResponse(stockData=items).model_dump()


def compose_stock_price_response(results: Sequence[tuple]) -> Dict[str, Any]:
    """Pick the response shape by the number of processed symbols."""
    if len(results) == 1:
        quote, likes = results[0]
        return compose_single_response(quote, likes)
    if len(results) == 2:
        return compose_pair_response(results)
    raise InvalidRequestError(f"Cannot shape a response for {len(results)} symbols")
