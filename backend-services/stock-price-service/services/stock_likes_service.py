# backend-services/stock-price-service/services/stock_likes_service.py

"""
Stock likes service business logic
Orchestrates GET /api/stock-prices: quote fetch, like bookkeeping, response shaping

This module follows the service architecture patterns:
- Depends on the LikeStore interface only (Mongo in production, memory in tests)
- Fans out one worker per requested symbol
- Follows data contracts defined in shared.contracts
"""
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from data_fetcher import fetch_quote
from database.like_store import LikeStore, StockAlreadyExistsError
from helper_functions import anonymize_ip, compose_stock_price_response, normalize_symbols
from shared.contracts import QuoteResult

logger = logging.getLogger(__name__)

QuoteFetcher = Callable[[str], QuoteResult]


def count_likes(store: LikeStore, symbol: str, client_id: str, like: bool) -> int:
    """
    Return the like count for a symbol with an available quote, registering
    this client's like first when requested.

    Business Logic:
    - No record yet: create it, seeded with the client id when liking
    - Record present and liking with a new id: atomic add, use the returned count
    - Otherwise: the stored count, unchanged
    - A create that loses a race to a concurrent request falls back to the
      existing-record path
    """
    record = store.find(symbol)
    if record is None:
        try:
            created = store.create(symbol, {client_id} if like else set())
            logger.info(f"Created stock record for {symbol} (liked={like})")
            return created.like_count
        except StockAlreadyExistsError:
            logger.info(f"Stock record for {symbol} was created concurrently; re-reading")
            record = store.find(symbol)
            if record is None:
                # Record vanished between create and re-read
                raise

    if like and client_id not in record.likes:
        return store.add_like(symbol, client_id)
    return record.like_count


def process_symbol(
    symbol: str,
    client_id: str,
    like: bool,
    store: LikeStore,
    fetch: QuoteFetcher = fetch_quote,
) -> Tuple[QuoteResult, int]:
    """Fetch one symbol's quote and its like count. Unavailable quotes skip the store entirely."""
    quote = fetch(symbol)
    if not quote.available:
        logger.warning(f"Quote unavailable for {symbol}; skipping like bookkeeping")
        return quote, 0
    return quote, count_likes(store, symbol, client_id, like)


def get_stock_prices(
    raw_symbols: Optional[Iterable[str]],
    like: bool,
    client_ip: Optional[str],
    store: LikeStore,
    fetch: Optional[QuoteFetcher] = None,
    salt: str = "",
) -> Dict[str, Any]:
    """
    Build the GET /api/stock-prices payload for one or two symbols.

    Args:
        raw_symbols: `stock` query values as received
        like: whether to register a like from this caller for every symbol
        client_ip: caller's network address, anonymized once per request
        store: like store
        fetch: quote fetcher, defaults to data_fetcher.fetch_quote
        salt: anonymizer salt

    Returns:
        Dict: {"stockData": {...}} for one symbol, {"stockData": [{...}, {...}]} for two

    Raises:
        InvalidRequestError: zero, more than two, or malformed symbols (before any fetch or store access)
        Exception: any unexpected store failure, re-raised after every symbol finished
    """
    symbols = normalize_symbols(raw_symbols)
    fetch = fetch or fetch_quote
    client_id = anonymize_ip(client_ip, salt)

    with ThreadPoolExecutor(max_workers=len(symbols)) as executor:
        futures = [
            executor.submit(process_symbol, symbol, client_id, like, store, fetch)
            for symbol in symbols
        ]
        # Each symbol runs to completion even if the other one fails
        wait(futures)

    results = []
    for symbol, future in zip(symbols, futures):
        exc = future.exception()
        if exc is not None:
            logger.error(f"Processing failed for {symbol}: {exc}")
            raise exc
        results.append(future.result())

    return compose_stock_price_response(results)
