# backend-services/stock-price-service/database/like_store.py
"""
Like store: one record per uppercase symbol holding a deduplicated set of
anonymized client identifiers.

The orchestrator depends only on LikeStore. MongoLikeStore is the production
implementation; InMemoryLikeStore backs tests and LIKE_STORE=memory.
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Set

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import mongo_client
from shared.contracts import StockRecord

logger = logging.getLogger(__name__)


class StockAlreadyExistsError(Exception):
    """Raised by create() when a record for the symbol is already stored."""

    def __init__(self, symbol: str):
        super().__init__(f"Stock record already exists: {symbol}")
        self.symbol = symbol


class LikeStore(ABC):
    @abstractmethod
    def find(self, symbol: str) -> Optional[StockRecord]: ...

    @abstractmethod
    def create(self, symbol: str, initial_likes: Iterable[str] = ()) -> StockRecord: ...

    @abstractmethod
    def add_like(self, symbol: str, identifier: str) -> int:
        """Add identifier to the symbol's like set; return the resulting like count."""


class InMemoryLikeStore(LikeStore):
    """Process-local store. A single lock makes every call atomic."""

    def __init__(self):
        self._records: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def find(self, symbol: str) -> Optional[StockRecord]:
        with self._lock:
            likes = self._records.get(symbol)
            if likes is None:
                return None
            return StockRecord(symbol=symbol, likes=set(likes))

    def create(self, symbol: str, initial_likes: Iterable[str] = ()) -> StockRecord:
        with self._lock:
            if symbol in self._records:
                raise StockAlreadyExistsError(symbol)
            self._records[symbol] = set(initial_likes)
            return StockRecord(symbol=symbol, likes=set(self._records[symbol]))

    def add_like(self, symbol: str, identifier: str) -> int:
        with self._lock:
            likes = self._records.setdefault(symbol, set())
            likes.add(identifier)
            return len(likes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class MongoLikeStore(LikeStore):
    """
    Stores one document per symbol in the `stocks` collection:
        {"stock": "GOOG", "likes": ["<sha256>", ...]}
    """

    def __init__(self, db: Any):
        self._coll = db[mongo_client.STOCKS_COLL]

    def find(self, symbol: str) -> Optional[StockRecord]:
        doc = self._coll.find_one({"stock": symbol}, {"_id": 0, "stock": 1, "likes": 1})
        if doc is None:
            return None
        return StockRecord(symbol=doc["stock"], likes=set(doc.get("likes") or []))

    def create(self, symbol: str, initial_likes: Iterable[str] = ()) -> StockRecord:
        record = StockRecord(symbol=symbol, likes=set(initial_likes))
        try:
            self._coll.insert_one(record.to_document())
        except DuplicateKeyError as e:
            raise StockAlreadyExistsError(symbol) from e
        return record

    def add_like(self, symbol: str, identifier: str) -> int:
        # $addToSet in one server-side update keeps concurrent likes from being lost
        doc = self._coll.find_one_and_update(
            {"stock": symbol},
            {"$addToSet": {"likes": identifier}},
            projection={"_id": 0, "likes": 1},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return len((doc or {}).get("likes") or [])


def build_like_store() -> LikeStore:
    """
    Build the store selected by LIKE_STORE ("mongo" by default, or "memory").
    """
    kind = os.getenv("LIKE_STORE", "mongo").strip().lower()
    if kind == "memory":
        logger.info("Using in-memory like store.")
        return InMemoryLikeStore()
    if kind != "mongo":
        raise ValueError(f"Unsupported LIKE_STORE: {kind}")

    client, db = mongo_client.connect()
    mongo_client.initialize_indexes(db)
    logger.info(f"Using MongoDB like store on database '{db.name}'.")
    return MongoLikeStore(db)
