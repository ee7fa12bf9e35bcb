# backend-services/shared/contracts.py
"""
This module defines the Pydantic models that serve as the formal data contracts
for the Stock Price Checker backend.

These models ensure data consistency, provide automatic validation, and act as
living documentation for the data stored per symbol and the payloads returned
by GET /api/stock-prices.
"""

import math
from typing import List, Optional, Set, TypeAlias, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Allowed ticker characters: letters, digits, dot, hyphen
TICKER_PATTERN = r"^[A-Za-z0-9.\-]+$"
MAX_TICKER_LEN = 10
MAX_SYMBOLS_PER_REQUEST = 2

# --- Contract 1: TickerList ---
TickerList: TypeAlias = List[str]
"""A list of one or two requested ticker symbols (e.g., ["GOOG", "MSFT"])."""


# --- Contract 2: StockRecord ---
class StockRecord(BaseModel):
    """
    One stored document per uppercase symbol. The document key is `stock`,
    `likes` holds anonymized client identifiers.
    """
    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(alias="stock")
    likes: Set[str] = Field(default_factory=set)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    def to_document(self) -> dict:
        # Mongo has no set type; likes are stored as an array kept unique by $addToSet
        return {"stock": self.symbol, "likes": sorted(self.likes)}


# --- Contract 3: QuoteResult ---
class QuoteResult(BaseModel):
    """A normalized upstream quote. price=None means the quote is unavailable."""
    symbol: str
    price: Optional[float] = None

    @field_validator("price")
    @classmethod
    def _finite_non_negative(cls, v):
        if v is not None and (math.isnan(v) or math.isinf(v) or v < 0):
            raise ValueError("price must be a finite, non-negative number")
        return v

    @property
    def available(self) -> bool:
        return self.price is not None


# --- Contract 4: StockPriceResponse ---
class StockDataSingle(BaseModel):
    """stockData for a one-symbol request."""
    stock: str
    price: float
    likes: int = Field(ge=0)


class StockDataRelative(BaseModel):
    """One entry of stockData for a two-symbol request."""
    stock: str
    price: float
    rel_likes: int


class StockPriceResponse(BaseModel):
    """Top-level payload of GET /api/stock-prices."""
    stockData: Union[StockDataSingle, List[StockDataRelative]]


# --- Contract 5: ApiError ---
class ApiError(BaseModel):
    """Standard error envelope for all error responses."""
    error: str
