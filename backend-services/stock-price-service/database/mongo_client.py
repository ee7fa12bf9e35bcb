# backend-services/stock-price-service/database/mongo_client.py
"""
MongoDB client helpers for stock-price-service
Handles the connection and the indexes of the stocks collection
"""

import os, sys
from typing import Any, Tuple
from pymongo import MongoClient

STOCKS_COLL = "stocks"


def connect() -> Tuple[MongoClient, Any]:
    """
    Establishes connection to MongoDB and returns client and database handle

    Returns:
        Tuple[MongoClient, Database]: MongoDB client and database object

    Raises:
        RuntimeError: If a non-test database would be used during a pytest run
    """
    MONGO_URI = os.getenv('MONGO_URI', 'mongodb://localhost:27017/')
    # Respect TEST_DB_NAME in test environment
    if os.getenv("ENV") == "test":
        db_name = os.getenv("TEST_DB_NAME", "test_stock_price_checker")
    else:
        db_name = os.getenv("STOCK_DB", "stock_price_checker")
        # Safety: Prevent test code from accidentally hitting prod
        if "pytest" in sys.modules and "test" not in db_name.lower():
            raise RuntimeError(
                f"Refusing to use prod DB '{db_name}' during test run. "
                f"Set ENV=test or TEST_DB_NAME."
            )
    client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=int(os.getenv("MONGO_TIMEOUT_MS", "5000")))
    db = client[db_name]
    return client, db


def initialize_indexes(db: Any) -> None:
    """
    Creates required indexes on the stocks collection

    CRITICAL: `stock` is unique so two racing inserts for one symbol cannot
    both succeed; the loser gets a DuplicateKeyError.

    Raises:
        OperationFailure: If index creation fails
    """
    db[STOCKS_COLL].create_index(
        [("stock", 1)],
        name="stock_symbol_unique_idx",
        unique=True,
        background=True,
    )
