# backend-services/stock-price-service/app.py
from flask import Flask, request, jsonify
import os
import logging
from logging.handlers import RotatingFileHandler
import threading
from shared.contracts import ApiError

# --- 1. Initialize Flask App and Basic Config ---
app = Flask(__name__)
PORT = int(os.getenv("PORT", 3000))
IP_HASH_SALT = os.getenv("IP_HASH_SALT", "")

# --- 2. Define Logging Setup Function ---
def setup_logging(app):
    """Configures comprehensive logging for the Flask app."""
    log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Handlers (console + rotating file), built once
    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    log_directory = os.getenv("LOG_DIR", "/app/logs")
    file_error = None
    try:
        os.makedirs(log_directory, exist_ok=True)
        log_file = os.path.join(log_directory, "stock_price_service.log")
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except OSError as e:
        # Read-only or missing volume: keep console logging only
        file_error = e

    app.logger.setLevel(log_level)
    app.logger.propagate = False

    # Clear existing handlers to avoid duplication
    for h in list(app.logger.handlers):
        app.logger.removeHandler(h)

    # Attach the handlers to app.logger
    for h in handlers:
        app.logger.addHandler(h)

    # prevent werkzeug from duplicating to root/stdout
    werk = logging.getLogger("werkzeug")
    werk.propagate = False
    for h in list(werk.handlers):
        if isinstance(h, logging.StreamHandler):
            werk.removeHandler(h)

    # Module loggers that should emit through the same handlers
    module_names = [
        "helper_functions",
        "data_fetcher",
        "services.stock_likes_service",
        "database.like_store",
    ]
    for name in module_names:
        module_loggers = logging.getLogger(name)
        module_loggers.setLevel(log_level)
        module_loggers.propagate = False
        # Clear existing handlers
        for h in list(module_loggers.handlers):
            module_loggers.removeHandler(h)
        # Attach shared handlers
        for h in handlers:
            module_loggers.addHandler(h)

    if file_error is not None:
        app.logger.warning(f"File logging disabled, cannot use {log_directory}: {file_error}")
    app.logger.info("Stock price service logging initialized.")
# --- End of Logging Setup ---
setup_logging(app)

# --- 3. Import Project-Specific Modules ---
from database.like_store import build_like_store
from helper_functions import InvalidRequestError, normalize_symbols, parse_like_flag
from services.stock_likes_service import get_stock_prices

_store_lock = threading.Lock()


def get_like_store():
    """
    Return the configured like store, building it on first use.
    Tests inject their own via app.config["LIKE_STORE"].
    """
    store = app.config.get("LIKE_STORE")
    if store is None:
        with _store_lock:
            store = app.config.get("LIKE_STORE")
            if store is None:
                store = build_like_store()
                app.config["LIKE_STORE"] = store
    return store


@app.route('/api/stock-prices', methods=['GET'])
def stock_prices():
    """
    Live quote plus anonymous like counter for one symbol, or a relative
    likes comparison for two.

    Query Parameters:
      - stock: ticker symbol, repeat once for a comparison (?stock=GOOG&stock=MSFT)
      - like:  "true" registers one like per caller per symbol

    Returns (JSON):
      one symbol:  {"stockData": {"stock": str, "price": float, "likes": int}}
      two symbols: {"stockData": [{"stock", "price", "rel_likes"}, {...}]}

    Status Codes:
      - 200: Success
      - 400: Zero, more than two, or malformed symbols
      - 500: Internal server error
    """
    raw_symbols = request.args.getlist('stock')
    like = parse_like_flag(request.args.get('like'))
    app.logger.info(f"GET /api/stock-prices - symbols={raw_symbols} like={like}")

    try:
        # Symbols are validated before the store is built
        symbols = normalize_symbols(raw_symbols)
        payload = get_stock_prices(
            symbols,
            like,
            request.remote_addr,
            get_like_store(),
            salt=IP_HASH_SALT,
        )
        return jsonify(payload), 200
    except InvalidRequestError as ie:
        app.logger.info(f"Rejected stock-prices request: {ie}")
        return jsonify(ApiError(error="Invalid request").model_dump()), 400
    except Exception as e:
        # Do not leak internals in responses
        app.logger.error(f"An unexpected error occurred in /api/stock-prices: {e}", exc_info=True)
        return jsonify(ApiError(error="Server error").model_dump()), 500


@app.route('/health', methods=['GET'])
def health_check():
    """Standard health check endpoint."""
    return jsonify({"status": "healthy"}), 200

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=PORT)
