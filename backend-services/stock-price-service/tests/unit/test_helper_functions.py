# backend-services/stock-price-service/tests/unit/test_helper_functions.py
"""
Unit tests for helper_functions: anonymizer, query parsing and response shaping.
"""
import hashlib

import pytest

from helper_functions import (
    InvalidRequestError,
    anonymize_ip,
    compose_pair_response,
    compose_single_response,
    compose_stock_price_response,
    normalize_symbols,
    parse_like_flag,
)
from shared.contracts import QuoteResult


class TestAnonymizeIp:
    def test_is_deterministic(self):
        assert anonymize_ip("203.0.113.7") == anonymize_ip("203.0.113.7")

    def test_matches_plain_sha256_without_salt(self):
        expected = hashlib.sha256(b"203.0.113.7").hexdigest()
        assert anonymize_ip("203.0.113.7") == expected

    def test_distinct_addresses_give_distinct_ids(self):
        assert anonymize_ip("203.0.113.7") != anonymize_ip("203.0.113.8")

    def test_does_not_contain_raw_address(self):
        ident = anonymize_ip("203.0.113.7")
        assert "203.0.113.7" not in ident
        assert len(ident) == 64

    def test_salt_changes_identifier(self):
        assert anonymize_ip("::1", salt="pepper") != anonymize_ip("::1")
        assert anonymize_ip("::1", salt="pepper") == anonymize_ip("::1", salt="pepper")

    def test_missing_address_is_accepted(self):
        assert anonymize_ip(None) == hashlib.sha256(b"").hexdigest()


class TestParseLikeFlag:
    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "on", " True "])
    def test_truthy_values(self, value):
        assert parse_like_flag(value) is True

    @pytest.mark.parametrize("value", [None, "", "false", "0", "no", "maybe"])
    def test_everything_else_is_not_a_like(self, value):
        assert parse_like_flag(value) is False

    def test_bool_passthrough(self):
        assert parse_like_flag(True) is True
        assert parse_like_flag(False) is False


class TestNormalizeSymbols:
    def test_uppercases_and_strips(self):
        assert normalize_symbols([" goog ", "msft"]) == ["GOOG", "MSFT"]

    def test_blank_values_are_dropped(self):
        assert normalize_symbols(["", "aapl", "  "]) == ["AAPL"]

    def test_allows_dot_and_hyphen(self):
        assert normalize_symbols(["brk.b", "rds-a"]) == ["BRK.B", "RDS-A"]

    @pytest.mark.parametrize("symbols", [None, [], [""], ["A", "B", "C"]])
    def test_rejects_wrong_count(self, symbols):
        with pytest.raises(InvalidRequestError):
            normalize_symbols(symbols)

    @pytest.mark.parametrize("bad", ["GO OG", "../etc", "ABCDEFGHIJK", "$GOOG"])
    def test_rejects_malformed_ticker(self, bad):
        with pytest.raises(InvalidRequestError):
            normalize_symbols([bad])


class TestResponseShaping:
    def test_single_response_shape(self):
        payload = compose_single_response(QuoteResult(symbol="GOOG", price=786.9), 3)
        assert payload == {"stockData": {"stock": "GOOG", "price": 786.9, "likes": 3}}

    def test_single_unavailable_price_is_zero(self):
        payload = compose_single_response(QuoteResult(symbol="NOPE", price=None), 0)
        assert payload["stockData"]["price"] == 0
        assert payload["stockData"]["likes"] == 0

    def test_price_keeps_full_precision(self):
        payload = compose_single_response(QuoteResult(symbol="GOOG", price=123.456789), 0)
        assert payload["stockData"]["price"] == 123.456789

    def test_pair_rel_likes_are_negatives(self):
        payload = compose_pair_response([
            (QuoteResult(symbol="GOOG", price=786.9), 5),
            (QuoteResult(symbol="MSFT", price=62.3), 2),
        ])
        first, second = payload["stockData"]
        assert first == {"stock": "GOOG", "price": 786.9, "rel_likes": 3}
        assert second == {"stock": "MSFT", "price": 62.3, "rel_likes": -3}
        assert "likes" not in first

    def test_pair_with_one_unavailable_quote(self):
        payload = compose_pair_response([
            (QuoteResult(symbol="GOOG", price=786.9), 1),
            (QuoteResult(symbol="NOPE", price=None), 0),
        ])
        assert payload["stockData"][1]["price"] == 0
        assert payload["stockData"][0]["rel_likes"] == 1

    def test_dispatch_by_result_count(self):
        single = compose_stock_price_response([(QuoteResult(symbol="A", price=1.0), 0)])
        assert isinstance(single["stockData"], dict)
        with pytest.raises(InvalidRequestError):
            compose_stock_price_response([])
