"""Tests for the exchange calculator."""

import itertools

import pytest

from tokenswap.core.swap import (
    convert,
    exchange_rate,
    format_price,
    format_rate,
    is_amount_text,
    parse_amount,
    usd_value,
)
from tokenswap.services.token_catalog import Token

ETH = Token(currency="ETH", price=2500.0, icon_ref="eth.svg")
BTC = Token(currency="BTC", price=40000.0, icon_ref="btc.svg")
USDC = Token(currency="USDC", price=0.9998, icon_ref="usdc.svg")
SWTH = Token(currency="SWTH", price=0.004039, icon_ref="swth.svg")


class TestExchangeRate:

    def test_worked_example(self):
        rate = exchange_rate(ETH, BTC)
        assert rate == 0.0625
        assert convert("2", rate) == "0.125000"

    def test_undefined_without_both_tokens(self):
        assert exchange_rate(None, BTC) is None
        assert exchange_rate(ETH, None) is None

    @pytest.mark.parametrize("a,b", list(itertools.permutations([ETH, BTC, USDC, SWTH], 2)))
    def test_rate_symmetry(self, a, b):
        assert exchange_rate(a, b) * exchange_rate(b, a) == pytest.approx(1.0)


class TestParseAmount:

    @pytest.mark.parametrize("text,expected", [
        ("2", 2.0),
        ("0.5", 0.5),
        (".5", 0.5),
        ("1.", 1.0),
        ("007", 7.0),
        ("0", 0.0),
    ])
    def test_parses_amount_lexicon(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", ".", None, "abc", "1.2.3", "-1", "1e5", "inf", "nan", " 1"])
    def test_unparsable_is_none(self, text):
        assert parse_amount(text) is None

    def test_overflowing_amount_is_none(self):
        assert parse_amount("9" * 400) is None

    @pytest.mark.parametrize("text", ["", "1", "1.", ".", "12.50"])
    def test_amount_text_accepts_partial_input(self, text):
        assert is_amount_text(text)

    @pytest.mark.parametrize("text", ["a", "1.2.", "1,5", "-2", "+2", "1 "])
    def test_amount_text_rejects_other_characters(self, text):
        assert not is_amount_text(text)


class TestConvert:

    def test_fixed_six_decimals(self):
        assert convert("1", 1 / 3) == "0.333333"
        assert convert("1000", 2.0) == "2000.000000"

    def test_zero_amount_converts(self):
        assert convert("0", 0.0625) == "0.000000"

    def test_none_without_rate(self):
        assert convert("2", None) is None

    @pytest.mark.parametrize("text", ["", ".", "abc"])
    def test_none_for_unparsable_amount(self, text):
        assert convert(text, 1.5) is None

    def test_none_for_negative_amount(self):
        assert convert("-1", 1.5) is None

    def test_trailing_dot_is_tolerated(self):
        assert convert("2.", 0.0625) == "0.125000"


class TestDisplayFormatting:

    def test_rate_label(self):
        assert format_rate(ETH, BTC) == "1 ETH = 0.062500 BTC"
        assert format_rate(BTC, ETH) == "1 BTC = 16.000000 ETH"

    def test_usd_value(self):
        assert usd_value("2", ETH) == "≈ $5,000.00"
        assert usd_value("0.125000", BTC) == "≈ $5,000.00"

    def test_usd_value_needs_token_and_amount(self):
        assert usd_value("2", None) is None
        assert usd_value("", ETH) is None
        assert usd_value(".", ETH) is None

    @pytest.mark.parametrize("price,label", [
        (40000.0, "$40,000.00"),
        (1.5, "$1.50"),
        (0.9998, "$0.9998"),
        (0.004039, "$0.004039"),
        (0.0000001, "$0.00"),
    ])
    def test_price_label(self, price, label):
        assert format_price(price) == label
