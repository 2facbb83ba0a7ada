#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quantity helpers, payload conversion and the JSON-lines trade logger
"""

import os
import sys
from decimal import Decimal

import orjson
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from execution.errors import ApiRejection, ParseError
from models.enums import Action, OrderSide
from models.market_data import LatestQuote
from models.trading_models import Decision, TradeResult, TradingSignal
from utils.alpaca_data_converter import convert_order, convert_quote
from utils.math_utils import order_qty_from_position, size_quantity
from utils.trading_logger import TradingLogger


def test_size_quantity_floors():
    assert size_quantity(Decimal("1000"), Decimal("25")) == 40
    assert size_quantity(Decimal("1000"), Decimal("33.33")) == 30
    assert size_quantity(Decimal("1000"), Decimal("300")) == 3


def test_size_quantity_minimum_one_share():
    assert size_quantity(Decimal("1000"), Decimal("1500")) == 1
    assert size_quantity(Decimal("10"), Decimal("9999.99")) == 1
    assert isinstance(size_quantity(Decimal("1000"), Decimal("7")), int)


def test_size_quantity_rejects_non_positive_price():
    with pytest.raises(ValueError):
        size_quantity(Decimal("1000"), Decimal("0"))


def test_size_quantity_rejects_non_finite_inputs():
    with pytest.raises(ValueError):
        size_quantity(Decimal("Infinity"), Decimal("25"))
    with pytest.raises(ValueError):
        size_quantity(Decimal("1000"), Decimal("NaN"))


def test_order_qty_from_position_truncates_absolute():
    assert order_qty_from_position(Decimal("10")) == 10
    assert order_qty_from_position(Decimal("7.9")) == 7
    assert order_qty_from_position(Decimal("-3.5")) == 3
    assert order_qty_from_position(Decimal("0.4")) == 0


def test_rejection_markers():
    wash = ApiRejection(403, '{"message":"potential WASH TRADE detected"}')
    held = ApiRejection(403, '{"message":"insufficient qty available for order","held_for_orders":"5"}')
    assert wash.is_wash_trade and not wash.is_insufficient_qty
    assert held.is_insufficient_qty and not held.is_wash_trade
    assert "HTTP 403" in str(wash)


def test_quote_best_price_skips_zero_sides():
    quote = LatestQuote("BOIL", bid_price=Decimal("0"), ask_price=Decimal("25.5"))
    assert quote.best_price == Decimal("25.5")
    assert LatestQuote("BOIL").best_price is None
    assert convert_quote({"quote": {"bp": 0, "ap": 0, "p": 0}}, "BOIL").best_price is None


def test_convert_order_rejects_unknown_side():
    with pytest.raises(ParseError):
        convert_order({"id": "x", "symbol": "BOIL", "side": "short", "qty": "1"})


def test_trade_result_from_order_truncates_quantities():
    order = convert_order({
        "id": "o-1", "symbol": "BOIL", "side": "buy", "qty": "12", "status": "partially_filled",
        "filled_qty": "4.5", "filled_avg_price": "25.10", "submitted_at": "t",
    })
    result = TradeResult.from_order(order)
    assert result.qty == 12
    assert result.filled_qty == 4
    assert result.filled_avg_price == Decimal("25.10")
    assert result.side == OrderSide.BUY


def read_lines(path):
    with open(path, "rb") as fh:
        return [orjson.loads(line) for line in fh]


def test_logger_appends_json_lines(tmp_path):
    trade_logger = TradingLogger(str(tmp_path / "logs"))
    signal = TradingSignal(0.1, 0.2, 0.3, 0.17, Decision(Action.HOLD))
    trade = TradeResult("o-1", "KOLD", OrderSide.BUY, 25, "filled", "t", 25, Decimal("40.02"))

    trade_logger.log_signal(signal)
    trade_logger.log_signal(signal)
    trade_logger.log_trade(trade)
    trade_logger.log_trade(None)

    signals = read_lines(tmp_path / "logs" / "signals.log")
    assert len(signals) == 2
    assert signals[0]["action"] == "HOLD"
    assert signals[0]["total_signal"] == 0.17

    trades = read_lines(tmp_path / "logs" / "trades.log")
    assert trades[0]["executed"] is True
    assert trades[0]["trade"]["filled_avg_price"] == 40.02
    assert trades[1] == {"timestamp": trades[1]["timestamp"], "executed": False, "trade": None}


def test_logger_error_record(tmp_path):
    trade_logger = TradingLogger(str(tmp_path))
    record = trade_logger.log_error(ApiRejection(500, "boom", "submit_sell", "KOLD"), "liquidate")

    assert record["error_type"] == "ApiRejection"
    assert "submit_sell/KOLD" in record["error_message"]
    assert read_lines(tmp_path / "errors.log")[0]["context"] == "liquidate"
