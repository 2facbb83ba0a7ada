# -*- coding: utf-8 -*-
"""
alpaca_data_converter.py

Convert Alpaca REST payloads into the domain models.

Alpaca sends every amount and quantity as a JSON string ("12.5"); market-data
endpoints send plain numbers. Both are parsed into Decimal.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from execution.errors import ParseError
from models.enums import OrderSide
from models.market_data import LatestBar, LatestQuote
from models.trading_models import AccountSnapshot, OpenOrder, Position


def to_decimal(value: Any, field_name: str, operation: str = "", symbol: Optional[str] = None) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ParseError(f"missing numeric field '{field_name}'", operation, symbol)
    try:
        # str() keeps float inputs from carrying binary noise into Decimal
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ParseError(f"field '{field_name}' is not numeric: {value!r}", operation, symbol)


def to_optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _require_mapping(payload: Any, operation: str, symbol: Optional[str]) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ParseError(f"expected JSON object, got {type(payload).__name__}", operation, symbol)
    return payload


def convert_account(payload: Any) -> AccountSnapshot:
    op = "get_account"
    data = _require_mapping(payload, op, None)
    return AccountSnapshot(
        equity=to_decimal(data.get("equity"), "equity", op),
        buying_power=to_decimal(data.get("buying_power"), "buying_power", op),
        cash=to_decimal(data.get("cash"), "cash", op),
        portfolio_value=to_decimal(data.get("portfolio_value"), "portfolio_value", op),
        status=str(data.get("status", "")),
    )


def convert_position(payload: Any, operation: str = "get_position") -> Position:
    data = _require_mapping(payload, operation, None)
    symbol = data.get("symbol")
    if not symbol:
        raise ParseError("position without symbol", operation)
    return Position(
        symbol=symbol,
        qty=to_decimal(data.get("qty"), "qty", operation, symbol),
        market_value=to_decimal(data.get("market_value"), "market_value", operation, symbol),
        avg_entry_price=to_decimal(data.get("avg_entry_price"), "avg_entry_price", operation, symbol),
        unrealized_pl=to_decimal(data.get("unrealized_pl", "0"), "unrealized_pl", operation, symbol),
        unrealized_plpc=to_decimal(data.get("unrealized_plpc", "0"), "unrealized_plpc", operation, symbol),
    )


def convert_order(payload: Any, operation: str = "order") -> OpenOrder:
    data = _require_mapping(payload, operation, None)
    symbol = data.get("symbol", "")
    order_id = data.get("id")
    if not order_id:
        raise ParseError("order without id", operation, symbol)

    raw_side = str(data.get("side", "")).lower()
    try:
        side = OrderSide(raw_side)
    except ValueError:
        raise ParseError(f"unknown order side {raw_side!r}", operation, symbol)

    return OpenOrder(
        id=order_id,
        symbol=symbol,
        side=side,
        # notional (dollar-amount) orders carry qty: null
        qty=to_optional_decimal(data.get("qty")) or Decimal(0),
        status=str(data.get("status", "")),
        submitted_at=str(data.get("submitted_at") or ""),
        order_type=str(data.get("type") or data.get("order_type") or "market"),
        filled_qty=to_optional_decimal(data.get("filled_qty")),
        filled_avg_price=to_optional_decimal(data.get("filled_avg_price")),
    )


def convert_bar(payload: Any, symbol: str) -> LatestBar:
    op = "latest_bar"
    data = _require_mapping(payload, op, symbol)
    bar = data.get("bar")
    if not isinstance(bar, dict):
        raise ParseError("no bar data in response", op, symbol)
    return LatestBar(
        symbol=symbol,
        close=to_decimal(bar.get("c"), "bar.c", op, symbol),
        timestamp=str(bar.get("t", "")),
    )


def convert_quote(payload: Any, symbol: str) -> LatestQuote:
    op = "latest_quote"
    data = _require_mapping(payload, op, symbol)
    quote = data.get("quote")
    if not isinstance(quote, dict):
        raise ParseError("no quote data in response", op, symbol)
    return LatestQuote(
        symbol=symbol,
        bid_price=to_optional_decimal(quote.get("bp")),
        ask_price=to_optional_decimal(quote.get("ap")),
        price=to_optional_decimal(quote.get("p")),
        timestamp=str(quote.get("t", "")),
    )
