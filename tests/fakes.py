# -*- coding: utf-8 -*-
"""
In-memory broker and sleep doubles shared by the tests.
"""

import itertools
from decimal import Decimal
from typing import Dict, List, Optional

from execution.base import BrokerClient
from execution.errors import ApiRejection, NotFoundError, PriceUnavailableError
from models.enums import OrderSide
from models.trading_models import AccountSnapshot, OpenOrder, Position

MUTATING = ("cancel_order", "submit_market_order")


def make_position(symbol: str, qty, price="10") -> Position:
    qty = Decimal(str(qty))
    price = Decimal(str(price))
    return Position(
        symbol=symbol,
        qty=qty,
        market_value=qty * price,
        avg_entry_price=price,
        unrealized_pl=Decimal("0"),
        unrealized_plpc=Decimal("0"),
    )


def make_order(order_id: str, symbol: str, side: OrderSide, qty=1, status="new") -> OpenOrder:
    return OpenOrder(
        id=order_id,
        symbol=symbol,
        side=side,
        qty=Decimal(str(qty)),
        status=status,
        submitted_at="2024-01-02T15:00:00Z",
    )


def wash_trade_rejection(symbol: str = "BOIL") -> ApiRejection:
    return ApiRejection(
        403,
        '{"code":40310000,"message":"potential wash trade detected. use complex orders"}',
        "submit_buy",
        symbol,
    )


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeBroker(BrokerClient):
    """Simulated account: market sells and buys fill immediately."""

    def __init__(self, prices: Optional[Dict[str, str]] = None):
        self.positions: Dict[str, Position] = {}
        self.open_orders: Dict[str, OpenOrder] = {}
        self.prices = {k: Decimal(v) for k, v in (prices or {"BOIL": "25", "KOLD": "40"}).items()}
        self.calls: List[tuple] = []
        self.buy_errors: List[Exception] = []
        self.sell_errors: Dict[str, Exception] = {}
        self.position_errors: Dict[str, Exception] = {}
        self.price_error: Optional[Exception] = None
        self.poll_error: Optional[Exception] = None
        self.poll_fill = True
        self._ids = itertools.count(1)

    # helpers ---------------------------------------------------------

    def calls_to(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    @property
    def mutating_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in MUTATING]

    def submitted(self, side: OrderSide) -> List[tuple]:
        return [c for c in self.calls_to("submit_market_order") if c[1] == side]

    def position_qty(self, symbol: str) -> Decimal:
        pos = self.positions.get(symbol)
        return pos.qty if pos else Decimal(0)

    # BrokerClient ----------------------------------------------------

    async def get_account(self) -> AccountSnapshot:
        self.calls.append(("get_account",))
        value = sum((p.market_value for p in self.positions.values()), Decimal(0))
        return AccountSnapshot(
            equity=Decimal("10000") + value,
            buying_power=Decimal("10000"),
            cash=Decimal("10000"),
            portfolio_value=Decimal("10000") + value,
            status="ACTIVE",
        )

    async def get_position(self, symbol: str) -> Optional[Position]:
        self.calls.append(("get_position", symbol))
        if symbol in self.position_errors:
            raise self.position_errors[symbol]
        return self.positions.get(symbol)

    async def list_positions(self) -> List[Position]:
        self.calls.append(("list_positions",))
        return list(self.positions.values())

    async def get_current_price(self, symbol: str) -> Decimal:
        self.calls.append(("get_current_price", symbol))
        if self.price_error is not None:
            raise self.price_error
        if symbol not in self.prices:
            raise PriceUnavailableError("no price", "get_current_price", symbol)
        return self.prices[symbol]

    async def list_open_orders(self, symbol: Optional[str] = None) -> List[OpenOrder]:
        self.calls.append(("list_open_orders", symbol))
        return [o for o in self.open_orders.values() if symbol is None or o.symbol == symbol]

    async def cancel_order(self, order_id: str) -> None:
        self.calls.append(("cancel_order", order_id))
        if order_id not in self.open_orders:
            raise NotFoundError(404, "order not found", "cancel_order")
        del self.open_orders[order_id]

    async def submit_market_order(self, side: OrderSide, qty: int, symbol: str) -> OpenOrder:
        self.calls.append(("submit_market_order", side, qty, symbol))
        if side == OrderSide.BUY and self.buy_errors:
            raise self.buy_errors.pop(0)
        if side == OrderSide.SELL and symbol in self.sell_errors:
            raise self.sell_errors[symbol]

        order_id = f"order-{next(self._ids)}"
        current = self.position_qty(symbol)
        price = self.prices.get(symbol, Decimal("1"))
        new_qty = current + qty if side == OrderSide.BUY else current - qty
        if new_qty == 0:
            self.positions.pop(symbol, None)
        else:
            self.positions[symbol] = make_position(symbol, new_qty, price)
        return make_order(order_id, symbol, side, qty, status="accepted")

    async def poll_order_status(self, order_id: str) -> OpenOrder:
        self.calls.append(("poll_order_status", order_id))
        if self.poll_error is not None:
            raise self.poll_error
        submit = [c for c in self.calls_to("submit_market_order")][-1]
        _, side, qty, symbol = submit
        order = make_order(order_id, symbol, side, qty, status="filled" if self.poll_fill else "accepted")
        if not self.poll_fill:
            return order
        return OpenOrder(
            id=order.id,
            symbol=order.symbol,
            side=order.side,
            qty=order.qty,
            status=order.status,
            submitted_at=order.submitted_at,
            filled_qty=order.qty,
            filled_avg_price=self.prices.get(symbol),
        )
