from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from models.enums import Action, OrderSide


@dataclass(slots=True, frozen=True)
class AccountSnapshot:
    equity: Decimal
    buying_power: Decimal
    cash: Decimal
    portfolio_value: Decimal
    status: str = ""


@dataclass(slots=True, frozen=True)
class Position:
    symbol: str
    qty: Decimal
    market_value: Decimal
    avg_entry_price: Decimal
    unrealized_pl: Decimal
    unrealized_plpc: Decimal

    @property
    def current_price(self) -> Decimal:
        if self.qty == 0:
            return Decimal(0)
        return self.market_value / self.qty


@dataclass(slots=True, frozen=True)
class OpenOrder:
    id: str
    symbol: str
    side: OrderSide
    qty: Decimal
    status: str
    submitted_at: str = ""
    order_type: str = "market"
    filled_qty: Optional[Decimal] = None
    filled_avg_price: Optional[Decimal] = None


@dataclass(slots=True, frozen=True)
class Decision:
    action: Action
    target_symbol: str = ""
    confidence: float = 0.0

    @classmethod
    def hold(cls) -> "Decision":
        return cls(Action.HOLD, "", 0.0)


@dataclass(slots=True, frozen=True)
class TradingSignal:
    temperature_signal: float
    inventory_signal: float
    storm_signal: float
    total_signal: float
    decision: Decision
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def action(self) -> Action:
        return self.decision.action

    @property
    def symbol(self) -> str:
        return self.decision.target_symbol

    @property
    def confidence(self) -> float:
        return self.decision.confidence


@dataclass(slots=True, frozen=True)
class TradeResult:
    order_id: str
    symbol: str
    side: OrderSide
    qty: int
    status: str
    submitted_at: str
    filled_qty: Optional[int] = None
    filled_avg_price: Optional[Decimal] = None

    @classmethod
    def from_order(cls, order: OpenOrder) -> "TradeResult":
        filled_qty = None
        if order.filled_qty is not None:
            filled_qty = int(abs(order.filled_qty))
        return cls(
            order_id=order.id,
            symbol=order.symbol,
            side=order.side,
            qty=int(abs(order.qty)),
            status=order.status,
            submitted_at=order.submitted_at,
            filled_qty=filled_qty,
            filled_avg_price=order.filled_avg_price,
        )


@dataclass(slots=True, frozen=True)
class PortfolioPosition:
    symbol: str
    qty: Decimal
    current_price: Decimal
    market_value: Decimal
    unrealized_pl: Decimal
    unrealized_plpc: Decimal


@dataclass(slots=True, frozen=True)
class PortfolioSummary:
    total_value: Decimal
    cash: Decimal
    buying_power: Decimal
    equity: Decimal
    positions: List[PortfolioPosition] = field(default_factory=list)
