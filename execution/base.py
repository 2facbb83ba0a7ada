from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from models.enums import OrderSide
from models.trading_models import AccountSnapshot, OpenOrder, PortfolioSummary, Position, PortfolioPosition


class BrokerClient(ABC):
    """Capability set the reconciler and orchestrator rely on"""

    @abstractmethod
    async def get_account(self) -> AccountSnapshot:
        pass

    @abstractmethod
    async def get_position(self, symbol: str) -> Optional[Position]:
        pass

    @abstractmethod
    async def list_positions(self) -> List[Position]:
        pass

    @abstractmethod
    async def get_current_price(self, symbol: str) -> Decimal:
        pass

    @abstractmethod
    async def list_open_orders(self, symbol: Optional[str] = None) -> List[OpenOrder]:
        pass

    @abstractmethod
    async def cancel_order(self, order_id: str) -> None:
        pass

    @abstractmethod
    async def submit_market_order(self, side: OrderSide, qty: int, symbol: str) -> OpenOrder:
        pass

    @abstractmethod
    async def poll_order_status(self, order_id: str) -> OpenOrder:
        pass

    async def get_portfolio_summary(self) -> PortfolioSummary:
        positions = await self.list_positions()
        account = await self.get_account()
        return PortfolioSummary(
            total_value=account.portfolio_value,
            cash=account.cash,
            buying_power=account.buying_power,
            equity=account.equity,
            positions=[
                PortfolioPosition(
                    symbol=p.symbol,
                    qty=p.qty,
                    current_price=p.current_price,
                    market_value=p.market_value,
                    unrealized_pl=p.unrealized_pl,
                    unrealized_plpc=p.unrealized_plpc,
                )
                for p in positions
            ],
        )

    async def close(self):
        pass
