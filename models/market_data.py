from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(slots=True, frozen=True)
class LatestBar:
    """Latest minute bar"""
    symbol: str
    close: Decimal
    timestamp: str = ""


@dataclass(slots=True, frozen=True)
class LatestQuote:
    """Latest NBBO quote; any side may be missing"""
    symbol: str
    bid_price: Optional[Decimal] = None
    ask_price: Optional[Decimal] = None
    price: Optional[Decimal] = None
    timestamp: str = ""

    @property
    def best_price(self) -> Optional[Decimal]:
        # bid first, then ask, then the generic price field
        for candidate in (self.bid_price, self.ask_price, self.price):
            if candidate is not None and candidate > 0:
                return candidate
        return None
