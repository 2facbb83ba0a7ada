from enum import Enum, IntEnum


class Action(str, Enum):
    BUY = "BUY"
    HOLD = "HOLD"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class ReconcileState(IntEnum):
    IDLE = 0
    CANCEL_CONFLICTS = 1
    LIQUIDATE_OPPOSITE = 2
    LIQUIDATE_STALE = 3
    SUBMIT = 4
    RETRY_SUBMIT = 5
    RESOLVED = 6
    FAILED = 7
