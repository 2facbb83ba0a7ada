from dataclasses import dataclass
from decimal import Decimal

from config.system_config import env_value, load_env_files


@dataclass(frozen=True)
class TradingConfig:
    SYMBOL: str = "BOIL"
    INVERSE_SYMBOL: str = "KOLD"
    POSITION_SIZE: Decimal = Decimal("1000")

    # settle delays (seconds)
    CANCEL_SETTLE_SECONDS: float = 1.0
    RETRY_SETTLE_SECONDS: float = 2.0
    FILL_SETTLE_SECONDS: float = 2.0

    CYCLE_INTERVAL_HOURS: float = 24.0
    FAILURE_BACKOFF_SECONDS: float = 300.0

    def __post_init__(self):
        if self.SYMBOL == self.INVERSE_SYMBOL:
            raise ValueError(f"SYMBOL and INVERSE_SYMBOL must differ (both {self.SYMBOL})")
        if not Decimal(self.POSITION_SIZE).is_finite():
            raise ValueError(f"POSITION_SIZE must be a finite amount, got {self.POSITION_SIZE}")
        if self.POSITION_SIZE <= 0:
            raise ValueError(f"POSITION_SIZE must be positive, got {self.POSITION_SIZE}")

    @classmethod
    def from_env(cls, load_files: bool = True) -> "TradingConfig":
        if load_files:
            load_env_files()
        return cls(
            SYMBOL=env_value("SYMBOL", cls.SYMBOL, str).upper(),
            INVERSE_SYMBOL=env_value("INVERSE_SYMBOL", cls.INVERSE_SYMBOL, str).upper(),
            POSITION_SIZE=env_value("POSITION_SIZE", cls.POSITION_SIZE, Decimal),
        )

    @property
    def tracked_symbols(self):
        return (self.SYMBOL, self.INVERSE_SYMBOL)

    def other_symbol(self, symbol: str) -> str:
        if symbol == self.SYMBOL:
            return self.INVERSE_SYMBOL
        if symbol == self.INVERSE_SYMBOL:
            return self.SYMBOL
        raise ValueError(f"{symbol} is not a tracked symbol {self.tracked_symbols}")
