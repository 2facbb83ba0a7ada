# -*- coding: utf-8 -*-
"""
trading_logger.py

Append-only JSON-lines records for signal, trade, portfolio and error events.
One file per event kind under the log directory.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

import orjson

from models.trading_models import PortfolioSummary, TradeResult, TradingSignal

logger = logging.getLogger(__name__)


def _default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TradingLogger:

    SIGNALS = "signals.log"
    TRADES = "trades.log"
    PORTFOLIO = "portfolio.log"
    ERRORS = "errors.log"

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _append(self, filename: str, record: Dict[str, Any]) -> None:
        line = orjson.dumps(record, default=_default, option=orjson.OPT_APPEND_NEWLINE)
        try:
            with open(self.log_dir / filename, "ab") as fh:
                fh.write(line)
        except OSError as e:
            logger.error("Error writing to %s: %s", filename, e)

    def log_signal(self, signal: TradingSignal) -> Dict[str, Any]:
        record = {
            "timestamp": signal.timestamp.isoformat(),
            "temperature_signal": signal.temperature_signal,
            "inventory_signal": signal.inventory_signal,
            "storm_signal": signal.storm_signal,
            "total_signal": signal.total_signal,
            "action": signal.action.value,
            "symbol": signal.symbol,
            "confidence": signal.confidence,
        }
        logger.info("TRADING SIGNAL: %s", orjson.dumps(record).decode())
        self._append(self.SIGNALS, record)
        return record

    def log_trade(self, trade: Optional[TradeResult]) -> Dict[str, Any]:
        # absence is recorded explicitly so every cycle leaves a trade line
        record = {"timestamp": _now(), "executed": trade is not None, "trade": trade}
        if trade is None:
            logger.info("No trade executed")
        else:
            logger.info("TRADE EXECUTED: %s", orjson.dumps(trade, default=_default).decode())
        self._append(self.TRADES, record)
        return record

    def log_portfolio(self, portfolio: PortfolioSummary) -> Dict[str, Any]:
        record = {"timestamp": _now(), "portfolio": portfolio}
        logger.info("PORTFOLIO STATUS: %s", orjson.dumps(portfolio, default=_default).decode())
        self._append(self.PORTFOLIO, record)
        return record

    def log_error(self, error: BaseException, context: str) -> Dict[str, Any]:
        record = {
            "timestamp": _now(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
        }
        logger.error("ERROR [%s] %s: %s", context, type(error).__name__, error)
        self._append(self.ERRORS, record)
        return record
