# -*- coding: utf-8 -*-
"""
integrated_trading_system.py - natural-gas trading cycle

fetch signals -> fuse -> reconcile -> log, repeated on an interval.
Cycles never overlap: the interval/backoff sleep serialises them.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from config.strategy_config import StrategyConfig
from config.system_config import SystemConfig
from config.trading_config import TradingConfig
from engine.order_reconciler import OrderReconciler
from execution.base import BrokerClient
from execution.errors import BrokerError
from market.base import SignalFeed
from market.eia_feed import EIAFeed
from market.noaa_feed import NOAAFeed
from market.weather_feed import WeatherFeed
from strategy.signal_processor import SignalProcessor
from utils.trading_logger import TradingLogger

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class NatGasTradingSystem:

    def __init__(
        self,
        broker: BrokerClient,
        trading_config: TradingConfig,
        strategy_config: StrategyConfig,
        trade_logger: TradingLogger,
        feeds: Optional[Sequence[SignalFeed]] = None,
        http_timeout: float = 10.0,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.broker = broker
        self.trading_cfg = trading_config
        self.strategy_cfg = strategy_config
        self.trade_logger = trade_logger
        self.sleep = sleep

        if feeds is None:
            feeds = (
                WeatherFeed(strategy_config.weather, timeout=http_timeout),
                EIAFeed(strategy_config.eia, timeout=http_timeout),
                NOAAFeed(strategy_config.noaa, timeout=http_timeout),
            )
        if len(feeds) != 3:
            raise ValueError("expected temperature, inventory and storm feeds")
        self.feeds = tuple(feeds)

        self.signal_processor = SignalProcessor(
            strategy_config.signal, trading_config.SYMBOL, trading_config.INVERSE_SYMBOL
        )
        self.reconciler = OrderReconciler(broker, trading_config, sleep=sleep)

    @classmethod
    def from_configs(cls, system_config: SystemConfig, trading_config: TradingConfig,
                     strategy_config: StrategyConfig, broker: BrokerClient) -> "NatGasTradingSystem":
        return cls(
            broker=broker,
            trading_config=trading_config,
            strategy_config=strategy_config,
            trade_logger=TradingLogger(system_config.LOG_DIR),
            http_timeout=system_config.HTTP_TIMEOUT,
        )

    async def verify_connection(self) -> bool:
        try:
            account = await self.broker.get_account()
        except BrokerError as e:
            logger.error("Failed to connect to Alpaca API: %s", e)
            return False
        logger.info("Connected to Alpaca. Status: %s  Equity: $%.2f  Buying power: $%.2f",
                    account.status or "unknown", account.equity, account.buying_power)
        return True

    async def _fetch_one(self, idx: int, feed: SignalFeed) -> float:
        logger.info("[%d/3] Fetching %s signal...", idx, feed.name)
        try:
            value = float(await feed.fetch_signal())
        except Exception as e:
            # a broken feed degrades to neutral, it never aborts the cycle
            logger.error("[%d/3] %s signal failed, using neutral: %s", idx, feed.name, e)
            self.trade_logger.log_error(e, f"fetch_{feed.name}_signal")
            return SignalFeed.NEUTRAL
        logger.info("[%d/3] %s signal: %.4f", idx, feed.name.capitalize(), value)
        return value

    async def fetch_all_signals(self) -> Tuple[float, float, float]:
        logger.info(">>> Starting signal fetch process <<<")
        temperature, inventory, storm = [
            await self._fetch_one(idx, feed) for idx, feed in enumerate(self.feeds, start=1)
        ]
        logger.info(">>> Signal fetch complete: temperature=%.4f inventory=%.4f storm=%.4f <<<",
                    temperature, inventory, storm)
        return temperature, inventory, storm

    async def run_trading_cycle(self) -> bool:
        logger.info("=" * 60)
        logger.info("STARTING TRADING CYCLE  %s", datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"))
        logger.info("=" * 60)

        try:
            temperature, inventory, storm = await self.fetch_all_signals()
            trading_signal = self.signal_processor.create_trading_signal(temperature, inventory, storm)
            self.trade_logger.log_signal(trading_signal)

            trade_result = await self.reconciler.execute(trading_signal.decision)
            self.trade_logger.log_trade(trade_result)

            logger.info(">>> Fetching portfolio summary <<<")
            try:
                portfolio = await self.broker.get_portfolio_summary()
            except BrokerError as e:
                logger.error("Error getting portfolio summary: %s", e)
                self.trade_logger.log_error(e, "portfolio_summary")
            else:
                self.trade_logger.log_portfolio(portfolio)
        except Exception as e:
            logger.exception("Trading cycle failed")
            self.trade_logger.log_error(e, "trading_cycle")
            return False

        logger.info("=" * 60)
        logger.info("TRADING CYCLE COMPLETED SUCCESSFULLY")
        logger.info("=" * 60)
        return True

    async def run_continuous(self, interval_hours: Optional[float] = None) -> None:
        """Run cycles forever; only process termination stops the loop."""
        if interval_hours is None:
            interval_hours = self.trading_cfg.CYCLE_INTERVAL_HOURS
        logger.info("Starting continuous trading with %sh intervals", interval_hours)

        while True:
            if await self.run_trading_cycle():
                logger.info("Waiting %s hours until next cycle", interval_hours)
                await self.sleep(interval_hours * 3600)
            else:
                backoff = self.trading_cfg.FAILURE_BACKOFF_SECONDS
                logger.info("Trading cycle failed, waiting %.0f seconds before retry", backoff)
                await self.sleep(backoff)
