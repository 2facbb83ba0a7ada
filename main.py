#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
main.py - natural-gas trading bot (BOIL / KOLD)

Usage:
    python main.py                      # continuous, every 24 hours
    python main.py once                 # a single trading cycle
    python main.py continuous 12        # continuous, every 12 hours

Credentials come from ALPACA_API_KEY / ALPACA_SECRET_KEY (environment,
config.env or .env). Missing credentials, invalid settings or a failed
`once` cycle exit with status 1.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config.strategy_config import StrategyConfig
from config.system_config import ConfigError, SystemConfig, load_env_files
from config.trading_config import TradingConfig
from execution.alpaca_client import AlpacaBrokerClient
from integrated_trading_system import NatGasTradingSystem

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="natgas-trader",
        description="Natural gas trading bot for BOIL/KOLD ETFs",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("once", help="Run a single trading cycle")
    continuous = subparsers.add_parser("continuous", help="Run continuously")
    continuous.add_argument(
        "interval_hours", nargs="?", type=float, default=24.0,
        help="Hours between trading cycles (default: 24)",
    )
    return parser


def setup_logging(system_config: SystemConfig) -> None:
    log_dir = Path(system_config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, system_config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_dir / system_config.LOG_FILE),
            logging.StreamHandler(),
        ],
    )
    # request lines from httpx are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run(args: argparse.Namespace, system_config: SystemConfig,
              trading_config: TradingConfig, strategy_config: StrategyConfig) -> int:
    broker = AlpacaBrokerClient(system_config)
    system = NatGasTradingSystem.from_configs(system_config, trading_config, strategy_config, broker)

    try:
        if await system.verify_connection():
            print("✓ Connected to Alpaca")
        else:
            print("✗ Could not verify Alpaca connection, continuing anyway")

        if args.command == "once":
            logger.info("Running in ONCE mode - single trading cycle")
            ok = await system.run_trading_cycle()
            logger.info("Program completed")
            return 0 if ok else 1

        interval = args.interval_hours if args.command == "continuous" else 24.0
        print(f"Starting continuous trading mode (every {interval:g} hours)")
        print("Press Ctrl+C to stop the bot")
        await system.run_continuous(interval)
        return 0
    finally:
        await broker.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = create_parser().parse_args(argv)

    load_env_files()
    try:
        system_config = SystemConfig.from_env(load_files=False)
        system_config.validate()
        trading_config = TradingConfig.from_env(load_files=False)
        strategy_config = StrategyConfig.from_env(load_files=False)
    except ConfigError as e:
        print(f"✗ ERROR: {e}", file=sys.stderr)
        print("Please set ALPACA_API_KEY and ALPACA_SECRET_KEY environment variables", file=sys.stderr)
        print("Or check your config.env / .env file", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(system_config)

    print("=" * 60)
    print("NATGAS TRADER BOT - Starting up")
    print("=" * 60)
    print(f"  Symbol:          {trading_config.SYMBOL}")
    print(f"  Inverse symbol:  {trading_config.INVERSE_SYMBOL}")
    print(f"  Position size:   ${trading_config.POSITION_SIZE}")
    print(f"  Buy threshold:   {strategy_config.signal.buy_threshold}")
    print(f"  Sell threshold:  {strategy_config.signal.sell_threshold}")
    print(f"  Broker:          {system_config.ALPACA_BASE_URL} (key {system_config.masked_key()})")
    print("=" * 60)

    try:
        return asyncio.run(run(args, system_config, trading_config, strategy_config))
    except KeyboardInterrupt:
        print("\nStopped by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
