# -*- coding: utf-8 -*-
"""
signal_processor.py

Blend the temperature, inventory and storm signals into one scalar and map it
onto a Decision for the two mutually exclusive instruments.
"""

import logging

from config.strategy_config import SignalConfig
from models.enums import Action
from models.trading_models import Decision, TradingSignal

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 2.0


def _ratio(value: float, threshold: float) -> float:
    if threshold == 0:
        return 1.0
    return min(abs(value) / abs(threshold), MAX_CONFIDENCE)


class SignalProcessor:

    def __init__(self, config: SignalConfig, symbol: str, inverse_symbol: str):
        self.cfg = config
        self.symbol = symbol
        self.inverse_symbol = inverse_symbol

    def calculate_total_signal(self, temp_signal: float, inventory_signal: float, storm_signal: float) -> float:
        total = (
            temp_signal * self.cfg.temperature_weight
            + inventory_signal * self.cfg.inventory_weight
            + storm_signal * self.cfg.storm_weight
        )
        logger.info("Signal components:")
        logger.info("  Temperature: %.3f (weight: %s)", temp_signal, self.cfg.temperature_weight)
        logger.info("  Inventory: %.3f (weight: %s)", inventory_signal, self.cfg.inventory_weight)
        logger.info("  Storm: %.3f (weight: %s)", storm_signal, self.cfg.storm_weight)
        logger.info("  Total signal: %.3f", total)
        return total

    def determine_action(self, total_signal: float) -> Decision:
        if total_signal > self.cfg.buy_threshold:
            decision = Decision(Action.BUY, self.symbol, _ratio(total_signal, self.cfg.buy_threshold))
        elif total_signal < self.cfg.sell_threshold:
            decision = Decision(Action.BUY, self.inverse_symbol, _ratio(total_signal, self.cfg.sell_threshold))
        else:
            logger.info("  Decision: HOLD (signal %.4f between %s and %s)",
                        total_signal, self.cfg.sell_threshold, self.cfg.buy_threshold)
            return Decision.hold()

        logger.info("  Decision: %s %s (confidence: %.2f)",
                    decision.action.value, decision.target_symbol, decision.confidence)
        return decision

    def create_trading_signal(self, temp_signal: float, inventory_signal: float, storm_signal: float) -> TradingSignal:
        total = self.calculate_total_signal(temp_signal, inventory_signal, storm_signal)
        return TradingSignal(
            temperature_signal=temp_signal,
            inventory_signal=inventory_signal,
            storm_signal=storm_signal,
            total_signal=total,
            decision=self.determine_action(total),
        )
