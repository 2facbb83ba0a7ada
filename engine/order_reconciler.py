# -*- coding: utf-8 -*-
"""
order_reconciler.py

Drive the brokerage account from its current positions/orders to the state a
Decision implies, one broker call at a time.

BUY of target T (other tracked symbol O):
1. cancel resting SELL orders on T (wash-trade guard), settle
2. sell any O position (mutual exclusivity)
3. sell any stale T position
4. size and submit the T buy
5. on a wash-trade rejection: cancel again, settle longer, resubmit once
6. settle, poll the order once, report

HOLD never touches the broker.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Optional

from config.trading_config import TradingConfig
from execution.base import BrokerClient
from execution.errors import ApiRejection, BrokerError
from models.enums import Action, OrderSide, ReconcileState
from models.trading_models import Decision, OpenOrder, Position, TradeResult
from utils.math_utils import order_qty_from_position, size_quantity

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class ReconcileContext:
    """Per-execution scratch state shared by the handlers"""
    decision: Decision
    target: str
    other: str
    side: OrderSide = OrderSide.BUY
    price: Optional[Decimal] = None
    quantity: int = 0
    attempts: int = 0
    order: Optional[OpenOrder] = None
    last_error: Optional[BaseException] = None
    result: Optional[TradeResult] = None


class OrderReconciler:

    def __init__(
        self,
        broker: BrokerClient,
        config: TradingConfig,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.broker = broker
        self.cfg = config
        self.sleep = sleep

        self.handlers: Dict[ReconcileState, Callable[[ReconcileContext], Awaitable[ReconcileState]]] = {
            ReconcileState.CANCEL_CONFLICTS: self._handle_cancel_conflicts,
            ReconcileState.LIQUIDATE_OPPOSITE: self._handle_liquidate_opposite,
            ReconcileState.LIQUIDATE_STALE: self._handle_liquidate_stale,
            ReconcileState.SUBMIT: self._handle_submit,
            ReconcileState.RETRY_SUBMIT: self._handle_retry_submit,
        }
        # RESOLVED and FAILED are terminal
        self.state = ReconcileState.IDLE
        self.transitions = []

    async def execute(self, decision: Decision) -> Optional[TradeResult]:
        logger.info(">>> EXECUTING TRADE <<<")
        logger.info("  Action: %s  Symbol: %s  Confidence: %.2f",
                    decision.action.value, decision.target_symbol or "-", decision.confidence)

        self.transitions = [ReconcileState.IDLE]
        self.state = ReconcileState.IDLE

        if decision.action != Action.BUY:
            logger.info("  Signal indicates %s, no trade executed", decision.action.value)
            logger.info(">>> TRADE EXECUTION SKIPPED <<<")
            return None

        target = decision.target_symbol
        if target not in self.cfg.tracked_symbols:
            logger.warning("  Unsupported symbol %r, expected one of %s", target, self.cfg.tracked_symbols)
            logger.info(">>> TRADE EXECUTION SKIPPED - UNSUPPORTED SYMBOL <<<")
            return None

        ctx = ReconcileContext(decision=decision, target=target, other=self.cfg.other_symbol(target))
        state = ReconcileState.CANCEL_CONFLICTS
        while state in self.handlers:
            self._enter(state)
            state = await self.handlers[state](ctx)
        self._enter(state)

        if state == ReconcileState.RESOLVED:
            await self._resolve(ctx)

        if ctx.result is None:
            if ctx.last_error is not None:
                logger.error("  Trade for %s failed: %s", target, ctx.last_error)
            logger.info(">>> TRADE EXECUTION FAILED <<<")
            return None

        logger.info("  Order placed: %s", ctx.result)
        logger.info(">>> TRADE EXECUTION COMPLETE <<<")
        return ctx.result

    def _enter(self, state: ReconcileState) -> None:
        self.state = state
        if self.transitions[-1] != state:
            self.transitions.append(state)
        logger.debug("  reconcile state -> %s", state.name)

    # ------------------------------------------------------------------
    # read-only lookups: failures become conservative defaults

    async def _read_position(self, symbol: str) -> Optional[Position]:
        try:
            return await self.broker.get_position(symbol)
        except BrokerError as e:
            logger.warning("  Could not read %s position, assuming none: %s", symbol, e)
            return None

    async def cancel_conflicting_orders(self, symbol: str, side: OrderSide) -> int:
        """Cancel resting orders on `symbol` whose side is opposite to `side`."""
        opposite = side.opposite
        try:
            orders = await self.broker.list_open_orders(symbol)
        except BrokerError as e:
            logger.warning("  Could not list open orders for %s: %s", symbol, e)
            return 0

        if not orders:
            logger.info("  No open orders found for %s", symbol)
            return 0

        cancelled = 0
        for order in orders:
            if order.side != opposite:
                logger.info("  Keeping existing %s order %s (%s)", order.side.value, order.id, symbol)
                continue
            try:
                await self.broker.cancel_order(order.id)
            except BrokerError as e:
                # an order that already reached a terminal state cannot be cancelled
                logger.warning("  Failed to cancel %s order %s (%s): %s", order.side.value, order.id, symbol, e)
                continue
            logger.info("  Cancelled opposite %s order %s (%s)", order.side.value, order.id, symbol)
            cancelled += 1
        return cancelled

    async def _sell_position(self, position: Optional[Position], symbol: str) -> None:
        """Sell the whole long position; raises the broker error on failure."""
        qty = order_qty_from_position(position.qty) if position is not None and position.qty > 0 else 0
        if qty <= 0:
            logger.info("  No %s position to close", symbol)
            return

        if await self.cancel_conflicting_orders(symbol, OrderSide.SELL):
            await self.sleep(self.cfg.CANCEL_SETTLE_SECONDS)
        order = await self.broker.submit_market_order(OrderSide.SELL, qty, symbol)
        logger.info("  Sell order %s submitted for %d %s", order.id, qty, symbol)

    # ------------------------------------------------------------------
    # state handlers

    async def _handle_cancel_conflicts(self, ctx: ReconcileContext) -> ReconcileState:
        logger.info("  Checking for conflicting orders on %s...", ctx.target)
        cancelled = await self.cancel_conflicting_orders(ctx.target, ctx.side)
        if cancelled:
            logger.info("  Cancelled %d conflicting order(s), waiting %.1fs",
                        cancelled, self.cfg.CANCEL_SETTLE_SECONDS)
            await self.sleep(self.cfg.CANCEL_SETTLE_SECONDS)
        return ReconcileState.LIQUIDATE_OPPOSITE

    async def _handle_liquidate_opposite(self, ctx: ReconcileContext) -> ReconcileState:
        position = await self._read_position(ctx.other)
        if position is not None and position.qty > 0:
            logger.info("  Mutual exclusivity: selling %s %s before buying %s",
                        position.qty, ctx.other, ctx.target)
        try:
            await self._sell_position(position, ctx.other)
        except BrokerError as e:
            logger.error("  Error selling %s: %s", ctx.other, e)
        return ReconcileState.LIQUIDATE_STALE

    async def _handle_liquidate_stale(self, ctx: ReconcileContext) -> ReconcileState:
        position = await self._read_position(ctx.target)
        if position is not None and position.qty > 0:
            logger.info("  Closing existing %s position (%s) before new purchase", ctx.target, position.qty)
        try:
            await self._sell_position(position, ctx.target)
        except ApiRejection as e:
            if e.is_insufficient_qty:
                logger.warning("  %s position already held for orders, skipping close: %s", ctx.target, e)
            else:
                logger.error("  Error closing %s: %s", ctx.target, e)
        except BrokerError as e:
            logger.error("  Error closing %s: %s", ctx.target, e)
        return ReconcileState.SUBMIT

    async def _handle_submit(self, ctx: ReconcileContext) -> ReconcileState:
        logger.info("  Fetching current %s price...", ctx.target)
        try:
            ctx.price = await self.broker.get_current_price(ctx.target)
            ctx.quantity = size_quantity(self.cfg.POSITION_SIZE, ctx.price)
        except (BrokerError, ValueError) as e:
            logger.error("  Could not get current price for %s: %s", ctx.target, e)
            logger.warning("  Skipping %s purchase due to price lookup failure", ctx.target)
            ctx.last_error = e
            return ReconcileState.FAILED

        logger.info("  Price $%.2f  budget $%.2f  -> %d shares",
                    ctx.price, self.cfg.POSITION_SIZE, ctx.quantity)
        return await self._submit(ctx, allow_retry=True)

    async def _handle_retry_submit(self, ctx: ReconcileContext) -> ReconcileState:
        logger.warning("  Wash trade detected, cancelling opposite orders on %s and retrying...", ctx.target)
        await self.cancel_conflicting_orders(ctx.target, ctx.side)
        await self.sleep(self.cfg.RETRY_SETTLE_SECONDS)
        return await self._submit(ctx, allow_retry=False)

    async def _submit(self, ctx: ReconcileContext, allow_retry: bool) -> ReconcileState:
        ctx.attempts += 1
        try:
            ctx.order = await self.broker.submit_market_order(ctx.side, ctx.quantity, ctx.target)
        except ApiRejection as e:
            ctx.last_error = e
            if allow_retry and e.is_wash_trade:
                return ReconcileState.RETRY_SUBMIT
            logger.error("  Failed to place %s order (attempt %d): %s", ctx.target, ctx.attempts, e)
            return ReconcileState.FAILED
        except BrokerError as e:
            ctx.last_error = e
            logger.error("  Failed to place %s order (attempt %d): %s", ctx.target, ctx.attempts, e)
            return ReconcileState.FAILED
        return ReconcileState.RESOLVED

    async def _resolve(self, ctx: ReconcileContext) -> None:
        """Capture fill details; a failed refresh still reports the submitted order."""
        await self.sleep(self.cfg.FILL_SETTLE_SECONDS)
        order = ctx.order
        if order.id:
            try:
                order = await self.broker.poll_order_status(order.id)
            except BrokerError as e:
                logger.warning("  Could not refresh order %s, using submission response: %s", order.id, e)
        ctx.result = TradeResult.from_order(order)
