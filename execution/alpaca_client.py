# -*- coding: utf-8 -*-
"""
alpaca_client.py - Alpaca REST broker client

Stateless request/response mapping over a pooled httpx.AsyncClient. Every
request carries the two static credential headers; HTTP failures are mapped
onto the error taxonomy in execution.errors.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
import orjson

from config.system_config import SystemConfig
from models.enums import OrderSide
from models.market_data import LatestBar, LatestQuote
from models.trading_models import AccountSnapshot, OpenOrder, Position
from utils.alpaca_data_converter import (
    convert_account,
    convert_bar,
    convert_order,
    convert_position,
    convert_quote,
)
from .base import BrokerClient
from .errors import (
    ApiRejection,
    AuthError,
    BrokerError,
    NetworkError,
    NotFoundError,
    ParseError,
    PriceUnavailableError,
    snippet,
)

logger = logging.getLogger(__name__)


class AlpacaBrokerClient(BrokerClient):

    def __init__(self, config: SystemConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.transport = transport
        self.http_client: Optional[httpx.AsyncClient] = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self.http_client is None:
            limits = httpx.Limits(
                max_connections=self.config.MAX_CONNECTIONS,
                max_keepalive_connections=max(1, self.config.MAX_CONNECTIONS // 2),
            )
            self.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.HTTP_TIMEOUT),
                headers={
                    "APCA-API-KEY-ID": self.config.ALPACA_API_KEY,
                    "APCA-API-SECRET-KEY": self.config.ALPACA_SECRET_KEY,
                    "Content-Type": "application/json",
                },
                limits=limits,
                transport=self.transport,
            )
        return self.http_client

    def _trading_url(self, path: str) -> str:
        return f"{self.config.ALPACA_BASE_URL}{path}"

    def _data_url(self, path: str) -> str:
        return f"{self.config.ALPACA_DATA_URL}{path}"

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        symbol: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        client = self._ensure_client()
        content = orjson.dumps(payload) if payload is not None else None

        try:
            response = await client.request(method, url, params=params, content=content)
        except httpx.TimeoutException as e:
            raise NetworkError(f"timeout calling {method} {url}: {e}", operation, symbol) from e
        except httpx.TransportError as e:
            raise NetworkError(f"connection error calling {method} {url}: {e}", operation, symbol) from e

        status = response.status_code
        if status == 401:
            raise AuthError(f"credentials rejected: {snippet(response.text)}", operation, symbol)
        if status == 404:
            raise NotFoundError(status, response.text, operation, symbol)
        if not response.is_success:
            raise ApiRejection(status, response.text, operation, symbol)

        if status == 204 or not response.content:
            return None
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ParseError(f"invalid JSON ({e}): {snippet(response.text)}", operation, symbol) from e

    async def get_account(self) -> AccountSnapshot:
        data = await self._request("GET", self._trading_url("/v2/account"), "get_account")
        return convert_account(data)

    async def get_position(self, symbol: str) -> Optional[Position]:
        try:
            data = await self._request(
                "GET", self._trading_url(f"/v2/positions/{symbol}"), "get_position", symbol
            )
        except NotFoundError:
            return None
        return convert_position(data)

    async def list_positions(self) -> List[Position]:
        data = await self._request("GET", self._trading_url("/v2/positions"), "list_positions")
        if not isinstance(data, list):
            raise ParseError("expected a list of positions", "list_positions")
        return [convert_position(item, "list_positions") for item in data]

    async def get_latest_bar(self, symbol: str) -> LatestBar:
        data = await self._request(
            "GET", self._data_url(f"/v2/stocks/{symbol}/bars/latest"), "latest_bar", symbol
        )
        return convert_bar(data, symbol)

    async def get_latest_quote(self, symbol: str) -> LatestQuote:
        data = await self._request(
            "GET", self._data_url(f"/v2/stocks/{symbol}/quotes/latest"), "latest_quote", symbol
        )
        return convert_quote(data, symbol)

    async def get_current_price(self, symbol: str) -> Decimal:
        """Latest bar close, else latest quote (bid, ask, price), else position value / qty."""
        try:
            bar = await self.get_latest_bar(symbol)
            if bar.close > 0:
                return bar.close
            logger.warning("Latest bar for %s has non-positive close %s", symbol, bar.close)
        except AuthError:
            raise
        except BrokerError as e:
            logger.info("Latest bar unavailable for %s (%s), trying latest quote", symbol, e)

        try:
            quote = await self.get_latest_quote(symbol)
            price = quote.best_price
            if price is not None:
                return price
            logger.warning("Latest quote for %s carries no usable price", symbol)
        except AuthError:
            raise
        except BrokerError as e:
            logger.warning("Latest quote unavailable for %s (%s), trying position", symbol, e)

        try:
            position = await self.get_position(symbol)
        except AuthError:
            raise
        except BrokerError as e:
            logger.warning("Position lookup for %s failed during price fallback: %s", symbol, e)
            position = None

        if position is not None and position.qty != 0:
            price = position.market_value / position.qty
            logger.info("Using position-based price for %s: $%.2f", symbol, price)
            return price

        raise PriceUnavailableError(
            "bars and quotes both failed and no position found", "get_current_price", symbol
        )

    async def list_open_orders(self, symbol: Optional[str] = None) -> List[OpenOrder]:
        params = {"status": "open"}
        if symbol:
            params["symbols"] = symbol
        data = await self._request(
            "GET", self._trading_url("/v2/orders"), "list_open_orders", symbol, params=params
        )
        if not isinstance(data, list):
            raise ParseError("expected a list of orders", "list_open_orders", symbol)

        orders = []
        for item in data:
            try:
                orders.append(convert_order(item, "list_open_orders"))
            except ParseError as e:
                # one odd order must not hide the rest from conflict cancellation
                logger.warning("Skipping unparseable open order on %s: %s", symbol or "all symbols", e)
        return orders

    async def cancel_order(self, order_id: str) -> None:
        await self._request("DELETE", self._trading_url(f"/v2/orders/{order_id}"), f"cancel_order {order_id}")

    async def submit_market_order(self, side: OrderSide, qty: int, symbol: str) -> OpenOrder:
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValueError(f"order quantity must be a positive integer, got {qty!r}")

        payload = {
            "symbol": symbol,
            "qty": qty,
            "side": OrderSide(side).value,
            "type": "market",
            "time_in_force": "day",
        }
        logger.info("Submitting %s market order: %d x %s", payload["side"], qty, symbol)
        data = await self._request(
            "POST", self._trading_url("/v2/orders"), f"submit_{payload['side']}", symbol, payload=payload
        )
        return convert_order(data, "submit_market_order")

    async def poll_order_status(self, order_id: str) -> OpenOrder:
        data = await self._request(
            "GET", self._trading_url(f"/v2/orders/{order_id}"), f"poll_order {order_id}"
        )
        return convert_order(data, "poll_order_status")

    async def close(self):
        if self.http_client:
            await self.http_client.aclose()
            self.http_client = None
