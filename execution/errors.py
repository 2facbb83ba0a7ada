# -*- coding: utf-8 -*-
"""
errors.py - broker error taxonomy

Every error carries the operation and symbol it happened in so that a log line
is enough to diagnose a failure without replaying the request.
"""

from typing import Optional

BODY_SNIPPET_CHARS = 200

WASH_TRADE_MARKERS = ("wash trade",)
INSUFFICIENT_QTY_MARKERS = ("insufficient qty", "insufficient quantity", "held_for_orders", "held for orders")


def snippet(text: str, limit: int = BODY_SNIPPET_CHARS) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


class BrokerError(Exception):
    def __init__(self, message: str, operation: str = "", symbol: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.symbol = symbol

    def context(self) -> str:
        parts = [p for p in (self.operation, self.symbol) if p]
        return "/".join(parts) if parts else "broker"

    def __str__(self) -> str:
        return f"[{self.context()}] {self.message}"


class NetworkError(BrokerError):
    """Connection failure or timeout"""


class AuthError(BrokerError):
    """Credentials rejected"""


class ParseError(BrokerError):
    """Response body could not be decoded or lacks required fields"""


class ApiRejection(BrokerError):
    """Non-success HTTP status returned by the broker"""

    def __init__(self, status: int, body: str, operation: str = "", symbol: Optional[str] = None):
        super().__init__(f"HTTP {status}: {snippet(body)}", operation, symbol)
        self.status = status
        self.body = body or ""

    def _body_mentions(self, markers) -> bool:
        lowered = self.body.lower()
        return any(marker in lowered for marker in markers)

    @property
    def is_wash_trade(self) -> bool:
        return self._body_mentions(WASH_TRADE_MARKERS)

    @property
    def is_insufficient_qty(self) -> bool:
        return self._body_mentions(INSUFFICIENT_QTY_MARKERS)


class NotFoundError(ApiRejection):
    """HTTP 404"""


class PriceUnavailableError(BrokerError):
    """Bar, quote and position price sources all failed"""
