# -*- coding: utf-8 -*-
"""
eia_feed.py - natural-gas storage inventory signal (EIA weekly storage report)

Positive when working gas in storage sits below its trailing-year average.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

import httpx
import orjson

from config.strategy_config import EIAConfig
from .base import SignalFeed

logger = logging.getLogger(__name__)


def parse_period(period: str) -> date:
    # weekly series use YYYY-MM-DD; tolerate full timestamps as well
    return datetime.fromisoformat(str(period)[:10]).date()


class EIAFeed(SignalFeed):
    name = "inventory"

    def __init__(self, config: EIAConfig, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.timeout = timeout
        self.transport = transport

    async def fetch_storage_data(self, today: Optional[date] = None) -> List[Tuple[date, float]]:
        if not self.config.api_key:
            raise ValueError("EIA API key not provided")

        end_date = today or date.today()
        start_date = end_date - timedelta(days=self.config.lookback_days)
        params = {
            "api_key": self.config.api_key,
            "frequency": "weekly",
            "data[]": "value",
            "facets[series][]": self.config.series,
            "start": start_date.isoformat(),
            "end": end_date.isoformat(),
            "length": "1000",
        }
        logger.info("Fetching EIA storage data from %s to %s", start_date, end_date)

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
            response = await client.get(self.config.api_url, params=params)
            response.raise_for_status()
            points = orjson.loads(response.content)["response"]["data"]

        storage: List[Tuple[date, float]] = []
        skipped = 0
        for point in points:
            try:
                value = float(point["value"])
                period = parse_period(point["period"])
            except (KeyError, TypeError, ValueError) as e:
                skipped += 1
                logger.debug("Skipping malformed EIA data point %r: %s", point, e)
                continue
            if period >= start_date:
                storage.append((period, value))
        if skipped:
            logger.warning("Skipped %d malformed EIA data point(s)", skipped)

        storage.sort(key=lambda item: item[0])
        logger.info("Fetched %d storage data points from EIA", len(storage))
        return storage

    async def fetch_signal(self) -> float:
        try:
            storage = await self.fetch_storage_data()
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.error("Error calculating inventory signal: %s", e)
            return self.NEUTRAL

        if len(storage) < 2:
            logger.warning("Insufficient storage data (%d points)", len(storage))
            return self.NEUTRAL

        current = storage[-1][1]
        historical_avg = sum(v for _, v in storage) / len(storage)
        if historical_avg == 0:
            return self.NEUTRAL

        inventory_signal = (historical_avg - current) / historical_avg
        logger.info("Current storage: %.0f Bcf, historical avg: %.0f Bcf, signal: %.3f",
                    current, historical_avg, inventory_signal)
        return inventory_signal
