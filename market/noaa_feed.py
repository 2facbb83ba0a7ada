# -*- coding: utf-8 -*-
"""
noaa_feed.py - storm signal from active api.weather.gov alerts
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx
import orjson

from config.strategy_config import NOAAConfig
from .base import SignalFeed

logger = logging.getLogger(__name__)

RELEVANT_KEYWORDS = ("storm", "winter", "blizzard", "ice", "freeze", "hurricane", "tornado", "severe")

SEVERITY_MULTIPLIER = {
    "extreme": 1.5,
    "severe": 1.2,
    "moderate": 1.0,
}


@dataclass(slots=True, frozen=True)
class WeatherAlert:
    event: str
    severity: str = ""
    area_desc: str = ""
    effective: str = ""
    expires: str = ""


def is_relevant(event: str) -> bool:
    lowered = event.lower()
    return any(keyword in lowered for keyword in RELEVANT_KEYWORDS)


def alert_strength(alert: WeatherAlert) -> float:
    event = alert.event.lower()
    if "winter" in event or "blizzard" in event:
        base = 0.3
    elif "storm" in event:
        base = 0.2
    elif "severe" in event:
        base = 0.15
    else:
        base = 0.1
    return base * SEVERITY_MULTIPLIER.get(alert.severity.lower(), 0.8)


class NOAAFeed(SignalFeed):
    name = "storm"

    def __init__(self, config: NOAAConfig, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.timeout = timeout
        self.transport = transport

    async def fetch_weather_alerts(self) -> List[WeatherAlert]:
        params = {"active": "true", "status": "actual", "message_type": "alert"}
        headers = {"User-Agent": self.config.user_agent, "Accept": "application/geo+json"}

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
            response = await client.get(self.config.api_url, params=params, headers=headers)
            response.raise_for_status()

        if not response.content.strip():
            logger.warning("NOAA API returned empty response")
            return []

        features = orjson.loads(response.content)["features"]
        alerts = []
        for feature in features:
            props = feature.get("properties") or {}
            event = props.get("event") or ""
            if not is_relevant(event):
                continue
            alerts.append(WeatherAlert(
                event=event,
                severity=props.get("severity") or "",
                area_desc=props.get("areaDesc") or "",
                effective=props.get("effective") or "",
                expires=props.get("expires") or "",
            ))
        logger.info("Relevant weather alerts: %d of %d", len(alerts), len(features))
        return alerts

    async def fetch_signal(self) -> float:
        try:
            alerts = await self.fetch_weather_alerts()
        except (httpx.HTTPError, orjson.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.error("Error calculating storm signal: %s", e)
            return self.NEUTRAL

        if not alerts:
            logger.info("No relevant weather alerts found - storm signal: 0.0")
            return self.NEUTRAL

        storm_signal = 0.0
        for alert in alerts:
            strength = alert_strength(alert)
            storm_signal += strength
            logger.info("  Alert: %s (%s) - %.3f", alert.event, alert.severity or "unknown", strength)

        storm_signal = min(storm_signal, 1.0)
        logger.info("Total storm signal: %.3f", storm_signal)
        return storm_signal
