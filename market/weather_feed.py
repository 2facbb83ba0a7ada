# -*- coding: utf-8 -*-
"""
weather_feed.py - heating-degree-day signal from the Open-Meteo forecast

Positive when the coming week is colder than the historical average across
the configured demand regions.
"""

import logging
from typing import List, Optional, Tuple

import httpx
import orjson

from config.strategy_config import WeatherConfig
from .base import SignalFeed

logger = logging.getLogger(__name__)


def calculate_hdd(temp_max: float, temp_min: float, base_temp: float = 65.0) -> float:
    avg_temp = (temp_max + temp_min) / 2.0
    return max(0.0, base_temp - avg_temp)


def parse_region(region: str) -> Tuple[str, str]:
    parts = [p.strip() for p in region.split(",")]
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"invalid region format {region!r}, expected 'lat,lon'")
    float(parts[0])
    float(parts[1])
    return parts[0], parts[1]


class WeatherFeed(SignalFeed):
    name = "temperature"

    def __init__(self, config: WeatherConfig, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.timeout = timeout
        self.transport = transport

    async def fetch_daily_temperatures(self, client: httpx.AsyncClient, region: str) -> List[Tuple[float, float]]:
        lat, lon = parse_region(region)
        params = {
            "latitude": lat,
            "longitude": lon,
            "daily": "temperature_2m_max,temperature_2m_min",
            "temperature_unit": "fahrenheit",
            "timezone": self.config.timezone,
            "forecast_days": str(self.config.forecast_days),
        }
        response = await client.get(self.config.api_url, params=params)
        response.raise_for_status()
        daily = orjson.loads(response.content)["daily"]
        temps_max = daily["temperature_2m_max"]
        temps_min = daily["temperature_2m_min"]
        # open-meteo reports missing days as null
        return [
            (float(hi), float(lo))
            for hi, lo in zip(temps_max, temps_min)
            if hi is not None and lo is not None
        ]

    async def fetch_signal(self) -> float:
        regions = self.config.regions
        logger.info("Calculating regional HDD signal from %d regions...", len(regions))

        total_hdd = 0.0
        valid_regions = 0
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
            for idx, region in enumerate(regions, start=1):
                try:
                    temps = await self.fetch_daily_temperatures(client, region)
                except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                    logger.error("Error fetching weather data for %s: %s", region, e)
                    continue
                region_hdd = sum(calculate_hdd(hi, lo, self.config.base_temp_f) for hi, lo in temps)
                total_hdd += region_hdd
                valid_regions += 1
                logger.info("  [%d/%d] Region %s: HDD = %.2f", idx, len(regions), region, region_hdd)

        if valid_regions == 0:
            logger.warning("No valid weather data received")
            return self.NEUTRAL

        avg_hdd = total_hdd / valid_regions
        historical = self.config.historical_avg_hdd
        hdd_signal = (avg_hdd - historical) / historical
        logger.info("Average HDD: %.2f, Signal: %.3f", avg_hdd, hdd_signal)
        return hdd_signal
