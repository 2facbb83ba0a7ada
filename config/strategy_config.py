# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Tuple

from config.system_config import env_value, load_env_files


@dataclass(frozen=True)
class SignalConfig:
    """Signal fusion weights and decision thresholds"""
    buy_threshold: float = 0.3
    sell_threshold: float = -0.3
    temperature_weight: float = 0.5
    inventory_weight: float = 0.4
    storm_weight: float = 0.1

    def __post_init__(self):
        if self.sell_threshold > self.buy_threshold:
            raise ValueError(
                f"sell_threshold ({self.sell_threshold}) must not exceed "
                f"buy_threshold ({self.buy_threshold})"
            )


@dataclass(frozen=True)
class WeatherConfig:
    """Open-Meteo forecast used for the heating-degree-day signal"""
    api_url: str = "https://api.open-meteo.com/v1/forecast"
    regions: Tuple[str, ...] = (
        "40.7128,-74.0060",   # New York
        "41.8781,-87.6298",   # Chicago
        "42.3601,-71.0589",   # Boston
        "39.9526,-75.1652",   # Philadelphia
        "42.3314,-83.0458",   # Detroit
    )
    forecast_days: int = 7
    base_temp_f: float = 65.0
    historical_avg_hdd: float = 25.0
    timezone: str = "America/New_York"


@dataclass(frozen=True)
class EIAConfig:
    """EIA weekly working-gas storage"""
    api_key: str = ""
    api_url: str = "https://api.eia.gov/v2/natural-gas/stor/wkly/data/"
    series: str = "NW2_EPG0_SWO_R48_BCF"  # lower-48 total
    lookback_days: int = 365


@dataclass(frozen=True)
class NOAAConfig:
    """api.weather.gov active alerts"""
    api_url: str = "https://api.weather.gov/alerts"
    user_agent: str = "natgas-trader/1.0 (contact: ops@example.com)"


@dataclass(frozen=True)
class StrategyConfig:
    signal: SignalConfig = field(default_factory=SignalConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    eia: EIAConfig = field(default_factory=EIAConfig)
    noaa: NOAAConfig = field(default_factory=NOAAConfig)

    @classmethod
    def from_env(cls, load_files: bool = True) -> "StrategyConfig":
        if load_files:
            load_env_files()
        signal = SignalConfig(
            buy_threshold=env_value("BUY_THRESHOLD", SignalConfig.buy_threshold, float),
            sell_threshold=env_value("SELL_THRESHOLD", SignalConfig.sell_threshold, float),
            temperature_weight=env_value("TEMPERATURE_WEIGHT", SignalConfig.temperature_weight, float),
            inventory_weight=env_value("INVENTORY_WEIGHT", SignalConfig.inventory_weight, float),
            storm_weight=env_value("STORM_WEIGHT", SignalConfig.storm_weight, float),
        )
        eia = EIAConfig(
            api_key=env_value("EIA_API_KEY", "", str),
            series=env_value("EIA_SERIES", EIAConfig.series, str),
        )
        noaa = NOAAConfig(user_agent=env_value("NOAA_USER_AGENT", NOAAConfig.user_agent, str))
        return cls(signal=signal, eia=eia, noaa=noaa)
