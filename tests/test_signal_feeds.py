#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Weather / EIA / NOAA feeds over httpx.MockTransport
"""

import asyncio
import logging
import os
import sys
from datetime import date

import httpx
import orjson
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.strategy_config import EIAConfig, NOAAConfig, WeatherConfig
from market.eia_feed import EIAFeed
from market.noaa_feed import NOAAFeed, WeatherAlert, alert_strength
from market.weather_feed import WeatherFeed, calculate_hdd


def transport(handler):
    return httpx.MockTransport(handler)


def failing_transport():
    def handler(request):
        return httpx.Response(503, text="unavailable")
    return transport(handler)


# ---------------------------------------------------------------- weather

def test_calculate_hdd():
    assert calculate_hdd(50.0, 30.0, 65.0) == 25.0
    assert calculate_hdd(80.0, 70.0, 65.0) == 0.0


def test_weather_signal_averages_regions():
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.params["latitude"] == "1.0":
            daily = {"temperature_2m_max": [50.0, 50.0], "temperature_2m_min": [30.0, 30.0]}  # 50 HDD
        else:
            daily = {"temperature_2m_max": [60.0, None], "temperature_2m_min": [40.0, 20.0]}  # 15 HDD
        return httpx.Response(200, content=orjson.dumps({"daily": daily}))

    config = WeatherConfig(regions=("1.0,2.0", "3.0,4.0"), historical_avg_hdd=25.0)
    feed = WeatherFeed(config, transport=transport(handler))

    signal = asyncio.run(feed.fetch_signal())

    # mean HDD (50 + 15) / 2 = 32.5 -> (32.5 - 25) / 25
    assert signal == pytest.approx(0.3)
    assert seen[0].url.params["temperature_unit"] == "fahrenheit"
    assert seen[0].url.params["forecast_days"] == "7"


def test_weather_skips_bad_regions():
    def handler(request):
        daily = {"temperature_2m_max": [45.0], "temperature_2m_min": [35.0]}  # 25 HDD
        return httpx.Response(200, content=orjson.dumps({"daily": daily}))

    config = WeatherConfig(regions=("not-a-region", "1.0,2.0"))
    feed = WeatherFeed(config, transport=transport(handler))

    assert asyncio.run(feed.fetch_signal()) == pytest.approx(0.0)


def test_weather_all_regions_failing_is_neutral():
    feed = WeatherFeed(WeatherConfig(regions=("1.0,2.0",)), transport=failing_transport())
    assert asyncio.run(feed.fetch_signal()) == 0.0


# ---------------------------------------------------------------- EIA

def eia_payload(points):
    return orjson.dumps({"response": {"data": [{"period": p, "value": v} for p, v in points]}})


def test_eia_storage_signal():
    today = date.today()
    recent = [
        (date.fromordinal(today.toordinal() - 21).isoformat(), "3000"),
        (date.fromordinal(today.toordinal() - 14).isoformat(), 3200),
        (date.fromordinal(today.toordinal() - 7).isoformat(), "2800"),
    ]
    seen = []

    def handler(request):
        seen.append(request)
        # newest first, as the API sorts it
        return httpx.Response(200, content=eia_payload(list(reversed(recent)) + [("bad", "x")]))

    feed = EIAFeed(EIAConfig(api_key="k"), transport=transport(handler))
    signal = asyncio.run(feed.fetch_signal())

    # avg 3000, latest 2800 -> (3000 - 2800) / 3000
    assert signal == pytest.approx(200 / 3000)
    assert seen[0].url.params["api_key"] == "k"
    assert seen[0].url.params["facets[series][]"] == EIAConfig.series


def test_eia_logs_skipped_points(caplog):
    today = date.today()
    points = [
        (date.fromordinal(today.toordinal() - 14).isoformat(), "3000"),
        (date.fromordinal(today.toordinal() - 7).isoformat(), "2900"),
        ("bad", "x"),
        (today.isoformat(), None),
    ]

    def handler(request):
        return httpx.Response(200, content=eia_payload(points))

    feed = EIAFeed(EIAConfig(api_key="k"), transport=transport(handler))
    with caplog.at_level(logging.WARNING, logger="market.eia_feed"):
        storage = asyncio.run(feed.fetch_storage_data())

    assert [v for _, v in storage] == [3000.0, 2900.0]
    assert "Skipped 2 malformed EIA data point(s)" in caplog.text


def test_non_json_bodies_are_neutral():
    def handler(request):
        return httpx.Response(200, content=b"<html>maintenance</html>")

    weather = WeatherFeed(WeatherConfig(regions=("1.0,2.0",)), transport=transport(handler))
    eia = EIAFeed(EIAConfig(api_key="k"), transport=transport(handler))

    assert asyncio.run(weather.fetch_signal()) == 0.0
    assert asyncio.run(eia.fetch_signal()) == 0.0


def test_eia_without_key_is_neutral():
    def handler(request):
        raise AssertionError("no request expected")

    feed = EIAFeed(EIAConfig(api_key=""), transport=transport(handler))
    assert asyncio.run(feed.fetch_signal()) == 0.0


def test_eia_insufficient_data_is_neutral():
    today = date.today().isoformat()

    def handler(request):
        return httpx.Response(200, content=eia_payload([(today, "3000")]))

    feed = EIAFeed(EIAConfig(api_key="k"), transport=transport(handler))
    assert asyncio.run(feed.fetch_signal()) == 0.0


def test_eia_http_error_is_neutral():
    feed = EIAFeed(EIAConfig(api_key="k"), transport=failing_transport())
    assert asyncio.run(feed.fetch_signal()) == 0.0


# ---------------------------------------------------------------- NOAA

def alerts_payload(*alerts):
    return orjson.dumps({"features": [{"properties": {"event": e, "severity": s}} for e, s in alerts]})


def test_alert_strength():
    assert alert_strength(WeatherAlert("Winter Storm Warning", "Extreme")) == pytest.approx(0.45)
    assert alert_strength(WeatherAlert("Severe Thunderstorm Watch", "Severe")) == pytest.approx(0.24)
    assert alert_strength(WeatherAlert("Severe Weather Statement", "Moderate")) == pytest.approx(0.15)
    assert alert_strength(WeatherAlert("Hard Freeze Warning", "Minor")) == pytest.approx(0.08)


def test_storm_signal_sums_relevant_alerts():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=alerts_payload(
            ("Winter Storm Warning", "Severe"),   # 0.36
            ("Flood Advisory", "Minor"),           # ignored
            ("Ice Storm Warning", "Moderate"),     # 0.2
        ))

    feed = NOAAFeed(NOAAConfig(user_agent="test-agent"), transport=transport(handler))

    assert asyncio.run(feed.fetch_signal()) == pytest.approx(0.56)
    assert seen[0].headers["User-Agent"] == "test-agent"
    assert seen[0].url.params["active"] == "true"


def test_storm_signal_capped_at_one():
    def handler(request):
        return httpx.Response(200, content=alerts_payload(*[("Blizzard Warning", "Extreme")] * 5))

    feed = NOAAFeed(NOAAConfig(), transport=transport(handler))
    assert asyncio.run(feed.fetch_signal()) == 1.0


def test_storm_signal_empty_body_is_neutral():
    def handler(request):
        return httpx.Response(200, content=b"  ")

    feed = NOAAFeed(NOAAConfig(), transport=transport(handler))
    assert asyncio.run(feed.fetch_signal()) == 0.0


def test_storm_signal_error_is_neutral():
    feed = NOAAFeed(NOAAConfig(), transport=failing_transport())
    assert asyncio.run(feed.fetch_signal()) == 0.0
