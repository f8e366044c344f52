"""Open-Meteo current UV index (free, no key needed)."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger("holoself.services.weather")

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

# Lisbon
DEFAULT_LATITUDE = 38.7223
DEFAULT_LONGITUDE = -9.1393


class WeatherError(Exception):
    pass


async def get_current_uv_index(
    latitude: float = DEFAULT_LATITUDE,
    longitude: float = DEFAULT_LONGITUDE,
    timeout: float = 10.0,
) -> float:
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                OPEN_METEO_URL,
                params={"latitude": latitude, "longitude": longitude, "current": "uv_index"},
                timeout=timeout,
            )
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise WeatherError(f"Weather API error: {e}") from e

    uv = (data.get("current") or {}).get("uv_index")
    if not isinstance(uv, (int, float)):
        raise WeatherError("UV index not available.")
    return float(uv)
