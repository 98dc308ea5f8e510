"""
Weather service using the Open-Meteo API (no key required).

Two requests per lookup: geocoding for the city coordinates, then the
current conditions for those coordinates.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"


class ServiceError(Exception):
    """A widget data source could not provide data."""


@dataclass
class WeatherInfo:
    city: str
    temperature: int
    description: str
    humidity: int


def weather_code_to_description(code: int) -> str:
    """Translate a WMO weather code into a short description."""
    if code == 0:
        return "Ясно"
    if code in (1, 2):
        return "Облачно"
    if code == 3:
        return "Пасмурно"
    if code in (45, 48):
        return "Туман"
    if code in (51, 53, 55):
        return "Морось"
    if code in (61, 63, 65):
        return "Дождь"
    if code in (71, 73, 75, 77):
        return "Снег"
    if code in (80, 81, 82):
        return "Ливень"
    if code in (85, 86):
        return "Снегопад"
    if code in (95, 96, 99):
        return "Гроза"
    return "Неизвестно"


class WeatherService:
    """Fetches current weather for a city."""

    def __init__(self, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _city_coordinates(self, city: str) -> tuple[float, float, str]:
        response = await self._client.get(
            GEOCODING_URL,
            params={"name": city, "count": 1, "language": "ru", "format": "json"},
        )
        response.raise_for_status()
        results = response.json().get("results") or []
        if not results:
            raise ServiceError(f"Город '{city}' не найден")
        first = results[0]
        logger.debug(f"Geocoded {city} -> {first.get('latitude')}, {first.get('longitude')}")
        return first["latitude"], first["longitude"], first.get("name", city)

    async def get_weather(self, city: str) -> WeatherInfo:
        """
        Current weather for `city`.

        Raises:
            ServiceError: city not found, HTTP failure or malformed payload
        """
        try:
            latitude, longitude, city_name = await self._city_coordinates(city)
            response = await self._client.get(
                FORECAST_URL,
                params={
                    "latitude": latitude,
                    "longitude": longitude,
                    "current": "temperature_2m,relative_humidity_2m,weather_code",
                    "temperature_unit": "celsius",
                    "timezone": "auto",
                },
            )
            response.raise_for_status()
            current = response.json()["current"]
            return WeatherInfo(
                city=city_name,
                temperature=int(current["temperature_2m"]),
                description=weather_code_to_description(int(current["weather_code"])),
                humidity=int(current["relative_humidity_2m"]),
            )
        except httpx.HTTPError as e:
            raise ServiceError(f"Weather request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceError(f"Unexpected weather payload: {e!r}") from e

    async def format_weather_info(self, city: str) -> str:
        weather = await self.get_weather(city)
        return (
            f"🌍 Погода в городе {weather.city}:\n"
            f"• 🌡️ Температура: {weather.temperature}°C\n"
            f"• ☁️ Условия: {weather.description}\n"
            f"• 💧 Влажность: {weather.humidity}%"
        )

    async def close(self) -> None:
        await self._client.aclose()
