"""OpenWeather API client - geocoding and the 5 day / 3 hour forecast."""

import logging

import httpx

from hotelops.config import settings
from hotelops.errors import DependencyUnavailable

logger = logging.getLogger(__name__)

US_ALIASES = {"USA", "UNITED STATES", "UNITED STATES OF AMERICA"}


def normalize_country(country: str) -> str:
    """OpenWeather geocoding expects ISO codes; map common US spellings to ``US``."""
    if country.strip().upper() in US_ALIASES:
        return "US"
    return country.strip()


class OpenWeatherClient:
    """Adapter for the OpenWeather geocoding and forecast endpoints."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        geo_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.openweather_api_key
        self._base_url = base_url or settings.openweather_base_url
        self._geo_url = geo_url or settings.openweather_geo_url
        self._timeout = timeout or settings.openweather_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def _get_json(self, url: str, params: dict):
        if not self._api_key:
            raise DependencyUnavailable("openweather", "OPENWEATHER_API_KEY is not configured")
        client = await self._get_client()
        try:
            resp = await client.get(url, params={**params, "appid": self._api_key})
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise DependencyUnavailable(
                "openweather", f"request failed ({e.response.status_code}): {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise DependencyUnavailable("openweather", f"request failed: {e}") from e

    async def geocode(self, city: str, country: str) -> tuple[float, float] | None:
        """Return (lat, lon) for the first match, trying the ISO hint first."""
        country_hint = normalize_country(country)
        queries = [f"{city},{country_hint}"]
        if country_hint.upper() != country.strip().upper():
            queries.append(f"{city},{country}")

        for query in queries:
            results = await self._get_json(f"{self._geo_url}/direct", {"q": query, "limit": 1})
            if results:
                return float(results[0]["lat"]), float(results[0]["lon"])
        logger.warning(f"No geocoding result for {city}, {country}")
        return None

    async def forecast(self, lat: float, lon: float) -> dict:
        return await self._get_json(
            f"{self._base_url}/forecast",
            {"lat": lat, "lon": lon, "units": "metric"},
        )

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
