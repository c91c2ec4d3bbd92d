# =============================================================================
# core/services/geocode_service.py - Place Search
# =============================================================================
# Thin proxy to OpenStreetMap Nominatim used when tagging a picture set with
# a location. One attempt per request; no retry.
# =============================================================================

import logging
import math
from typing import Any

import httpx

from app.exceptions import GeocodeProviderError, MissingFieldError
from core.models.editorial import GeocodeResult

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
MIN_LIMIT = 1
MAX_LIMIT = 10


def clamp_limit(value: Any) -> int:
    """
    Clamp a requested result count to 1..10.

    Missing or non-numeric values use the default of 5.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_LIMIT
    try:
        limit = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_LIMIT
    return max(MIN_LIMIT, min(limit, MAX_LIMIT))


def _coordinate(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_results(items: Any) -> list[GeocodeResult]:
    """Map Nominatim entries, dropping those without numeric coordinates."""
    if not isinstance(items, list):
        return []

    results = []
    for item in items:
        if not isinstance(item, dict):
            continue
        lat = _coordinate(item.get("lat"))
        lon = _coordinate(item.get("lon"))
        if lat is None or lon is None:
            continue
        display_name = item.get("display_name")
        results.append(GeocodeResult(
            display_name=display_name,
            name=item.get("name") or display_name,
            lat=lat,
            lon=lon,
        ))
    return results


class GeocodeService:
    """
    Service for Nominatim place search.

    Example:
        async with httpx.AsyncClient() as http:
            service = GeocodeService(http)
            results = await service.search("Dali old town", limit=3)
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = "https://nominatim.openstreetmap.org/search",
        user_agent: str = "PrivatePortfolio/1.0 (+https://example.com)",
        timeout: float = 10.0,
        log: logging.Logger = logger,
    ):
        self.http = http
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.log = log

    async def search(self, query: str | None, limit: Any = None) -> list[GeocodeResult]:
        """
        Search places by free text.

        Raises:
            MissingFieldError: query is missing or blank (no request is made)
            GeocodeProviderError: Nominatim failed or returned malformed JSON
        """
        if not query or not isinstance(query, str) or not query.strip():
            raise MissingFieldError("q", message="Missing query")

        params = {
            "format": "jsonv2",
            "q": query.strip(),
            "limit": str(clamp_limit(limit)),
            "addressdetails": "1",
        }

        try:
            response = await self.http.get(
                self.base_url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            self.log.error(f"Geocoding request failed: {e}")
            raise GeocodeProviderError(str(e))

        if response.status_code >= 400:
            self.log.error(f"Geocoding returned {response.status_code}: {response.text[:200]}")
            raise GeocodeProviderError(response.text, status=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodeProviderError(f"Malformed response: {e}", status=response.status_code)

        results = normalize_results(data)
        self.log.debug(f"Geocoded {query!r}: {len(results)} results")
        return results
