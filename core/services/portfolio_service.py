# =============================================================================
# core/services/portfolio_service.py - Initial-Data Aggregation
# =============================================================================
# Assembles the payload the public gallery renders on first load.
#
# The independent Supabase reads are fanned out concurrently and joined
# before the payload is built. Each source has its own failure policy:
#   picture_sets                      fatal (AggregationError)
#   translations, locations           degrade to an empty map
#   section assignments, sections     fall back to position-only buckets
#
# The payload is cached for a short window and always recomputed in full.
# =============================================================================

import asyncio
import logging
import time
from typing import Any, Callable

from pydantic import ValidationError

from app.exceptions import AggregationError, PortfolioException, UpstreamError
from core.models.portfolio import (
    InitialPortfolioPayload,
    LocalizedText,
    PictureSet,
    SetLocation,
    SetTranslations,
    VocabResponse,
)
from core.services.portfolio_order import derive_buckets, fallback_buckets
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("en", "zh")


async def gather_reads(reads: dict[str, Callable[[], Any]]) -> dict[str, Any]:
    """
    Run blocking reads concurrently in worker threads.

    Returns:
        Mapping of read name to its result, or to the Exception it raised
    """
    names = list(reads)
    results = await asyncio.gather(
        *(asyncio.to_thread(reads[name]) for name in names),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
    return dict(zip(names, results))


def build_translation_map(
    rows: list[dict[str, Any]],
    set_ids: set[int],
) -> dict[int, SetTranslations]:
    """Group translation rows by picture set; blank fields become None."""
    trans_map: dict[int, SetTranslations] = {}
    for row in rows:
        locale = row.get("locale")
        try:
            set_id = int(row.get("picture_set_id"))
        except (TypeError, ValueError):
            continue
        if locale not in SUPPORTED_LOCALES or set_id not in set_ids:
            continue

        text = LocalizedText(
            title=row.get("title") or None,
            subtitle=row.get("subtitle") or None,
            description=row.get("description") or None,
        )
        entry = trans_map.setdefault(set_id, SetTranslations())
        setattr(entry, locale, text)
    return trans_map


def build_location_map(
    rows: list[dict[str, Any]],
    set_ids: set[int],
) -> dict[int, SetLocation]:
    """
    Map picture sets to their primary location.

    Rows with missing, non-numeric or out-of-range coordinates are dropped:
    a set without a valid location simply gets no map pin.
    """
    locations: dict[int, SetLocation] = {}
    for row in rows:
        location = row.get("location") or row.get("locations")
        if isinstance(location, list):
            location = location[0] if location else None
        if not location:
            continue

        try:
            set_id = int(row.get("picture_set_id"))
            latitude = float(location.get("latitude"))
            longitude = float(location.get("longitude"))
        except (TypeError, ValueError):
            continue

        if set_id not in set_ids or not SetLocation.is_valid_coordinate(latitude, longitude):
            continue

        locations[set_id] = SetLocation(
            name=location.get("name"),
            latitude=latitude,
            longitude=longitude,
        )
    return locations


class PortfolioService:
    """
    Service for the public gallery's read paths.

    Example:
        service = PortfolioService(SupabaseClient.from_settings(settings))
        payload = await service.get_initial_data()
    """

    def __init__(
        self,
        db: SupabaseClient,
        cache_ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
        log: logging.Logger = logger,
    ):
        self.db = db
        self.cache_ttl_seconds = cache_ttl_seconds
        self.clock = clock
        self.log = log
        self._cached: InitialPortfolioPayload | None = None
        self._cached_at: float = 0.0

    # -------------------------------------------------------------------------
    # Initial Data
    # -------------------------------------------------------------------------

    async def get_initial_data(self) -> InitialPortfolioPayload:
        """Return the cached payload while fresh, otherwise aggregate anew."""
        now = self.clock()
        if self._cached is not None and now - self._cached_at < self.cache_ttl_seconds:
            return self._cached

        payload = await self.aggregate()
        self._cached = payload
        self._cached_at = self.clock()
        return payload

    def invalidate(self) -> None:
        self._cached = None

    async def aggregate(self) -> InitialPortfolioPayload:
        """
        Fetch all sources concurrently and merge them into one payload.

        Raises:
            AggregationError: If the picture set read fails
            ConfigurationError: If Supabase is not configured
        """
        started = time.perf_counter()
        results = await gather_reads({
            "picture_sets": self.db.fetch_published_picture_sets,
            "translations": self.db.fetch_set_translations,
            "locations": self.db.fetch_primary_set_locations,
            "assignments": self.db.fetch_section_assignments,
            "sections": self.db.fetch_sections,
        })

        set_rows = results["picture_sets"]
        if isinstance(set_rows, PortfolioException):
            raise set_rows
        if isinstance(set_rows, Exception):
            self.log.error(f"Failed to fetch picture_sets: {set_rows}")
            raise AggregationError(str(set_rows))

        sets = self._parse_sets(set_rows)
        set_ids = {s.id for s in sets}

        translations = self._degrade(results["translations"], "translations")
        locations = self._degrade(results["locations"], "locations")

        assignments = results["assignments"]
        sections = results["sections"]
        if isinstance(assignments, Exception) or isinstance(sections, Exception):
            failed = assignments if isinstance(assignments, Exception) else sections
            self.log.warning(f"Section data unavailable, using position-only buckets: {failed}")
            up_sets, down_sets = fallback_buckets(sets)
        else:
            try:
                up_sets, down_sets = derive_buckets(sets, assignments, sections)
            except Exception as e:
                self.log.warning(f"Deriving buckets failed, using position-only buckets: {e}")
                up_sets, down_sets = fallback_buckets(sets)

        payload = InitialPortfolioPayload(
            picture_sets=sets,
            trans_map=build_translation_map(translations, set_ids),
            set_locations=build_location_map(locations, set_ids),
            up_sets=up_sets,
            down_sets=down_sets,
        )

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.log.info(
            f"Aggregated {len(sets)} sets, {len(payload.trans_map)} translations, "
            f"{len(payload.set_locations)} locations in {elapsed_ms:.0f}ms"
        )
        return payload

    def _degrade(self, result: Any, source: str) -> list[dict[str, Any]]:
        """Substitute an empty collection for a failed non-essential source."""
        if isinstance(result, Exception):
            self.log.warning(f"Failed to fetch {source}, continuing without: {result}")
            return []
        return result or []

    def _parse_sets(self, rows: list[dict[str, Any]]) -> list[PictureSet]:
        sets = []
        for row in rows:
            try:
                sets.append(PictureSet.model_validate(row))
            except ValidationError as e:
                self.log.warning(f"Skipping malformed picture set {row.get('id')}: {e}")
        return sets

    # -------------------------------------------------------------------------
    # Vocabulary
    # -------------------------------------------------------------------------

    async def fetch_vocab(self) -> VocabResponse:
        """
        Fetch categories, seasons and sections concurrently.

        Raises:
            UpstreamError: If any of the three reads fails
        """
        results = await gather_reads({
            "categories": self.db.fetch_categories,
            "seasons": self.db.fetch_seasons,
            "sections": self.db.fetch_sections,
        })
        for source, result in results.items():
            if isinstance(result, PortfolioException):
                raise result
            if isinstance(result, Exception):
                self.log.error(f"Failed to fetch {source}: {result}")
                raise UpstreamError(source, str(result))

        return VocabResponse(**results)
