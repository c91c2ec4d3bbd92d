# =============================================================================
# core/services/showcase_service.py - Master Collections Showcase
# =============================================================================
# Selects pictures tagged as "master" shots (English or Chinese tag names)
# for the homepage showcase.
#
# Transport failures (timeouts, dropped connections) are retried a few times
# with a linear backoff (tenacity); any other failure is returned to the
# caller at once.
# =============================================================================

import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from app.exceptions import PortfolioException, UpstreamError
from core.models.portfolio import MasterShot
from core.services.portfolio_service import gather_reads
from lib.storage_keys import build_object_url
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

MASTER_TAG_PATTERNS = ("master", "大师")
DEFAULT_LIMIT = 11
MAX_LIMIT = 48
MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 0.35

RETRYABLE_MESSAGE = re.compile(
    r"fetch failed|timed out|timeout|ECONNRESET|ENOTFOUND|connection (reset|refused|aborted)",
    re.IGNORECASE,
)


def is_retryable(exc: BaseException) -> bool:
    """True for transport-class failures worth another attempt."""
    for candidate in (exc, exc.__cause__, exc.__context__):
        if isinstance(candidate, (httpx.TransportError, TimeoutError, ConnectionError)):
            return True
    return bool(RETRYABLE_MESSAGE.search(str(exc)))


def _should_retry(exc: BaseException) -> bool:
    # Configuration and validation errors never go back to the store.
    if isinstance(exc, PortfolioException):
        return False
    return is_retryable(exc)


def clamp_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def parse_timestamp(value: str | None) -> float:
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


class ShowcaseService:
    """Service for the master collections showcase."""

    def __init__(
        self,
        db: SupabaseClient,
        public_base_url: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        log: logging.Logger = logger,
    ):
        self.db = db
        self.public_base_url = public_base_url
        self.sleep = sleep
        self.log = log

    def to_public_url(self, path: str | None) -> str | None:
        if not path:
            return None
        if re.match(r"^https?://", path, re.IGNORECASE):
            return path
        if not self.public_base_url:
            return None
        return build_object_url(self.public_base_url, path)

    async def master_shots(self, limit: Any = DEFAULT_LIMIT) -> list[MasterShot]:
        """
        Load master shots, retrying transport failures.

        Raises:
            UpstreamError: When all attempts fail or a failure is not retryable
        """
        limit = clamp_limit(limit)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(MAX_ATTEMPTS),
            wait=wait_incrementing(start=RETRY_DELAY_SECONDS, increment=RETRY_DELAY_SECONDS),
            retry=retry_if_exception(_should_retry),
            sleep=self.sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._load(limit)
        except PortfolioException:
            raise
        except Exception as e:
            attempts = retrying.statistics.get("attempt_number", 1)
            self.log.error(f"Master shots failed after {attempts} attempt(s): {e}")
            raise UpstreamError("master shots", str(e), {"attempts": attempts})

        return []

    def _log_retry(self, retry_state: RetryCallState) -> None:
        self.log.warning(
            f"Master shots attempt {retry_state.attempt_number} failed: "
            f"{retry_state.outcome.exception()}"
        )

    async def _load(self, limit: int) -> list[MasterShot]:
        tag_results = await gather_reads({
            pattern: (lambda p=pattern: self.db.fetch_tags_matching(p))
            for pattern in MASTER_TAG_PATTERNS
        })
        tag_ids: list[int] = []
        for result in tag_results.values():
            if isinstance(result, Exception):
                raise result
            tag_ids.extend(row["id"] for row in result if isinstance(row.get("id"), int))

        if not tag_ids:
            return []

        taggings = await asyncio.to_thread(self.db.fetch_picture_taggings, sorted(set(tag_ids)))
        picture_ids = sorted({
            row["picture_id"] for row in taggings
            if isinstance(row.get("picture_id"), int) and row["picture_id"] > 0
        })
        if not picture_ids:
            return []

        rows = await asyncio.to_thread(self.db.fetch_pictures, picture_ids)

        candidates = []
        for row in rows:
            public_url = self.to_public_url(row.get("image_url"))
            if not public_url or row.get("is_published") is False:
                continue
            candidates.append((row, public_url))

        candidates.sort(key=lambda item: parse_timestamp(item[0].get("created_at")), reverse=True)

        return [
            MasterShot(id=row["id"], pictureSetId=row.get("picture_set_id"), imageUrl=url)
            for row, url in candidates[:limit]
        ]
