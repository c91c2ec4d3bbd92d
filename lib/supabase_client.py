# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for the Supabase reads the portfolio
# needs:
# - Published picture sets and their translations
# - Primary set locations
# - Section assignments and sections (gallery placement)
# - Vocabulary tables (categories, seasons, sections)
# - Tags, taggings and pictures for the master-shots showcase
# - Style tags, category links and picture translations for the style
#   galleries
#
# One instance is created at startup and injected into the services that need
# it. The underlying supabase Client is created on first use, so a process
# without Supabase settings still starts.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   db = SupabaseClient.from_settings(settings)
#   sets = db.fetch_published_picture_sets()
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import create_client, Client

from app.exceptions import ConfigurationError

# Set up logging for this module
logger = logging.getLogger(__name__)

PICTURE_SET_COLUMNS = (
    "id, created_at, updated_at, cover_image_url, title, subtitle, "
    "description, position, is_published"
)

PICTURE_COLUMNS = (
    "id, picture_set_id, image_url, raw_image_url, title, subtitle, "
    "description, order_index, created_at, is_published"
)


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages: errors should tell HOW to fix,
    not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase read operations.

    Example:
        db = SupabaseClient(url="https://xxx.supabase.co", key="service-role-key")
        sets = db.fetch_published_picture_sets()
        translations = db.fetch_set_translations()
    """

    def __init__(
        self,
        url: str | None,
        key: str | None,
        is_service_role: bool = True,
        client: Client | None = None,
    ):
        self.url = url
        self.key = key
        self.is_service_role = is_service_role
        self._client = client

    @classmethod
    def from_settings(cls, settings: Any) -> SupabaseClient:
        """
        Build a client from settings, preferring the service-role key.

        Falls back to the anon key, in which case writes may be rejected by
        row level security.
        """
        if settings.SUPABASE_URL and not settings.SUPABASE_SERVICE_ROLE_KEY:
            logger.warning(
                "SUPABASE_SERVICE_ROLE_KEY is not set, falling back to anon key. "
                "Writes may fail due to RLS."
            )
        return cls(
            url=settings.SUPABASE_URL,
            key=settings.supabase_key,
            is_service_role=bool(settings.SUPABASE_SERVICE_ROLE_KEY),
        )

    def get_client(self) -> Client:
        """
        Get or create the Supabase client.

        Raises:
            ConfigurationError: If the URL or both keys are missing
            SupabaseClientError: If client creation fails
        """
        if self._client is None:
            missing = []
            if not self.url:
                missing.append("SUPABASE_URL")
            if not self.key:
                missing.append("SUPABASE_SERVICE_ROLE_KEY")
            if missing:
                raise ConfigurationError(missing, service="Supabase")

            try:
                self._client = create_client(self.url, self.key)
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in your .env file"
                )
        return self._client

    def _execute(self, query: Any, code: str, source: str, **details: Any) -> list[dict[str, Any]]:
        """Run a built query, wrapping failures in SupabaseClientError."""
        try:
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {source}: {e}",
                code=code,
                suggestion=f"Check that the {source} table exists and is readable with the configured key",
                details=details,
            )
        rows = response.data or []
        logger.debug(f"Fetched {len(rows)} rows from {source}")
        return rows

    # -------------------------------------------------------------------------
    # Picture Sets
    # -------------------------------------------------------------------------

    def fetch_published_picture_sets(self) -> list[dict[str, Any]]:
        """
        Fetch published picture sets, newest first.

        Returns:
            List of picture set dicts (without pictures)

        Raises:
            SupabaseClientError: If query fails
        """
        client = self.get_client()
        query = (
            client.table("picture_sets")
            .select(PICTURE_SET_COLUMNS)
            .eq("is_published", True)
            .order("created_at", desc=True)
        )
        return self._execute(query, "FETCH_SETS_FAILED", "picture_sets")

    def fetch_set_translations(self, set_ids: list[int] | None = None) -> list[dict[str, Any]]:
        """
        Fetch picture set translation rows, all locales.

        Args:
            set_ids: Restrict to these sets; None reads every set

        Returns:
            Rows with picture_set_id, locale, title, subtitle, description
        """
        client = self.get_client()
        query = (
            client.table("picture_set_translations")
            .select("picture_set_id, locale, title, subtitle, description")
        )
        if set_ids is not None:
            query = query.in_("picture_set_id", set_ids)
        return self._execute(query, "FETCH_TRANSLATIONS_FAILED", "picture_set_translations")

    def fetch_primary_set_locations(self) -> list[dict[str, Any]]:
        """
        Fetch the primary location of each picture set.

        Returns:
            Rows with picture_set_id and an embedded location
            {name, latitude, longitude}
        """
        client = self.get_client()
        query = (
            client.table("picture_set_locations")
            .select("picture_set_id, is_primary, location:locations(name, latitude, longitude)")
            .eq("is_primary", True)
        )
        return self._execute(query, "FETCH_LOCATIONS_FAILED", "picture_set_locations")

    def fetch_section_assignments(self) -> list[dict[str, Any]]:
        client = self.get_client()
        query = client.table("picture_set_section_assignments").select("picture_set_id, section_id")
        return self._execute(query, "FETCH_ASSIGNMENTS_FAILED", "picture_set_section_assignments")

    # -------------------------------------------------------------------------
    # Vocabulary
    # -------------------------------------------------------------------------

    def fetch_sections(self) -> list[dict[str, Any]]:
        client = self.get_client()
        query = (
            client.table("sections")
            .select("id, name, display_order")
            .order("display_order", desc=False)
        )
        return self._execute(query, "FETCH_SECTIONS_FAILED", "sections")

    def fetch_categories(self) -> list[dict[str, Any]]:
        client = self.get_client()
        query = client.table("categories").select("id, name").order("name", desc=False)
        return self._execute(query, "FETCH_CATEGORIES_FAILED", "categories")

    def fetch_seasons(self) -> list[dict[str, Any]]:
        client = self.get_client()
        query = client.table("seasons").select("id, name").order("id", desc=False)
        return self._execute(query, "FETCH_SEASONS_FAILED", "seasons")

    # -------------------------------------------------------------------------
    # Tags and Pictures
    # -------------------------------------------------------------------------

    def fetch_tags_matching(self, pattern: str) -> list[dict[str, Any]]:
        """Fetch tags whose name contains `pattern` (case-insensitive)."""
        client = self.get_client()
        query = client.table("tags").select("id, name").ilike("name", f"%{pattern}%")
        return self._execute(query, "FETCH_TAGS_FAILED", "tags", pattern=pattern)

    def fetch_picture_taggings(self, tag_ids: list[int]) -> list[dict[str, Any]]:
        if not tag_ids:
            return []
        client = self.get_client()
        query = client.table("picture_taggings").select("picture_id, tag_id").in_("tag_id", tag_ids)
        return self._execute(query, "FETCH_TAGGINGS_FAILED", "picture_taggings", tag_ids=tag_ids)

    def fetch_pictures(self, picture_ids: list[int]) -> list[dict[str, Any]]:
        if not picture_ids:
            return []
        client = self.get_client()
        query = (
            client.table("pictures")
            .select(PICTURE_COLUMNS)
            .in_("id", picture_ids)
        )
        return self._execute(query, "FETCH_PICTURES_FAILED", "pictures", count=len(picture_ids))

    def fetch_recent_pictures(self, limit: int) -> list[dict[str, Any]]:
        """Fetch the newest pictures (published or not), newest first."""
        client = self.get_client()
        query = (
            client.table("pictures")
            .select("id, image_url, is_published, created_at")
            .order("created_at", desc=True)
            .limit(limit)
        )
        return self._execute(query, "FETCH_PICTURES_FAILED", "pictures", limit=limit)

    def fetch_picture_translations(self, picture_ids: list[int]) -> list[dict[str, Any]]:
        """
        Fetch en and zh translation rows for the given pictures.

        Returns:
            Rows with picture_id, locale, title, subtitle, description
        """
        if not picture_ids:
            return []
        client = self.get_client()
        query = (
            client.table("picture_translations")
            .select("picture_id, locale, title, subtitle, description")
            .in_("locale", ["en", "zh"])
            .in_("picture_id", picture_ids)
        )
        return self._execute(query, "FETCH_TRANSLATIONS_FAILED", "picture_translations", count=len(picture_ids))

    # -------------------------------------------------------------------------
    # Style Galleries
    # -------------------------------------------------------------------------

    def fetch_style_tags(self, names: list[str]) -> list[dict[str, Any]]:
        """Fetch style-type tags with one of the given names."""
        if not names:
            return []
        client = self.get_client()
        query = (
            client.table("tags")
            .select("id, name, type")
            .eq("type", "style")
            .in_("name", names)
        )
        return self._execute(query, "FETCH_TAGS_FAILED", "tags", names=names)

    def fetch_tags_by_ids(self, tag_ids: list[int]) -> list[dict[str, Any]]:
        if not tag_ids:
            return []
        client = self.get_client()
        query = client.table("tags").select("id, name, type").in_("id", tag_ids)
        return self._execute(query, "FETCH_TAGS_FAILED", "tags", count=len(tag_ids))

    def fetch_taggings_for_pictures(self, picture_ids: list[int]) -> list[dict[str, Any]]:
        if not picture_ids:
            return []
        client = self.get_client()
        query = client.table("picture_taggings").select("picture_id, tag_id").in_("picture_id", picture_ids)
        return self._execute(query, "FETCH_TAGGINGS_FAILED", "picture_taggings", count=len(picture_ids))

    def fetch_picture_categories(self, category_ids: list[int]) -> list[dict[str, Any]]:
        """Fetch picture/category links for the given categories."""
        if not category_ids:
            return []
        client = self.get_client()
        query = (
            client.table("picture_categories")
            .select("picture_id, category_id")
            .in_("category_id", category_ids)
        )
        return self._execute(query, "FETCH_PICTURE_CATEGORIES_FAILED", "picture_categories", category_ids=category_ids)

    def fetch_picture_category_names(self, picture_ids: list[int]) -> list[dict[str, Any]]:
        """
        Fetch the categories of the given pictures.

        Returns:
            Rows with picture_id and an embedded category {name}
        """
        if not picture_ids:
            return []
        client = self.get_client()
        query = (
            client.table("picture_categories")
            .select("picture_id, category:categories(name)")
            .in_("picture_id", picture_ids)
        )
        return self._execute(query, "FETCH_PICTURE_CATEGORIES_FAILED", "picture_categories", count=len(picture_ids))

    def fetch_picture_sets(self, set_ids: list[int]) -> list[dict[str, Any]]:
        """Fetch the given picture sets, published or not."""
        if not set_ids:
            return []
        client = self.get_client()
        query = (
            client.table("picture_sets")
            .select("id, title, subtitle, description, cover_image_url, is_published")
            .in_("id", set_ids)
        )
        return self._execute(query, "FETCH_SETS_FAILED", "picture_sets", count=len(set_ids))

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    def ping(self) -> None:
        """Run a one-row query; raises on any failure."""
        client = self.get_client()
        self._execute(client.table("picture_sets").select("id").limit(1), "PING_FAILED", "picture_sets")
