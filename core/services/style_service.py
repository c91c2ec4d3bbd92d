# =============================================================================
# core/services/style_service.py - Photography Style Galleries
# =============================================================================
# Groups published pictures into the photography style galleries shown on
# the public site: landscape, portrait, street, and a "recent" feed that is
# served under the travel id.
#
# A picture joins a style through a style-type tag, or through a category
# whose name matches the style's tag name or one of its labels. Only
# published pictures in published sets are shown.
#
# Translations, topic tags and category names decorate the result: when one
# of those reads fails the pictures are still returned without it.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any

from app.exceptions import PortfolioException, UpstreamError
from core.models.portfolio import (
    BilingualText,
    LocalizedText,
    PictureStylesResponse,
    StyleGallery,
    StylePicture,
    StyleSetSummary,
)
from core.services.portfolio_service import gather_reads
from core.services.showcase_service import parse_timestamp
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

MAX_PICTURES_PER_STYLE = 80
# Candidates read per style before the publication filter
MAX_CANDIDATES_PER_STYLE = MAX_PICTURES_PER_STYLE * 3
RECENT_STYLE_ID = "travel"
LOCALES = ("en", "zh")


@dataclass(frozen=True)
class PhotographyStyle:
    id: str
    tag_name: str
    label_en: str
    label_zh: str

    @property
    def aliases(self) -> set[str]:
        """Lowercased names a category may use for this style."""
        return {name.lower() for name in (self.tag_name, self.label_en, self.label_zh) if name}


PHOTOGRAPHY_STYLES = (
    PhotographyStyle("landscape", "Landscape", "Landscape", "风光"),
    PhotographyStyle("portrait", "Portrait", "Portrait", "人像"),
    PhotographyStyle("street", "Street", "Street", "街拍"),
    PhotographyStyle(RECENT_STYLE_ID, "Travel", "Recent", "最近"),
)


def _positive_id(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


def _add_unique(names: list[str], value: Any) -> None:
    name = str(value or "").strip()
    if name and name not in names:
        names.append(name)


def default_text(row: dict[str, Any]) -> BilingualText:
    """English from the row itself, Chinese blank."""
    return BilingualText(
        en=LocalizedText(
            title=row.get("title") or "",
            subtitle=row.get("subtitle") or "",
            description=row.get("description") or "",
        ),
        zh=LocalizedText(title="", subtitle="", description=""),
    )


def overlay_translations(
    defaults: dict[int, BilingualText],
    rows: list[dict[str, Any]],
    owner_field: str,
) -> dict[int, BilingualText]:
    """
    Apply translation rows onto each owner's default text.

    Only non-empty translated fields replace a default, so a partial
    translation keeps the remaining fields.
    """
    for row in rows:
        entry = defaults.get(row.get(owner_field))
        locale = row.get("locale")
        if entry is None or locale not in LOCALES:
            continue
        current: LocalizedText = getattr(entry, locale)
        setattr(entry, locale, LocalizedText(
            title=row.get("title") or current.title,
            subtitle=row.get("subtitle") or current.subtitle,
            description=row.get("description") or current.description,
        ))
    return defaults


class StyleService:
    """
    Service for the photography style galleries.

    Example:
        service = StyleService(db)
        response = await service.picture_styles("street")
        response.styles["street"].pictures
    """

    def __init__(self, db: SupabaseClient, log: logging.Logger = logger):
        self.db = db
        self.log = log

    @staticmethod
    def target_styles(style: str | None) -> list[PhotographyStyle]:
        if not style:
            return list(PHOTOGRAPHY_STYLES)
        return [s for s in PHOTOGRAPHY_STYLES if s.id == style]

    async def picture_styles(self, style: str | None = None) -> PictureStylesResponse:
        """
        Build the galleries for one style, or all of them.

        Each gallery holds at most 80 pictures, newest first; ties go to
        the higher order_index.

        Raises:
            UpstreamError: A tag, tagging, picture or set read failed
            ConfigurationError: Supabase is not configured
        """
        targets = self.target_styles(style)
        if not targets:
            return PictureStylesResponse()

        try:
            return await self._load(targets)
        except PortfolioException:
            raise
        except Exception as e:
            self.log.error(f"Picture styles failed: {e}")
            raise UpstreamError("picture styles", str(e))

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _required(results: dict[str, Any], name: str) -> list[dict[str, Any]]:
        value = results.get(name)
        if isinstance(value, Exception):
            raise value
        return value or []

    def _optional(self, results: dict[str, Any], name: str) -> list[dict[str, Any]]:
        value = results.get(name)
        if isinstance(value, PortfolioException):
            raise value
        if isinstance(value, Exception):
            self.log.warning(f"Style galleries: {name} unavailable, continuing without it: {value}")
            return []
        return value or []

    @staticmethod
    def _empty(targets: list[PhotographyStyle]) -> PictureStylesResponse:
        return PictureStylesResponse(styles={
            style.id: StyleGallery(id=style.id, tagName=style.tag_name)
            for style in targets
        })

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def _candidate_ids(self, targets: list[PhotographyStyle]) -> dict[str, list[int]]:
        """Picture ids per style, in discovery order, before publication checks."""
        tag_names = [style.tag_name for style in targets]
        reads = {
            "tags": lambda: self.db.fetch_style_tags(tag_names),
            "categories": self.db.fetch_categories,
        }
        if any(style.id == RECENT_STYLE_ID for style in targets):
            reads["recent"] = lambda: self.db.fetch_recent_pictures(MAX_CANDIDATES_PER_STYLE)
        results = await gather_reads(reads)

        tag_rows = self._required(results, "tags")
        tag_id_by_style: dict[str, int] = {}
        for style in targets:
            for row in tag_rows:
                tag_id = _positive_id(row.get("id"))
                if tag_id and str(row.get("name") or "").lower() == style.tag_name.lower():
                    tag_id_by_style[style.id] = tag_id
                    break

        category_ids_by_style: dict[str, set[int]] = {style.id: set() for style in targets}
        for row in self._optional(results, "categories"):
            name = str(row.get("name") or "").strip().lower()
            category_id = _positive_id(row.get("id"))
            if not name or category_id is None:
                continue
            for style in targets:
                if name in style.aliases:
                    category_ids_by_style[style.id].add(category_id)

        tag_ids = sorted(set(tag_id_by_style.values()))
        category_ids = sorted(set().union(*category_ids_by_style.values()))
        links: dict[str, Any] = {}
        if tag_ids:
            links["taggings"] = lambda: self.db.fetch_picture_taggings(tag_ids)
        if category_ids:
            links["picture_categories"] = lambda: self.db.fetch_picture_categories(category_ids)
        linked = await gather_reads(links) if links else {}

        # dicts keep discovery order and drop repeats
        ids_by_style: dict[str, dict[int, None]] = {style.id: {} for style in targets}
        style_by_tag = {tag_id: style_id for style_id, tag_id in tag_id_by_style.items()}
        for row in self._required(linked, "taggings"):
            style_id = style_by_tag.get(row.get("tag_id"))
            picture_id = _positive_id(row.get("picture_id"))
            if style_id and picture_id:
                ids_by_style[style_id][picture_id] = None

        for row in self._optional(linked, "picture_categories"):
            picture_id = _positive_id(row.get("picture_id"))
            category_id = row.get("category_id")
            if not picture_id or not category_id:
                continue
            for style_id, style_categories in category_ids_by_style.items():
                if category_id in style_categories:
                    ids_by_style[style_id][picture_id] = None

        candidates = {
            style_id: list(ids)[:MAX_CANDIDATES_PER_STYLE]
            for style_id, ids in ids_by_style.items()
        }

        if "recent" in reads:
            candidates[RECENT_STYLE_ID] = [
                row["id"] for row in self._required(results, "recent")
                if _positive_id(row.get("id")) and row.get("image_url") and row.get("is_published") is not False
            ]

        return candidates

    async def _load(self, targets: list[PhotographyStyle]) -> PictureStylesResponse:
        candidates = await self._candidate_ids(targets)

        all_ids = list(dict.fromkeys(pid for ids in candidates.values() for pid in ids))
        if not all_ids:
            return self._empty(targets)

        picture_results = await gather_reads({"pictures": lambda: self.db.fetch_pictures(all_ids)})
        published = {
            row["id"]: row for row in self._required(picture_results, "pictures")
            if _positive_id(row.get("id")) and row.get("image_url") and row.get("is_published") is not False
        }

        set_ids = sorted({
            row["picture_set_id"] for row in published.values()
            if _positive_id(row.get("picture_set_id"))
        })
        set_results = await gather_reads({"sets": lambda: self.db.fetch_picture_sets(set_ids)})
        sets = {
            row["id"]: row for row in self._required(set_results, "sets")
            if _positive_id(row.get("id")) and row.get("is_published") is not False
        }

        visible = {pid: row for pid, row in published.items() if row.get("picture_set_id") in sets}
        if not visible:
            return self._empty(targets)

        picture_ids = sorted(visible)
        published_set_ids = sorted(sets)
        extras = await gather_reads({
            "picture_translations": lambda: self.db.fetch_picture_translations(picture_ids),
            "picture_taggings": lambda: self.db.fetch_taggings_for_pictures(picture_ids),
            "picture_categories": lambda: self.db.fetch_picture_category_names(picture_ids),
            "set_translations": lambda: self.db.fetch_set_translations(published_set_ids),
        })
        taggings = self._optional(extras, "picture_taggings")

        topic_tag_ids = sorted({
            row["tag_id"] for row in taggings if _positive_id(row.get("tag_id"))
        })
        tag_rows: list[dict[str, Any]] = []
        if topic_tag_ids:
            tag_results = await gather_reads({"tags": lambda: self.db.fetch_tags_by_ids(topic_tag_ids)})
            tag_rows = self._optional(tag_results, "tags")

        topic_names = {
            row.get("id"): row.get("name") for row in tag_rows
            if str(row.get("type") or "").lower() == "topic"
        }
        tags_by_picture: dict[int, list[str]] = {}
        for row in taggings:
            name = topic_names.get(row.get("tag_id"))
            if name:
                _add_unique(tags_by_picture.setdefault(row.get("picture_id"), []), name)

        categories_by_picture: dict[int, list[str]] = {}
        for row in self._optional(extras, "picture_categories"):
            category = row.get("category") or {}
            if isinstance(category, list):
                category = category[0] if category else {}
            picture_id = _positive_id(row.get("picture_id"))
            if picture_id:
                _add_unique(categories_by_picture.setdefault(picture_id, []), category.get("name"))

        picture_text = overlay_translations(
            {pid: default_text(row) for pid, row in visible.items()},
            self._optional(extras, "picture_translations"),
            "picture_id",
        )
        set_text = overlay_translations(
            {sid: default_text(row) for sid, row in sets.items()},
            self._optional(extras, "set_translations"),
            "picture_set_id",
        )

        summaries = {
            sid: StyleSetSummary(
                id=sid,
                title=row.get("title") or "",
                subtitle=row.get("subtitle") or "",
                coverImageUrl=row.get("cover_image_url") or None,
                translations=set_text[sid],
            )
            for sid, row in sets.items()
        }

        galleries: dict[str, StyleGallery] = {}
        for style in targets:
            pictures = []
            for picture_id in candidates.get(style.id, []):
                row = visible.get(picture_id)
                if row is None:
                    continue
                pictures.append(StylePicture(
                    id=picture_id,
                    pictureSetId=row["picture_set_id"],
                    imageUrl=row["image_url"],
                    rawImageUrl=row.get("raw_image_url") or None,
                    orderIndex=row.get("order_index"),
                    createdAt=str(row.get("created_at") or ""),
                    tags=tags_by_picture.get(picture_id, []),
                    categories=categories_by_picture.get(picture_id, []),
                    picture_set=summaries[row["picture_set_id"]],
                    translations=picture_text[picture_id],
                ))

            pictures.sort(key=lambda p: (parse_timestamp(p.createdAt), p.orderIndex or 0), reverse=True)
            galleries[style.id] = StyleGallery(
                id=style.id,
                tagName=style.tag_name,
                pictures=pictures[:MAX_PICTURES_PER_STYLE],
            )

        self.log.info(
            "Style galleries built: "
            + ", ".join(f"{sid}={len(g.pictures)}" for sid, g in galleries.items())
        )
        return PictureStylesResponse(styles=galleries)
