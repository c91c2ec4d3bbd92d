# =============================================================================
# core/services/portfolio_order.py - Gallery Placement
# =============================================================================
# Splits picture sets into the two adjacency views of the gallery:
# - up sets: the top row
# - down sets: the bottom row, stably shuffled
#
# Placement comes from section assignments ("top", "up", "上", "顶" ...)
# with the legacy `position` field as a secondary source.
# =============================================================================

import re
from typing import Any, Iterable

from core.models.portfolio import PictureSet

TOP_SECTION = re.compile(r"\bup\b|top|上|顶")
BOTTOM_SECTION = re.compile(r"\bdown\b|bottom|下|底")


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def stable_shuffle(items: list[PictureSet], seed: str) -> list[PictureSet]:
    """
    Shuffle deterministically from a string seed.

    The same seed always yields the same order, so the bottom row does not
    jump around between renders of an unchanged gallery.
    """
    shuffled = list(items)

    seed_hash = 0
    for char in seed:
        seed_hash = _to_int32((seed_hash << 5) - seed_hash + ord(char))

    for i in range(len(shuffled) - 1, 0, -1):
        seed_hash = (seed_hash * 9301 + 49297) % 233280
        j = abs(seed_hash) % (i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled


def _seed_for(sets: Iterable[PictureSet]) -> str:
    return "-".join(str(s.id) for s in sets)


def derive_buckets(
    sets: list[PictureSet],
    assignments: list[dict[str, Any]] | None,
    sections: list[dict[str, Any]] | None,
) -> tuple[list[PictureSet], list[PictureSet]]:
    """
    Derive the up/down views from section assignments and legacy positions.

    Args:
        sets: Published picture sets, in display order
        assignments: Rows of {picture_set_id, section_id}
        sections: Rows of {id, name}

    Returns:
        (up_sets, down_sets); section-assigned sets come first, then sets
        placed only through their legacy position.
    """
    section_names: dict[int, str] = {}
    for row in sections or []:
        section_id = _as_int(row.get("id"))
        if section_id is None:
            continue
        section_names[section_id] = str(row.get("name") or "").lower().strip()

    top_ids: set[int] = set()
    bottom_ids: set[int] = set()
    for row in assignments or []:
        section_id = _as_int(row.get("section_id"))
        set_id = _as_int(row.get("picture_set_id"))
        if section_id is None or set_id is None:
            continue
        name = section_names.get(section_id)
        if not name:
            continue
        if TOP_SECTION.search(name):
            top_ids.add(set_id)
        if BOTTOM_SECTION.search(name):
            bottom_ids.add(set_id)

    top_sets = [s for s in sets if s.id in top_ids]
    bottom_sets = [s for s in sets if s.id in bottom_ids]
    legacy_up = [s for s in sets if s.normalized_position == "up" and s.id not in top_ids]
    legacy_down = [s for s in sets if s.normalized_position == "down" and s.id not in bottom_ids]

    up_sets = top_sets + legacy_up
    down_sets = bottom_sets + legacy_down
    return up_sets, stable_shuffle(down_sets, _seed_for(down_sets))


def fallback_buckets(sets: list[PictureSet]) -> tuple[list[PictureSet], list[PictureSet]]:
    """Up/down views from the legacy position field alone."""
    up_sets = [s for s in sets if s.normalized_position == "up"]
    down_sets = [s for s in sets if s.normalized_position == "down"]
    return up_sets, stable_shuffle(down_sets, _seed_for(down_sets))
