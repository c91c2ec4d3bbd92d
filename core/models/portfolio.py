# =============================================================================
# core/models/portfolio.py - Portfolio Gallery Schemas
# =============================================================================
# These models describe the records the public gallery reads and the
# aggregated payload served on first render:
# - Picture / PictureSet: rows owned by the relational backend
# - LocalizedText / SetTranslations: per-locale overrides (en, zh)
# - SetLocation: map pin for a picture set
# - InitialPortfolioPayload: merged, read-only snapshot for first render
# - StyleGallery / PictureStylesResponse: pictures grouped by photography style
#
# JSON field names of the payload are camelCase (pictureSets, transMap, ...)
# because that is what the rendering layer consumes.
# =============================================================================

import math

from pydantic import BaseModel, ConfigDict, Field


class LocalizedText(BaseModel):
    """Optional per-locale overrides for the bilingual text fields."""
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None


class SetTranslations(BaseModel):
    """Translations of one picture set, keyed by locale."""
    en: LocalizedText | None = None
    zh: LocalizedText | None = None


class Picture(BaseModel):
    """
    One image in a picture set.

    `order_index` determines display order within the set.
    """
    model_config = ConfigDict(extra="ignore")

    id: int
    picture_set_id: int
    order_index: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    raw_image_url: str | None = None
    image_url: str | None = None
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    style: str | None = None
    is_published: bool | None = None


class PictureSet(BaseModel):
    """
    A titled, ordered collection of pictures forming one portfolio entry.

    `position` is the legacy placement field ("up" / "down") used before
    section assignments existed.
    """
    model_config = ConfigDict(extra="ignore")

    id: int
    created_at: str | None = None
    updated_at: str | None = None
    cover_image_url: str | None = None
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    position: str | None = None
    is_published: bool | None = None
    pictures: list[Picture] = Field(default_factory=list)

    @property
    def normalized_position(self) -> str:
        return (self.position or "").strip().lower()


class SetLocation(BaseModel):
    """Map pin for a picture set."""
    name: str | None = None
    latitude: float
    longitude: float

    @staticmethod
    def is_valid_coordinate(latitude: float, longitude: float) -> bool:
        return (
            math.isfinite(latitude)
            and math.isfinite(longitude)
            and -90 <= latitude <= 90
            and -180 <= longitude <= 180
        )


class InitialPortfolioPayload(BaseModel):
    """
    Everything the public gallery needs on first load.

    Assembled fresh on every aggregation; it has no lifecycle beyond the
    request (or cache window) that produced it.
    """
    model_config = ConfigDict(populate_by_name=True)

    picture_sets: list[PictureSet] = Field(default_factory=list, alias="pictureSets")
    trans_map: dict[int, SetTranslations] = Field(default_factory=dict, alias="transMap")
    set_locations: dict[int, SetLocation] = Field(default_factory=dict, alias="setLocations")
    up_sets: list[PictureSet] = Field(default_factory=list, alias="upSets")
    down_sets: list[PictureSet] = Field(default_factory=list, alias="downSets")


class VocabResponse(BaseModel):
    """Lookup tables used by the admin editor."""
    categories: list[dict] = Field(default_factory=list)
    seasons: list[dict] = Field(default_factory=list)
    sections: list[dict] = Field(default_factory=list)


class MasterShot(BaseModel):
    """A picture featured in the master collections showcase."""
    id: int
    pictureSetId: int | None = None
    imageUrl: str
    styleLabel: str = "Master"
    styleLabelZh: str = "大师甄选"


class MasterShotsResponse(BaseModel):
    shots: list[MasterShot] = Field(default_factory=list)


# =============================================================================
# Style Galleries
# =============================================================================

class BilingualText(BaseModel):
    """English and Chinese text for one picture or set; blanks are ""."""
    en: LocalizedText = Field(default_factory=LocalizedText)
    zh: LocalizedText = Field(default_factory=LocalizedText)


class StyleSetSummary(BaseModel):
    """The set a style-gallery picture belongs to."""
    id: int
    title: str = ""
    subtitle: str = ""
    coverImageUrl: str | None = None
    translations: BilingualText = Field(default_factory=BilingualText)


class StylePicture(BaseModel):
    """One picture in a photography style gallery."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    pictureSetId: int
    imageUrl: str
    rawImageUrl: str | None = None
    orderIndex: int | None = None
    createdAt: str = ""
    # Topic tag names and category names, in first-seen order
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    picture_set: StyleSetSummary = Field(alias="set")
    translations: BilingualText = Field(default_factory=BilingualText)


class StyleGallery(BaseModel):
    id: str
    tagName: str
    pictures: list[StylePicture] = Field(default_factory=list)


class PictureStylesResponse(BaseModel):
    """
    Style galleries keyed by style id.

    An unknown style id yields an empty mapping.
    """
    styles: dict[str, StyleGallery] = Field(
        default_factory=dict,
        examples=[{"street": {"id": "street", "tagName": "Street", "pictures": []}}],
    )
