# =============================================================================
# core/models/editorial.py - Editorial Aid Schemas
# =============================================================================
# Request/response contracts for the admin editorial aids:
# - Geocode: place search via Nominatim
# - Translate: single text and bilingual (en/zh) fill
# - Analyze image: AI-generated titles, descriptions and tags
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from core.models.portfolio import LocalizedText


# =============================================================================
# Geocode
# =============================================================================

class GeocodeRequest(BaseModel):
    q: str | None = Field(default=None, examples=["Lijiang, Yunnan"])
    # Accepts numbers or numeric strings; anything else means "default"
    limit: Any = Field(default=None, examples=[5])


class GeocodeResult(BaseModel):
    display_name: str | None = None
    name: str | None = None
    lat: float
    lon: float


class GeocodeResponse(BaseModel):
    results: list[GeocodeResult] = Field(default_factory=list)


# =============================================================================
# Translate
# =============================================================================

class TranslateRequest(BaseModel):
    text: str | None = None
    sourceLang: str = Field(default="en", description='Source locale, or "auto" to detect')
    targetLang: str = Field(default="zh")


class TranslateResponse(BaseModel):
    success: bool = True
    translated: str


class BilingualRequest(BaseModel):
    """Base fields in either language plus any existing per-locale values."""
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    en: LocalizedText | None = None
    zh: LocalizedText | None = None


class BilingualResponse(BaseModel):
    en: LocalizedText
    zh: LocalizedText


# =============================================================================
# Image Analysis
# =============================================================================

class AnalysisType(str, Enum):
    """The fixed set of analyses the vision model is prompted for."""
    TITLE = "title"
    SUBTITLE = "subtitle"
    COMPLETE = "complete"
    DESCRIPTION = "description"
    TAGS = "tags"
    TECHNICAL = "technical"


class AnalyzeImageRequest(BaseModel):
    # Loosely typed so bad values are reported in the analysis error shape
    imageUrl: Any = Field(default=None, examples=["https://pub-xxx.r2.dev/picture/cover-42.webp"])
    analysisType: Any = Field(default=AnalysisType.DESCRIPTION.value, examples=["tags"])
    customPrompt: Any = None


class CompleteAnalysis(BaseModel):
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None


class AnalyzeImageResponse(BaseModel):
    success: bool = True
    analysisType: str
    result: str
    tags: list[str] | None = None
    fields: CompleteAnalysis | None = None
