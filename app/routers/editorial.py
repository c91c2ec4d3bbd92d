# =============================================================================
# app/routers/editorial.py - Editorial Aid Endpoints
# =============================================================================
# Stateless proxies the admin editor uses while authoring content:
# - geocode: place search for map pins
# - translate: en <-> zh, plus bilingual fill of set text fields
# - analyze-image: AI titles, descriptions and tags
#
# Each request makes a single provider attempt.
# =============================================================================

from fastapi import APIRouter

from app.dependencies import AnalysisDep, GeocodeDep, TranslationDep
from core.models.editorial import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    BilingualRequest,
    BilingualResponse,
    GeocodeRequest,
    GeocodeResponse,
    TranslateRequest,
    TranslateResponse,
)

router = APIRouter()


@router.post("/geocode", response_model=GeocodeResponse)
async def geocode(body: GeocodeRequest, geocoder: GeocodeDep):
    """
    Search places by name.

    `limit` is clamped to 1..10. Results without numeric coordinates are
    dropped.
    """
    results = await geocoder.search(body.q, body.limit)
    return GeocodeResponse(results=results)


@router.post("/translate", response_model=TranslateResponse)
def translate(body: TranslateRequest, translator: TranslationDep):
    """Translate text; sourceLang "auto" lets the model detect the language."""
    translated = translator.translate(body.text, body.sourceLang, body.targetLang)
    return TranslateResponse(translated=translated)


@router.post("/translate/bilingual", response_model=BilingualResponse)
def translate_bilingual(body: BilingualRequest, translator: TranslationDep):
    """Fill missing English/Chinese title, subtitle and description."""
    return translator.fill_bilingual(body)


@router.post("/analyze-image", response_model=AnalyzeImageResponse, response_model_exclude_none=True)
def analyze_image(body: AnalyzeImageRequest, analyzer: AnalysisDep):
    """
    Analyze an image with a vision model.

    Errors keep this response shape with `success: false` and the error
    fields populated.
    """
    return analyzer.analyze(body.imageUrl, body.analysisType, body.customPrompt)
