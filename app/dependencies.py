# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# Services are constructed once at startup (see build_services, called from
# the lifespan in main.py), stored on app.state, and injected into route
# handlers using Depends(). Tests substitute fakes via
# app.dependency_overrides.
# =============================================================================

from dataclasses import dataclass
from typing import Annotated, Any

import httpx
from fastapi import Depends, Request

from core.services.analysis_service import AnalysisService
from core.services.geocode_service import GeocodeService
from core.services.portfolio_service import PortfolioService
from core.services.showcase_service import ShowcaseService
from core.services.storage_service import StorageService
from core.services.style_service import StyleService
from core.services.translation_service import TranslationService
from lib.openai_client import OpenAIProvider
from lib.r2_client import R2Config
from lib.supabase_client import SupabaseClient


@dataclass
class Services:
    """Process-wide service instances."""
    http: httpx.AsyncClient
    db: SupabaseClient
    storage: StorageService
    portfolio: PortfolioService
    showcase: ShowcaseService
    styles: StyleService
    geocode: GeocodeService
    translation: TranslationService
    analysis: AnalysisService

    async def aclose(self) -> None:
        await self.http.aclose()


def build_services(settings: Any) -> Services:
    """
    Wire every service from settings.

    Nothing here contacts a provider; clients whose configuration is missing
    fail later, in the operation that needs them.
    """
    http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    db = SupabaseClient.from_settings(settings)
    r2_config = R2Config.from_settings(settings)
    openai_provider = OpenAIProvider(settings)

    return Services(
        http=http,
        db=db,
        storage=StorageService(r2_config),
        portfolio=PortfolioService(db, cache_ttl_seconds=settings.PORTFOLIO_CACHE_TTL_SECONDS),
        showcase=ShowcaseService(db, public_base_url=settings.R2_PUBLIC_BASE_URL),
        styles=StyleService(db),
        geocode=GeocodeService(
            http,
            base_url=settings.NOMINATIM_URL,
            user_agent=settings.GEOCODE_USER_AGENT,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
        translation=TranslationService(openai_provider),
        analysis=AnalysisService(openai_provider, timeout=settings.HTTP_TIMEOUT_SECONDS),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_storage_service(request: Request) -> StorageService:
    return get_services(request).storage


def get_portfolio_service(request: Request) -> PortfolioService:
    return get_services(request).portfolio


def get_showcase_service(request: Request) -> ShowcaseService:
    return get_services(request).showcase


def get_style_service(request: Request) -> StyleService:
    return get_services(request).styles


def get_geocode_service(request: Request) -> GeocodeService:
    return get_services(request).geocode


def get_translation_service(request: Request) -> TranslationService:
    return get_services(request).translation


def get_analysis_service(request: Request) -> AnalysisService:
    return get_services(request).analysis


def get_supabase_client(request: Request) -> SupabaseClient:
    return get_services(request).db


# Type aliases for dependency injection
StorageDep = Annotated[StorageService, Depends(get_storage_service)]
PortfolioDep = Annotated[PortfolioService, Depends(get_portfolio_service)]
ShowcaseDep = Annotated[ShowcaseService, Depends(get_showcase_service)]
StyleDep = Annotated[StyleService, Depends(get_style_service)]
GeocodeDep = Annotated[GeocodeService, Depends(get_geocode_service)]
TranslationDep = Annotated[TranslationService, Depends(get_translation_service)]
AnalysisDep = Annotated[AnalysisService, Depends(get_analysis_service)]
SupabaseDep = Annotated[SupabaseClient, Depends(get_supabase_client)]
