# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .storage_service import StorageService
from .portfolio_service import PortfolioService
from .showcase_service import ShowcaseService
from .geocode_service import GeocodeService
from .translation_service import TranslationService
from .analysis_service import AnalysisService

__all__ = [
    "StorageService",
    "PortfolioService",
    "ShowcaseService",
    "GeocodeService",
    "TranslationService",
    "AnalysisService",
]
