# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - portfolio.py: picture sets, translations, locations, initial payload
# - storage.py: upload URL and delete request/response schemas
# - editorial.py: geocode, translate and image analysis schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Portfolio Models - Gallery records and the initial payload
# -----------------------------------------------------------------------------
from .portfolio import (
    InitialPortfolioPayload,
    LocalizedText,
    MasterShot,
    MasterShotsResponse,
    Picture,
    PictureSet,
    SetLocation,
    SetTranslations,
    VocabResponse,
)

# -----------------------------------------------------------------------------
# Storage Models - Upload / delete lifecycle
# -----------------------------------------------------------------------------
from .storage import (
    DEFAULT_CONTENT_TYPE,
    DeleteByUrlRequest,
    DeleteObjectRequest,
    DeleteObjectResponse,
    DeleteResult,
    DirectUploadRequest,
    DirectUploadResponse,
    UploadUrl,
    UploadUrlRequest,
)

# -----------------------------------------------------------------------------
# Editorial Models - Geocode, translate, analyze
# -----------------------------------------------------------------------------
from .editorial import (
    AnalysisType,
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    BilingualRequest,
    BilingualResponse,
    CompleteAnalysis,
    GeocodeRequest,
    GeocodeResponse,
    GeocodeResult,
    TranslateRequest,
    TranslateResponse,
)

__all__ = [
    # Portfolio
    "InitialPortfolioPayload",
    "LocalizedText",
    "MasterShot",
    "MasterShotsResponse",
    "Picture",
    "PictureSet",
    "SetLocation",
    "SetTranslations",
    "VocabResponse",
    # Storage
    "DEFAULT_CONTENT_TYPE",
    "DeleteByUrlRequest",
    "DeleteObjectRequest",
    "DeleteObjectResponse",
    "DeleteResult",
    "DirectUploadRequest",
    "DirectUploadResponse",
    "UploadUrl",
    "UploadUrlRequest",
    # Editorial
    "AnalysisType",
    "AnalyzeImageRequest",
    "AnalyzeImageResponse",
    "BilingualRequest",
    "BilingualResponse",
    "CompleteAnalysis",
    "GeocodeRequest",
    "GeocodeResponse",
    "GeocodeResult",
    "TranslateRequest",
    "TranslateResponse",
]
