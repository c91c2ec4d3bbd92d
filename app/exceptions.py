# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors carry a machine-readable code and, where possible, tell HOW to fix
# the problem, not just WHAT failed.
#
# Taxonomy:
# - validation (400): missing or malformed input, never retried
# - configuration (500): a credential/endpoint is absent, operator must fix
# - upstream (500/502): object store, Supabase or a provider failed
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class PortfolioException(Exception):
    """
    Base exception for the Portfolio API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "PORTFOLIO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Validation Exceptions
# =============================================================================

class MissingFieldError(PortfolioException):
    """Raised when a required request field is absent or blank."""

    def __init__(self, field: str, message: str | None = None):
        super().__init__(
            message=message or f"Missing {field}",
            code="MISSING_FIELD",
            status_code=400,
            suggestion=f"Provide a non-empty '{field}' in the request body",
            details={"field": field}
        )


class InvalidFieldError(PortfolioException):
    """Raised when a request field is present but not acceptable."""

    def __init__(
        self,
        field: str,
        value: Any,
        allowed: list[str] | None = None,
        suggestion: str | None = None,
    ):
        if allowed and not suggestion:
            suggestion = f"Use one of: {', '.join(allowed)}"
        super().__init__(
            message=f"Invalid {field}: {value}",
            code="INVALID_FIELD",
            status_code=400,
            suggestion=suggestion,
            details={"field": field, "value": value, "allowed": allowed or []}
        )


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigurationError(PortfolioException):
    """Raised when an operation needs configuration that is not set."""

    def __init__(self, missing: list[str], service: str):
        super().__init__(
            message=f"{service} is not configured: missing {', '.join(missing)}",
            code="CONFIGURATION_ERROR",
            status_code=500,
            suggestion=f"Set {', '.join(missing)} in the environment or .env file",
            details={"service": service, "missing": missing}
        )


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageProviderError(PortfolioException):
    """Raised when the object store rejects a presign or upload request."""

    def __init__(self, operation: str, error: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Object storage {operation} failed: {error}",
            code="STORAGE_PROVIDER_ERROR",
            status_code=500,
            suggestion="Check the R2 credentials and bucket, then try again",
            details={"operation": operation, "error": error, **(details or {})}
        )


class StorageDeleteError(PortfolioException):
    """Raised by the HTTP layer when a delete could not be completed."""

    def __init__(self, key: str | None, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="STORAGE_DELETE_ERROR",
            status_code=500,
            suggestion="Check that the key exists in the configured bucket",
            details={"key": key, **(details or {})}
        )


# =============================================================================
# Upstream Exceptions
# =============================================================================

class UpstreamError(PortfolioException):
    """Raised when Supabase or another backend returns a failure."""

    def __init__(self, source: str, error: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Failed to read {source}: {error}",
            code="UPSTREAM_ERROR",
            status_code=500,
            suggestion="Try again later or check the Supabase project status",
            details={"source": source, "error": error, **(details or {})}
        )


class AggregationError(PortfolioException):
    """Raised when the picture-set read fails during initial-data aggregation."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to aggregate portfolio data: {error}",
            code="AGGREGATION_FAILED",
            status_code=500,
            suggestion="Check that the picture_sets table is reachable",
            details={"error": error}
        )


class GeocodeProviderError(PortfolioException):
    """Raised when the geocoding provider fails or is unreachable."""

    def __init__(self, error: str, status: int | None = None):
        super().__init__(
            message="Geocoding failed",
            code="GEOCODE_FAILED",
            status_code=502,
            suggestion="The geocoding provider is unavailable; try again later",
            details={"error": error, "provider_status": status}
        )


class TranslationError(PortfolioException):
    """Raised when the translation provider fails."""

    def __init__(self, error: str):
        super().__init__(
            message="Translation failed",
            code="TRANSLATION_FAILED",
            status_code=500,
            suggestion="Check the OpenAI/Azure deployment and quota",
            details={"debug": error}
        )


class ImageAnalysisError(PortfolioException):
    """
    Raised when image analysis fails.

    Rendered by its own handler so error responses keep the analysis shape
    ({success, analysisType, result}) with the error fields populated.
    """

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        details: str | None = None,
        analysis_type: str | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details={"reason": details} if details else None,
        )
        self.reason = details
        self.analysis_type = analysis_type

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": False,
            "analysisType": self.analysis_type,
            "result": "",
            "error": self.message,
            "code": self.code,
        }
        if self.reason:
            result["details"] = self.reason
        return result


# =============================================================================
# Exception Handlers
# =============================================================================

async def portfolio_exception_handler(
    request: Request,
    exc: PortfolioException
) -> JSONResponse:
    """
    Convert PortfolioException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle request body validation errors.

    Malformed input is a client error, reported as 400 like missing fields.
    The analyze-image route keeps its own response shape.
    """
    if request.url.path.endswith("/analyze-image"):
        error = ImageAnalysisError(
            "Invalid request body",
            code="VALIDATION_ERROR",
            status_code=400,
            details="Send a JSON object with imageUrl, analysisType and optional customPrompt",
        )
        return JSONResponse(status_code=400, content=error.to_dict())

    return JSONResponse(
        status_code=400,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
