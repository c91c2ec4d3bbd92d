# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - storage.py: Presigned uploads and deletes against R2
# - portfolio.py: Initial gallery payload, vocabulary, master shots
# - editorial.py: Geocoding, translation and image analysis aids
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import storage
from . import portfolio
from . import editorial

__all__ = [
    "health",
    "storage",
    "portfolio",
    "editorial",
]
