# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Portfolio API:
# - test_storage_keys.py / test_storage_service.py: upload and delete lifecycle
# - test_portfolio_service.py / test_portfolio_order.py: initial-data payload
# - test_showcase_service.py: master shots and retry
# - test_geocode_service.py, test_translation_service.py,
#   test_analysis_service.py: editorial aids
# - test_api.py: routes through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
