# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the portfolio's business logic:
# - models/: Pydantic schemas for the gallery, storage and editorial aids
# - services/: storage lifecycle, initial-data aggregation, editorial aids
#
# Services take their clients as constructor arguments so tests can pass
# fakes. Only app/ knows about requests and routing.
# =============================================================================
