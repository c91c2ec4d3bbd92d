# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides fake Supabase reads and sample gallery rows
# =============================================================================

import os
import time

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from lib.r2_client import R2Config


# =============================================================================
# Fakes
# =============================================================================

class FakePortfolioDB:
    """
    Stand-in for SupabaseClient reads.

    `delays` adds a blocking sleep per read and `failures` makes a read
    raise, so tests can instrument latency and failure per source.
    """

    def __init__(self, data: dict, delays: dict | None = None, failures: dict | None = None):
        self.data = data
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls: list[str] = []

    def _read(self, source: str):
        self.calls.append(source)
        if source in self.delays:
            time.sleep(self.delays[source])
        if source in self.failures:
            raise self.failures[source]
        return self.data.get(source, [])

    def fetch_published_picture_sets(self):
        return self._read("picture_sets")

    def fetch_set_translations(self):
        return self._read("translations")

    def fetch_primary_set_locations(self):
        return self._read("locations")

    def fetch_section_assignments(self):
        return self._read("assignments")

    def fetch_sections(self):
        return self._read("sections")

    def fetch_categories(self):
        return self._read("categories")

    def fetch_seasons(self):
        return self._read("seasons")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def r2_config():
    """A complete R2 configuration."""
    return R2Config(
        endpoint_url="https://acct.r2.cloudflarestorage.com",
        bucket="portfolio",
        access_key_id="test-access-key",
        secret_access_key="test-secret-key",
        public_base_url="https://pub-test.r2.dev",
        upload_url_expires=3600,
    )


@pytest.fixture
def sample_set_rows():
    """Published picture_sets rows, newest first."""
    return [
        {
            "id": 3,
            "created_at": "2024-05-03T10:00:00Z",
            "updated_at": "2024-05-03T10:00:00Z",
            "cover_image_url": "https://pub-test.r2.dev/picture/cover-3.webp",
            "title": "洱海晨雾",
            "subtitle": "",
            "description": "Morning on the lake",
            "position": "down",
            "is_published": True,
        },
        {
            "id": 2,
            "created_at": "2024-05-02T10:00:00Z",
            "updated_at": "2024-05-02T10:00:00Z",
            "cover_image_url": "https://pub-test.r2.dev/picture/cover-2.webp",
            "title": "Old Town",
            "subtitle": "Dali",
            "description": "",
            "position": "up",
            "is_published": True,
        },
        {
            "id": 1,
            "created_at": "2024-05-01T10:00:00Z",
            "updated_at": "2024-05-01T10:00:00Z",
            "cover_image_url": "https://pub-test.r2.dev/picture/cover-1.webp",
            "title": "Snow Mountain",
            "subtitle": None,
            "description": None,
            "position": "down",
            "is_published": True,
        },
    ]


@pytest.fixture
def sample_portfolio_data(sample_set_rows):
    """Rows for every source the aggregator reads."""
    return {
        "picture_sets": sample_set_rows,
        "translations": [
            {"picture_set_id": 3, "locale": "en", "title": "Erhai Morning Mist", "subtitle": "", "description": None},
            {"picture_set_id": 3, "locale": "zh", "title": "洱海晨雾", "subtitle": None, "description": "湖上的清晨"},
            {"picture_set_id": 2, "locale": "en", "title": "Old Town", "subtitle": "Dali", "description": None},
            {"picture_set_id": 99, "locale": "en", "title": "Unpublished", "subtitle": None, "description": None},
            {"picture_set_id": 2, "locale": "fr", "title": "Vieille ville", "subtitle": None, "description": None},
        ],
        "locations": [
            {"picture_set_id": 3, "is_primary": True, "location": {"name": "Erhai", "latitude": "25.69", "longitude": 100.18}},
            {"picture_set_id": 2, "is_primary": True, "location": {"name": "Nowhere", "latitude": 120.0, "longitude": 10.0}},
            {"picture_set_id": 1, "is_primary": True, "location": {"name": "Broken", "latitude": None, "longitude": 99.0}},
            {"picture_set_id": 99, "is_primary": True, "location": {"name": "Hidden", "latitude": 1.0, "longitude": 1.0}},
        ],
        "assignments": [
            {"picture_set_id": 1, "section_id": 10},
            {"picture_set_id": 3, "section_id": 20},
        ],
        "sections": [
            {"id": 10, "name": "Top Row", "display_order": 1},
            {"id": 20, "name": "Bottom", "display_order": 2},
        ],
    }
