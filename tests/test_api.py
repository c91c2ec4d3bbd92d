# =============================================================================
# tests/test_api.py - HTTP API Tests
# =============================================================================
# End-to-end tests of the routes through FastAPI's TestClient. Services are
# swapped in with app.dependency_overrides; the lifespan is not run, so no
# real client is ever built.
#
# Run with: pytest tests/test_api.py -v
# =============================================================================

import dataclasses
from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from app.dependencies import (
    get_analysis_service,
    get_geocode_service,
    get_portfolio_service,
    get_showcase_service,
    get_storage_service,
    get_style_service,
    get_supabase_client,
    get_translation_service,
)
from app.exceptions import ImageAnalysisError
from app.main import app
from core.models.editorial import AnalyzeImageResponse
from core.models.portfolio import MasterShot
from core.services.analysis_service import AnalysisService
from core.services.geocode_service import GeocodeService
from core.services.portfolio_service import PortfolioService
from core.services.storage_service import StorageService
from core.services.style_service import StyleService
from tests.conftest import FakePortfolioDB


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def s3_client():
    s3 = MagicMock()
    s3.generate_presigned_url.return_value = "https://signed.example.com/put?sig=1"
    s3.delete_object.return_value = {"ResponseMetadata": {"HTTPStatusCode": 204}}
    return s3


@pytest.fixture
def storage(r2_config, s3_client):
    service = StorageService(r2_config, client=s3_client)
    app.dependency_overrides[get_storage_service] = lambda: service
    return service


# =============================================================================
# Storage Routes
# =============================================================================

class TestStorageRoutes:
    """Tests for /api/upload-to-r2 and /api/delete-from-r2."""

    def test_issue_upload_url(self, client, storage):
        response = client.post("/api/upload-to-r2", json={
            "objectName": "picture/cover-42.webp",
            "contentType": "image/webp",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["uploadUrl"] == "https://signed.example.com/put?sig=1"
        assert data["objectKey"] == "picture/cover-42.webp"
        assert data["expiresIn"] == 3600
        assert data["publicUrl"] == "https://pub-test.r2.dev/picture/cover-42.webp"

    def test_missing_object_name_is_400(self, client, storage, s3_client):
        response = client.post("/api/upload-to-r2", json={"contentType": "image/webp"})

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_FIELD"
        s3_client.generate_presigned_url.assert_not_called()

    def test_leading_slash_object_name_is_400(self, client, storage, s3_client):
        response = client.post("/api/upload-to-r2", json={
            "objectName": "/picture/cover-42.webp",
            "contentType": "image/webp",
        })

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_FIELD"
        assert body["details"]["field"] == "objectName"
        s3_client.generate_presigned_url.assert_not_called()

    def test_missing_configuration_is_500(self, client, r2_config):
        service = StorageService(dataclasses.replace(r2_config, secret_access_key=None))
        app.dependency_overrides[get_storage_service] = lambda: service

        response = client.post("/api/upload-to-r2", json={"objectName": "a.webp"})

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "CONFIGURATION_ERROR"
        assert body["details"]["missing"] == ["R2_SECRET_ACCESS_KEY"]

    def test_delete_by_key(self, client, storage, s3_client):
        response = client.post("/api/delete-from-r2", json={"objectKey": "picture/cover-42.webp"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Object deleted", "objectKey": "picture/cover-42.webp"}

    def test_delete_store_failure_is_500_with_status(self, client, storage, s3_client):
        s3_client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}, "ResponseMetadata": {"HTTPStatusCode": 403}},
            "DeleteObject",
        )

        response = client.post("/api/delete-from-r2", json={"objectKey": "picture/cover-42.webp"})

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "STORAGE_DELETE_ERROR"
        assert body["details"]["store_status"] == 403

    def test_delete_by_url(self, client, storage, s3_client):
        response = client.post("/api/delete-from-r2/by-url", json={
            "url": "https://pub-xxx.r2.dev/picture/cover-42.webp",
        })

        assert response.status_code == 200
        s3_client.delete_object.assert_called_once_with(Bucket="portfolio", Key="picture/cover-42.webp")

    def test_delete_by_unresolvable_url(self, client, storage, s3_client):
        response = client.post("/api/delete-from-r2/by-url", json={"url": "picture/cover-42.webp"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Could not derive object key from URL"
        s3_client.delete_object.assert_not_called()

    def test_delete_by_url_without_url_is_400(self, client, storage):
        response = client.post("/api/delete-from-r2/by-url", json={})
        assert response.status_code == 400

    def test_malformed_body_is_400(self, client, storage):
        response = client.post(
            "/api/upload-to-r2",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


# =============================================================================
# Portfolio Routes
# =============================================================================

class TestPortfolioRoutes:
    """Tests for the gallery read routes."""

    def test_initial_payload(self, client, sample_portfolio_data):
        service = PortfolioService(FakePortfolioDB(sample_portfolio_data))
        app.dependency_overrides[get_portfolio_service] = lambda: service

        response = client.get("/api/portfolio/initial")

        assert response.status_code == 200
        data = response.json()
        assert [s["id"] for s in data["pictureSets"]] == [3, 2, 1]
        assert data["transMap"]["3"]["en"]["title"] == "Erhai Morning Mist"
        assert list(data["setLocations"]) == ["3"]
        assert [s["id"] for s in data["upSets"]] == [1, 2]

    def test_aggregation_failure_is_500(self, client, sample_portfolio_data):
        db = FakePortfolioDB(sample_portfolio_data, failures={"picture_sets": RuntimeError("timeout")})
        service = PortfolioService(db)
        app.dependency_overrides[get_portfolio_service] = lambda: service

        response = client.get("/api/portfolio/initial")

        assert response.status_code == 500
        assert response.json()["code"] == "AGGREGATION_FAILED"

    def test_vocab(self, client):
        db = FakePortfolioDB({"categories": [{"id": 1, "name": "Street"}]})
        app.dependency_overrides[get_portfolio_service] = lambda: PortfolioService(db)

        response = client.get("/api/admin/vocab")

        assert response.status_code == 200
        assert response.json() == {"categories": [{"id": 1, "name": "Street"}], "seasons": [], "sections": []}

    def test_master_shots_passes_limit(self, client):
        showcase = MagicMock()

        async def master_shots(limit):
            return [MasterShot(id=1, imageUrl="https://pub-test.r2.dev/a.webp")]

        showcase.master_shots.side_effect = master_shots
        app.dependency_overrides[get_showcase_service] = lambda: showcase

        response = client.get("/api/master-shots", params={"limit": "3"})

        assert response.status_code == 200
        assert response.json()["shots"][0]["styleLabel"] == "Master"
        showcase.master_shots.assert_called_once_with("3")

    def test_picture_styles_serializes_set_field(self, client):
        db = MagicMock()
        db.fetch_style_tags.return_value = [{"id": 1, "name": "Street", "type": "style"}]
        db.fetch_categories.return_value = []
        db.fetch_picture_taggings.return_value = [{"picture_id": 9, "tag_id": 1}]
        db.fetch_pictures.return_value = [{
            "id": 9, "picture_set_id": 4, "image_url": "picture/9.webp", "title": "Night Market",
            "order_index": 2, "created_at": "2024-05-01T00:00:00Z", "is_published": True,
        }]
        db.fetch_picture_sets.return_value = [{"id": 4, "title": "Taipei", "is_published": True}]
        for method in ("fetch_picture_translations", "fetch_taggings_for_pictures",
                       "fetch_picture_category_names", "fetch_set_translations"):
            getattr(db, method).return_value = []
        app.dependency_overrides[get_style_service] = lambda: StyleService(db)

        response = client.get("/api/picture-styles", params={"style": "street"})

        assert response.status_code == 200
        picture = response.json()["styles"]["street"]["pictures"][0]
        assert picture["id"] == 9
        assert picture["set"]["title"] == "Taipei"
        assert picture["translations"]["en"]["title"] == "Night Market"
        assert "picture_set" not in picture

    def test_picture_styles_unknown_style(self, client):
        app.dependency_overrides[get_style_service] = lambda: StyleService(MagicMock())

        response = client.get("/api/picture-styles", params={"style": "macro"})

        assert response.status_code == 200
        assert response.json() == {"styles": {}}

    def test_picture_styles_read_failure_is_500(self, client):
        db = MagicMock()
        db.fetch_style_tags.side_effect = RuntimeError("permission denied for table tags")
        app.dependency_overrides[get_style_service] = lambda: StyleService(db)

        response = client.get("/api/picture-styles")

        assert response.status_code == 500
        assert response.json()["code"] == "UPSTREAM_ERROR"


# =============================================================================
# Editorial Routes
# =============================================================================

class TestEditorialRoutes:
    """Tests for geocode, translate and analyze-image routes."""

    def test_geocode(self, client):
        def handler(request):
            return httpx.Response(200, json=[
                {"display_name": "Dali", "lat": "25.6", "lon": "100.2"},
                {"display_name": "Broken", "lat": "", "lon": "100.2"},
            ])

        geocoder = GeocodeService(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        app.dependency_overrides[get_geocode_service] = lambda: geocoder

        response = client.post("/api/geocode", json={"q": "Dali", "limit": 999})

        assert response.status_code == 200
        assert response.json()["results"] == [{"display_name": "Dali", "name": "Dali", "lat": 25.6, "lon": 100.2}]

    def test_geocode_missing_query(self, client):
        geocoder = GeocodeService(MagicMock())
        app.dependency_overrides[get_geocode_service] = lambda: geocoder

        response = client.post("/api/geocode", json={"q": "  "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing query"

    def test_translate(self, client):
        translator = MagicMock()
        translator.translate.return_value = "你好"
        app.dependency_overrides[get_translation_service] = lambda: translator

        response = client.post("/api/translate", json={"text": "hello", "targetLang": "zh"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "translated": "你好"}
        translator.translate.assert_called_once_with("hello", "en", "zh")

    def test_analyze_image_success_omits_empty_fields(self, client):
        analyzer = MagicMock()
        analyzer.analyze.return_value = AnalyzeImageResponse(analysisType="title", result="Silent Peaks")
        app.dependency_overrides[get_analysis_service] = lambda: analyzer

        response = client.post("/api/analyze-image", json={"imageUrl": "https://x/a.webp", "analysisType": "title"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "analysisType": "title", "result": "Silent Peaks"}

    def test_analyze_image_error_keeps_shape(self, client):
        analyzer = MagicMock()
        analyzer.analyze.side_effect = ImageAnalysisError(
            "API quota exceeded", code="QUOTA_EXCEEDED", status_code=429,
            details="Try again later", analysis_type="tags",
        )
        app.dependency_overrides[get_analysis_service] = lambda: analyzer

        response = client.post("/api/analyze-image", json={"imageUrl": "https://x/a.webp", "analysisType": "tags"})

        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "analysisType": "tags",
            "result": "",
            "error": "API quota exceeded",
            "code": "QUOTA_EXCEEDED",
            "details": "Try again later",
        }

    def test_analyze_image_wrong_field_type_keeps_shape(self, client):
        analyzer = AnalysisService(MagicMock())
        app.dependency_overrides[get_analysis_service] = lambda: analyzer

        response = client.post("/api/analyze-image", json={"imageUrl": 123, "analysisType": "tags"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["analysisType"] == "tags"
        assert body["result"] == ""
        assert body["code"] == "INVALID_FIELD"
        analyzer.provider.resolve.assert_not_called()

    def test_analyze_image_malformed_body_keeps_shape(self, client):
        app.dependency_overrides[get_analysis_service] = lambda: AnalysisService(MagicMock())

        response = client.post(
            "/api/analyze-image",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["result"] == ""
        assert body["code"] == "VALIDATION_ERROR"
        assert "detail" not in body


# =============================================================================
# Health Routes
# =============================================================================

class TestHealthRoutes:
    """Tests for health endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness_degraded_without_storage(self, client, r2_config):
        db = MagicMock()
        app.dependency_overrides[get_supabase_client] = lambda: db
        app.dependency_overrides[get_storage_service] = lambda: StorageService(
            dataclasses.replace(r2_config, endpoint_url=None)
        )

        response = client.get("/api/health/ready")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"] == "healthy"
        assert data["checks"]["storage"] == "unconfigured: R2_ENDPOINT_URL"
