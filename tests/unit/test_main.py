"""
Tests for the application factory, lifecycle and error handlers.
"""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fhir_server.config.settings import reset_settings
from fhir_server.errors import SeedDataError
from fhir_server.store import InMemoryConditionStore

FIXTURES = str(Path(__file__).parent.parent / "fixtures" / "conditions.json")


class TestCreateApp:
    """Tests for create_app factory."""

    def test_create_app_returns_fastapi(self):
        """Should return a FastAPI application."""
        from fhir_server.main import create_app

        app = create_app()

        assert app is not None
        assert app.title == "FHIR Server"

    def test_create_app_includes_routers(self):
        """Should mount the FHIR routes under the base path."""
        from fhir_server.main import create_app

        app = create_app()
        routes = [route.path for route in app.routes]

        assert "/health" in routes
        assert "/fhir/R4/metadata" in routes
        assert "/fhir/R4/Condition" in routes
        assert "/fhir/R4/Condition/{condition_id}" in routes

    def test_create_app_honours_base_path(self, monkeypatch):
        """Should mount FHIR routes under a configured base path."""
        from fhir_server.main import create_app

        monkeypatch.setenv("FHIR_SERVER_BASE_PATH", "api/fhir/")
        reset_settings()

        routes = [route.path for route in create_app().routes]

        assert "/api/fhir/Condition" in routes

    def test_create_app_has_middleware(self):
        """Should have CORS and security middleware configured."""
        from fhir_server.main import create_app

        app = create_app()
        middleware_classes = [m.cls.__name__ for m in app.user_middleware]

        assert "CORSMiddleware" in middleware_classes
        assert "SecurityHeadersMiddleware" in middleware_classes
        assert "RequestSizeLimitMiddleware" in middleware_classes
        assert "RequestContextMiddleware" in middleware_classes

    def test_create_app_default_store_is_empty(self):
        """Should serve an empty in-memory store when none is given."""
        from fhir_server.main import create_app

        app = create_app()

        assert isinstance(app.state.condition_store, InMemoryConditionStore)


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "fhir-server"
        assert data["conditions_stored"] == 3

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in response.headers


class TestLifespan:
    """Tests for startup seeding."""

    def test_seeds_store_on_startup(self, monkeypatch):
        """Should load the configured seed file into the store."""
        from fhir_server.main import create_app

        monkeypatch.setenv("FHIR_SERVER_SEED_DATA_PATH", FIXTURES)
        reset_settings()
        app = create_app()

        with TestClient(app) as client:
            response = client.get("/health")

        assert response.json()["conditions_stored"] == 3

    def test_seeded_record_served_as_seeded(self, monkeypatch):
        """Should serve seed records without stamping server-side fields."""
        from fhir_server.main import create_app

        monkeypatch.setenv("FHIR_SERVER_SEED_DATA_PATH", FIXTURES)
        reset_settings()

        with TestClient(create_app()) as client:
            response = client.get("/fhir/R4/Condition/86sgf-1f7d-4394-a316-0a458edf28c4")

        resource = response.json()
        assert set(resource) == {
            "resourceType",
            "id",
            "clinicalStatus",
            "subject",
            "onsetDateTime",
        }
        assert resource["onsetDateTime"] == "2008-07-01T00:00:00+00:00"

    def test_duplicate_seed_ids_fail_startup(self, monkeypatch, tmp_path, seed_resources):
        """Should refuse to start when the seed file repeats an id."""
        from fhir_server.main import create_app

        seed = tmp_path / "seed.json"
        seed.write_text(json.dumps(seed_resources + seed_resources[:1]))
        monkeypatch.setenv("FHIR_SERVER_SEED_DATA_PATH", str(seed))
        reset_settings()

        with pytest.raises(SeedDataError, match="Duplicate seeded id"):
            with TestClient(create_app()):
                pass

    def test_no_seed_path_leaves_store_empty(self):
        from fhir_server.main import create_app

        with TestClient(create_app()) as client:
            response = client.get("/health")

        assert response.json()["conditions_stored"] == 0

    def test_bad_seed_file_fails_startup(self, monkeypatch, tmp_path):
        """Should refuse to start with an unreadable seed file."""
        from fhir_server.main import create_app

        seed = tmp_path / "seed.json"
        seed.write_text("{not json")
        monkeypatch.setenv("FHIR_SERVER_SEED_DATA_PATH", str(seed))
        reset_settings()

        with pytest.raises(SeedDataError):
            with TestClient(create_app()):
                pass


class TestErrorHandlers:
    """Tests for OperationOutcome error rendering."""

    def test_unknown_route(self, client):
        """Should render unknown paths as a not-found OperationOutcome."""
        response = client.get("/fhir/R4/Patient/p-1")

        assert response.status_code == 404
        outcome = json.loads(response.content)
        assert outcome["resourceType"] == "OperationOutcome"
        assert outcome["issue"][0]["code"] == "not-found"

    def test_unknown_route_in_xml(self, client):
        """Should honour Accept for routing errors."""
        response = client.get("/fhir/R4/Patient/p-1", headers={"Accept": "application/xml"})

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/xml"
        assert b"<OperationOutcome" in response.content

    def test_method_not_allowed(self, client):
        """Should render wrong methods as not-supported and keep Allow."""
        response = client.delete("/fhir/R4/Condition/c-1")

        assert response.status_code == 405
        assert "GET" in response.headers["allow"]
        assert json.loads(response.content)["issue"][0]["code"] == "not-supported"

    def test_error_body_falls_back_to_json(self, client):
        """Should answer 406 in FHIR JSON when nothing acceptable was asked for."""
        response = client.get(
            "/fhir/R4/Condition/86sgf-1f7d-4394-a316-0a458edf28c4",
            headers={"Accept": "text/html"},
        )

        assert response.status_code == 406
        assert response.headers["content-type"] == "application/fhir+json"

    def test_unhandled_error(self, seeded_store):
        """Should render unexpected failures as a 500 OperationOutcome."""
        from fhir_server.main import create_app

        app = create_app(store=seeded_store)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/boom")

        assert response.status_code == 500
        issue = json.loads(response.content)["issue"][0]
        assert issue["severity"] == "fatal"
        assert issue["code"] == "exception"
        assert "kaboom" not in issue["diagnostics"]
