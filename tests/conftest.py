"""
Shared pytest fixtures for FHIR server tests.
"""

import json
import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pytest

# Set test environment variables before importing fhir_server modules
os.environ["FHIR_SERVER_ONSET_TIMEZONE"] = "UTC"
os.environ["FHIR_SERVER_BASE_PATH"] = "/fhir/R4"
os.environ["FHIR_SERVER_SEED_DATA_PATH"] = ""
os.environ.setdefault("FHIR_SERVER_DEBUG", "true")
os.environ.setdefault("FHIR_SERVER_LOG_JSON", "false")

FIXTURES_DIR = Path(__file__).parent / "fixtures"

UTC = ZoneInfo("UTC")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings between tests to avoid state leakage."""
    from fhir_server.config.settings import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def seed_resources() -> list[dict[str, Any]]:
    """Condition resources the test store is seeded with."""
    return json.loads((FIXTURES_DIR / "conditions.json").read_text(encoding="utf-8"))


@pytest.fixture
def create_payload_json() -> str:
    """Raw JSON body used to create a Condition."""
    return (FIXTURES_DIR / "condition_create.json").read_text(encoding="utf-8")


@pytest.fixture
def create_payload(create_payload_json) -> dict[str, Any]:
    """Parsed Condition creation payload."""
    return json.loads(create_payload_json)


@pytest.fixture
def seeded_store(seed_resources):
    """A fresh in-memory store holding the seed conditions."""
    from fhir_server.store import InMemoryConditionStore

    return InMemoryConditionStore.from_resources(seed_resources, UTC)


@pytest.fixture
def app(seeded_store):
    """Application serving the seeded store."""
    from fhir_server.main import create_app

    return create_app(store=seeded_store)


@pytest.fixture
def client(app):
    """Create test client."""
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def sample_condition() -> dict[str, Any]:
    """A complete Condition resource as the server emits it."""
    return {
        "resourceType": "Condition",
        "id": "sample-condition-1",
        "clinicalStatus": {
            "coding": [
                {
                    "system": "http://terminology.hl7.org/CodeSystem/condition-clinical",
                    "code": "ACTIVE",
                }
            ]
        },
        "code": {
            "coding": [
                {"system": "http://snomed.info/sct", "code": "38341003", "display": "Hypertension"},
                {"code": "117399AAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"},
            ]
        },
        "subject": {"reference": "Patient/test-patient-123"},
        "onsetDateTime": "2019-04-02T09:00:00+00:00",
        "recordedDate": "2019-04-03T12:00:00+00:00",
    }
