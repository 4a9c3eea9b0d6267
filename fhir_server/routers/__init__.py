"""
API routers for the FHIR server.
"""

from fhir_server.routers.condition import router as condition_router
from fhir_server.routers.health import router as health_router
from fhir_server.routers.metadata import router as metadata_router

__all__ = [
    "condition_router",
    "health_router",
    "metadata_router",
]
