"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from fhir_server import __version__
from fhir_server.routers.condition import get_condition_store
from fhir_server.store import ConditionStore

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    conditions_stored: int


@router.get("/health", response_model=HealthResponse)
async def health_check(store: ConditionStore = Depends(get_condition_store)) -> HealthResponse:
    """
    Health check endpoint.

    Returns the service status and basic information.
    """
    return HealthResponse(
        status="healthy",
        service="fhir-server",
        version=__version__,
        conditions_stored=await store.count(),
    )
