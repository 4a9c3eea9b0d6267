"""
CapabilityStatement endpoint.
"""

from fastapi import APIRouter, Request
from starlette.responses import Response

from fhir_server import __version__
from fhir_server.constants import CAPABILITY_STATEMENT, CONDITION, FHIR_VERSION
from fhir_server.negotiation import MEDIA_TYPE_FORMATS, negotiate_request
from fhir_server.responses import fhir_response

router = APIRouter(tags=["metadata"])

# (name, type) pairs understood by GET /Condition
CONDITION_SEARCH_PARAMS = (
    ("_id", "token"),
    ("clinical-status", "token"),
    ("code", "token"),
    ("onset-date", "date"),
    ("patient", "reference"),
    ("subject", "reference"),
)


def capability_statement(base_url: str) -> dict:
    """Describe what this server supports."""
    return {
        "resourceType": CAPABILITY_STATEMENT,
        "status": "active",
        "kind": "instance",
        "software": {"name": "fhir-server", "version": __version__},
        "implementation": {"description": "FHIR R4 Condition server", "url": base_url},
        "fhirVersion": FHIR_VERSION,
        "format": sorted(MEDIA_TYPE_FORMATS),
        "rest": [
            {
                "mode": "server",
                "resource": [
                    {
                        "type": CONDITION,
                        "interaction": [
                            {"code": "read"},
                            {"code": "create"},
                            {"code": "search-type"},
                        ],
                        "searchParam": [
                            {"name": name, "type": param_type}
                            for name, param_type in CONDITION_SEARCH_PARAMS
                        ],
                    }
                ],
            }
        ],
    }


@router.get("/metadata", name="metadata")
async def get_metadata(request: Request) -> Response:
    """Return the server's CapabilityStatement."""
    negotiated = negotiate_request(request)
    base_url = str(request.url_for("metadata")).removesuffix("/metadata")
    return fhir_response(capability_statement(base_url), negotiated)
