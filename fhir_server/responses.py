"""
Response builders for FHIR resources and OperationOutcomes.
"""

from typing import Any

from starlette.responses import Response

from fhir_server.constants import BUNDLE_TYPE_SEARCHSET, SEARCH_MODE_MATCH
from fhir_server.models.fhir import Bundle, BundleEntry, OperationOutcome, OperationOutcomeIssue
from fhir_server.negotiation import Negotiated, serialize


def fhir_response(
    resource: dict[str, Any],
    negotiated: Negotiated,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Response:
    """Serialize a resource in the negotiated format."""
    return Response(
        content=serialize(resource, negotiated.format),
        status_code=status_code,
        headers=headers,
        media_type=negotiated.media_type,
    )


def operation_outcome(issues: list[dict[str, Any]]) -> dict[str, Any]:
    """Build an OperationOutcome resource from issue dictionaries."""
    outcome = OperationOutcome(issue=[OperationOutcomeIssue(**issue) for issue in issues])
    return outcome.model_dump(exclude_none=True)


def searchset_bundle(
    resources: list[dict[str, Any]],
    total: int,
    base_url: str,
    self_url: str,
) -> dict[str, Any]:
    """
    Build a searchset Bundle.

    Args:
        resources: Matching resources for this page
        total: Number of matches across all pages
        base_url: URL that resource ids are appended to for ``fullUrl``
        self_url: The URL of the search request
    """
    base_url = base_url.rstrip("/")
    bundle = Bundle(
        type=BUNDLE_TYPE_SEARCHSET,
        total=total,
        link=[{"relation": "self", "url": self_url}],
        entry=[
            BundleEntry(
                fullUrl=f"{base_url}/{resource['id']}",
                resource=resource,
                search={"mode": SEARCH_MODE_MATCH},
            )
            for resource in resources
        ],
    )
    result = bundle.model_dump(exclude_none=True)
    if not result["entry"]:
        del result["entry"]
    return result
