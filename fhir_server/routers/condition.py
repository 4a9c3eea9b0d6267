"""
Condition resource provider.

Provides FHIR interactions for Condition:
- GET  /Condition/{id} - Read
- POST /Condition      - Create
- GET  /Condition      - Search
"""

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from fhir_server.audit import AuditEvent, audit_log
from fhir_server.config.logging import bind_resource, get_logger
from fhir_server.config.settings import Settings, get_settings
from fhir_server.constants import CONDITION
from fhir_server.errors import InvalidRequestError, ResourceNotFoundError
from fhir_server.mapper import from_wire, to_wire
from fhir_server.negotiation import negotiate_request, parse, select_body_format
from fhir_server.responses import fhir_response, searchset_bundle
from fhir_server.search import parse_search_params
from fhir_server.store import ConditionStore
from fhir_server.validation import validate_resource_id

logger = get_logger(__name__)

router = APIRouter(tags=["Condition"])


def get_condition_store(request: Request) -> ConditionStore:
    """Resolve the store attached to the running application."""
    return request.app.state.condition_store


@router.get("/Condition/{condition_id}", name="read_condition")
async def read_condition(
    condition_id: str,
    request: Request,
    store: ConditionStore = Depends(get_condition_store),
) -> Response:
    """
    Read a Condition by id.

    Args:
        condition_id: Logical id of the Condition
    """
    negotiated = negotiate_request(request)
    validate_resource_id(condition_id)
    bind_resource(CONDITION, condition_id)

    record = await store.get(condition_id)
    if record is None:
        audit_log(
            AuditEvent.RESOURCE_READ,
            resource_type=CONDITION,
            resource_id=condition_id,
            success=False,
            error="not found",
        )
        raise ResourceNotFoundError(CONDITION, condition_id)

    audit_log(AuditEvent.RESOURCE_READ, resource_type=CONDITION, resource_id=condition_id)

    return fhir_response(to_wire(record), negotiated)


@router.post("/Condition", name="create_condition", status_code=201)
async def create_condition(
    request: Request,
    store: ConditionStore = Depends(get_condition_store),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Create a Condition from a JSON or XML body.

    The server assigns an id when the payload carries none. Responds with
    201, a Location header pointing at the new resource, and the resource
    as stored.
    """
    bind_resource(CONDITION)
    negotiated = negotiate_request(request)
    body_format = select_body_format(request.headers.get("content-type"))

    body = await request.body()
    if not body.strip():
        raise InvalidRequestError("Request body is empty")

    payload = parse(body, body_format)
    record = from_wire(payload, settings.onset_zone)
    created = await store.create(record)
    bind_resource(CONDITION, created.id)

    resource = to_wire(created)
    location = str(request.url_for("read_condition", condition_id=created.id))

    audit_log(
        AuditEvent.RESOURCE_CREATE,
        resource_type=CONDITION,
        resource_id=created.id,
        new_state=resource,
    )
    logger.info("Created condition", condition_id=created.id, subject=created.subject_reference)

    return fhir_response(resource, negotiated, status_code=201, headers={"Location": location})


@router.get("/Condition", name="search_conditions")
async def search_conditions(
    request: Request,
    store: ConditionStore = Depends(get_condition_store),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Search Conditions.

    All query parameters are interpreted as FHIR search parameters; see
    ``fhir_server.search`` for the supported set. Returns a searchset Bundle.
    """
    bind_resource(CONDITION)
    negotiated = negotiate_request(request)

    criteria, count = parse_search_params(
        request.query_params.multi_items(),
        zone=settings.onset_zone,
        default_count=settings.default_count,
        max_count=settings.max_count,
    )
    matches = await store.search(criteria)

    bundle = searchset_bundle(
        [to_wire(record) for record in matches[:count]],
        total=len(matches),
        base_url=str(request.url_for("search_conditions")),
        self_url=str(request.url),
    )

    audit_log(
        AuditEvent.RESOURCE_SEARCH,
        resource_type=CONDITION,
        details={"total": len(matches), "returned": min(count, len(matches))},
    )

    return fhir_response(bundle, negotiated)
