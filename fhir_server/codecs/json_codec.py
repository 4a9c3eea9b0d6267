"""
FHIR JSON encoding.
"""

import json
from typing import Any

from fhir_server.errors import InvalidRequestError


def dumps(resource: dict[str, Any]) -> bytes:
    """Serialize a resource to UTF-8 JSON."""
    return json.dumps(resource, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def loads(body: bytes | str) -> dict[str, Any]:
    """
    Parse a JSON resource body.

    Raises:
        InvalidRequestError: If the body is not a JSON object with a resourceType
    """
    try:
        resource = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError(f"Unable to parse JSON payload: {e}") from e

    if not isinstance(resource, dict) or "resourceType" not in resource:
        raise InvalidRequestError("JSON payload is not a FHIR resource", field="resourceType")

    return resource
