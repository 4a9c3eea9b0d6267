"""
Input validation for the FHIR server.

Provides validation functions for resource ids, references and paging inputs.
"""

import re

from fhir_server.errors import InvalidRequestError

# Validation patterns
RESOURCE_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-\.]{1,64}$")
REFERENCE_PATTERN = re.compile(r"^(?:.*/)?(?P<type>[A-Z][A-Za-z]+)/(?P<id>[A-Za-z0-9\-\.]{1,64})$")


def validate_resource_id(resource_id: str) -> str:
    """
    Validate FHIR resource ID format.

    Args:
        resource_id: Resource ID string to validate

    Returns:
        The validated resource ID

    Raises:
        InvalidRequestError: If format is invalid
    """
    if not resource_id:
        raise InvalidRequestError("Resource ID is required", field="id")

    if not RESOURCE_ID_PATTERN.match(resource_id):
        raise InvalidRequestError(
            f"Invalid resource ID '{resource_id}'. "
            f"Must be 1-64 characters with letters, digits, hyphens, and dots.",
            field="id",
        )

    return resource_id


def normalize_reference(reference: str, resource_type: str) -> str | None:
    """
    Reduce a relative or absolute reference to ``<type>/<id>`` form.

    Args:
        reference: Reference string, e.g. ``Patient/123`` or ``http://host/fhir/Patient/123``
        resource_type: The resource type the reference must point at

    Returns:
        The normalized reference, or None if it does not point at ``resource_type``
    """
    match = REFERENCE_PATTERN.match(reference.strip())
    if not match or match.group("type") != resource_type:
        return None
    return f"{resource_type}/{match.group('id')}"


def validate_count(value: str, default: int, maximum: int) -> int:
    """
    Validate the ``_count`` search parameter.

    Values above ``maximum`` are clamped rather than rejected.

    Raises:
        InvalidRequestError: If the value is not a non-negative integer
    """
    if value == "":
        return default
    try:
        count = int(value)
    except ValueError:
        raise InvalidRequestError(f"Invalid _count '{value}'. Must be an integer.", field="_count")
    if count < 0:
        raise InvalidRequestError(f"Invalid _count '{value}'. Must not be negative.", field="_count")
    return min(count, maximum)
