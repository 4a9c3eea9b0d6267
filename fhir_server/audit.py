"""
Audit logging for resource access.

Records who touched which Condition and whether it succeeded, on a
dedicated ``fhir.audit`` logger so audit events can be routed separately.
"""

import logging
from typing import Any

import structlog

_audit_logger = structlog.wrap_logger(
    logging.getLogger("fhir.audit"),
    wrapper_class=structlog.stdlib.BoundLogger,
)


class AuditEvent:
    """Constants for audit event types."""

    # Resource access events
    RESOURCE_READ = "resource.read"
    RESOURCE_SEARCH = "resource.search"
    RESOURCE_CREATE = "resource.create"

    # Data lifecycle events
    SEED_LOAD = "data.seed_load"


# Sanitization limits
MAX_STRING_LENGTH = 500
MAX_LIST_ITEMS = 10

# Fields that can be large or carry free text about the patient
SENSITIVE_FIELDS = frozenset({"text", "note", "evidence", "extension"})


def sanitize_resource_for_audit(resource: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize a FHIR resource for audit logging.

    Redacts narrative and free-text fields, truncates long strings and
    caps list lengths.

    Args:
        resource: FHIR resource dict

    Returns:
        Sanitized copy of the resource
    """
    if not resource:
        return {}

    def sanitize_value(value: Any, key: str = "") -> Any:
        if key in SENSITIVE_FIELDS:
            return "[REDACTED]"
        if isinstance(value, str):
            if len(value) > MAX_STRING_LENGTH:
                return value[:MAX_STRING_LENGTH] + f"...[truncated {len(value) - MAX_STRING_LENGTH} chars]"
            return value
        if isinstance(value, dict):
            return {k: sanitize_value(v, k) for k, v in value.items()}
        if isinstance(value, list):
            if len(value) > MAX_LIST_ITEMS:
                return [sanitize_value(item) for item in value[:MAX_LIST_ITEMS]] + [
                    f"...[{len(value) - MAX_LIST_ITEMS} more items]"
                ]
            return [sanitize_value(item) for item in value]
        return value

    return sanitize_value(resource)


def audit_log(
    event: str,
    *,
    resource_type: str | None = None,
    resource_id: str | None = None,
    success: bool = True,
    error: str | None = None,
    details: dict[str, Any] | None = None,
    new_state: dict[str, Any] | None = None,
) -> None:
    """
    Log an audit event.

    Args:
        event: Event type from AuditEvent constants
        resource_type: Optional FHIR resource type
        resource_id: Optional resource ID
        success: Whether the operation succeeded
        error: Optional error message if failed
        details: Optional additional details
        new_state: Resource state after a create
    """
    log_data: dict[str, Any] = {
        "audit_event": event,
        "success": success,
    }

    if resource_type:
        log_data["resource_type"] = resource_type
    if resource_id:
        log_data["resource_id"] = resource_id
    if error:
        log_data["error"] = error
    if details:
        log_data["details"] = details
    if new_state:
        log_data["new_state"] = sanitize_resource_for_audit(new_state)

    if success:
        _audit_logger.info(event, **log_data)
    else:
        _audit_logger.warning(event, **log_data)
