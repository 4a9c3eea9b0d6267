"""
Custom error types for the FHIR server.

Every error carries the HTTP status it maps to and the OperationOutcome
issue code it reports, so a single exception handler can shape any failure
into an OperationOutcome in the negotiated format.
"""

from typing import Any


class FHIRServerError(Exception):
    """Base exception for all FHIR server errors."""

    status_code: int = 500
    issue_code: str = "exception"
    severity: str = "error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def issues(self) -> list[dict[str, Any]]:
        """OperationOutcome issues describing this error."""
        return [
            {
                "severity": self.severity,
                "code": self.issue_code,
                "diagnostics": self.message,
            }
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Resource Errors


class ResourceNotFoundError(FHIRServerError):
    """Raised when a FHIR resource cannot be found."""

    status_code = 404
    issue_code = "not-found"

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"Resource {resource_type}/{resource_id} is not known"
        super().__init__(
            message,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ResourceConflictError(FHIRServerError):
    """Raised when a resource with the same id already exists."""

    status_code = 409
    issue_code = "duplicate"

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"Resource {resource_type}/{resource_id} already exists"
        super().__init__(
            message,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


# Request Errors


class InvalidRequestError(FHIRServerError):
    """Raised when a request or its payload cannot be parsed."""

    status_code = 400
    issue_code = "invalid"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message, details={"field": field} if field else None)


class UnprocessableEntityError(FHIRServerError):
    """Raised when a parsed resource fails validation."""

    status_code = 422
    issue_code = "processing"

    def __init__(self, resource_type: str, validation_errors: list[str]):
        self.resource_type = resource_type
        self.validation_errors = validation_errors
        message = f"Invalid {resource_type} resource"
        if validation_errors:
            message += f": {'; '.join(validation_errors)}"
        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "validation_errors": validation_errors,
            },
        )

    def issues(self) -> list[dict[str, Any]]:
        if not self.validation_errors:
            return super().issues()
        return [
            {"severity": self.severity, "code": self.issue_code, "diagnostics": error}
            for error in self.validation_errors
        ]


class MissingRequiredFieldError(UnprocessableEntityError):
    """Raised when a required resource element is missing."""

    issue_code = "required"

    def __init__(self, resource_type: str, field_name: str):
        self.field_name = field_name
        super().__init__(resource_type, [f"Missing required element '{field_name}'"])


# Content Negotiation Errors


class NotAcceptableError(FHIRServerError):
    """Raised when no supported response format matches the Accept header."""

    status_code = 406
    issue_code = "not-supported"

    def __init__(self, accept: str, supported: list[str]):
        self.accept = accept
        self.supported = supported
        message = f"Unsupported media type '{accept}'. Supported: {', '.join(supported)}"
        super().__init__(message, details={"accept": accept, "supported": supported})


class UnsupportedMediaTypeError(FHIRServerError):
    """Raised when a request body is sent in an unsupported format."""

    status_code = 415
    issue_code = "not-supported"

    def __init__(self, content_type: str | None, supported: list[str]):
        self.content_type = content_type
        self.supported = supported
        message = f"Unsupported content type '{content_type}'. Supported: {', '.join(supported)}"
        super().__init__(
            message,
            details={"content_type": content_type, "supported": supported},
        )


class PayloadTooLargeError(FHIRServerError):
    """Raised when a request body exceeds the configured limit."""

    status_code = 413
    issue_code = "too-long"

    def __init__(self, max_body_size: int):
        self.max_body_size = max_body_size
        super().__init__(
            f"Request body too large. Maximum size is {max_body_size} bytes.",
            details={"max_body_size": max_body_size},
        )


# Configuration Errors


class ConfigurationError(FHIRServerError):
    """Raised when there's a configuration error."""

    pass


class SeedDataError(ConfigurationError):
    """Raised when the seed dataset cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            f"Failed to load seed data from {path}: {reason}",
            details={"path": path, "reason": reason},
        )
