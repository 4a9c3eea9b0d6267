"""
Pydantic models for FHIR wire resources.
"""

from typing import Any

from pydantic import BaseModel, Field


class FHIRCoding(BaseModel):
    """A FHIR Coding element."""

    system: str | None = Field(default=None)
    code: str | None = Field(default=None)
    display: str | None = Field(default=None)

    model_config = {"extra": "allow"}


class CodeableConcept(BaseModel):
    """A FHIR CodeableConcept element."""

    coding: list[FHIRCoding] = Field(default_factory=list)
    text: str | None = Field(default=None)

    model_config = {"extra": "allow"}


class Reference(BaseModel):
    """A FHIR Reference element."""

    reference: str | None = Field(default=None)
    display: str | None = Field(default=None)

    model_config = {"extra": "allow"}


class ConditionResource(BaseModel):
    """Inbound Condition resource, validated before mapping to a record."""

    resourceType: str = Field(default="Condition")
    id: str | None = Field(default=None)
    clinicalStatus: CodeableConcept | None = Field(default=None)
    code: CodeableConcept | None = Field(default=None)
    subject: Reference | None = Field(default=None)
    onsetDateTime: str | None = Field(default=None)
    recordedDate: str | None = Field(default=None)

    model_config = {"extra": "allow"}


class BundleEntry(BaseModel):
    """A single entry in a FHIR Bundle."""

    fullUrl: str | None = Field(default=None)
    resource: dict[str, Any] | None = Field(default=None)
    search: dict[str, Any] | None = Field(default=None)


class Bundle(BaseModel):
    """FHIR Bundle response."""

    resourceType: str = Field(default="Bundle")
    type: str = Field(description="Bundle type (searchset, batch, etc.)")
    total: int | None = Field(default=None, description="Total matching resources")
    link: list[dict[str, str]] | None = Field(default=None, description="Paging links")
    entry: list[BundleEntry] = Field(default_factory=list, description="Bundle entries")


class OperationOutcomeIssue(BaseModel):
    """A single issue in an OperationOutcome."""

    severity: str = Field(description="fatal | error | warning | information")
    code: str = Field(description="Issue type code")
    diagnostics: str | None = Field(default=None, description="Additional diagnostic info")


class OperationOutcome(BaseModel):
    """FHIR OperationOutcome for error responses."""

    resourceType: str = Field(default="OperationOutcome")
    issue: list[OperationOutcomeIssue] = Field(min_length=1, description="List of issues")
