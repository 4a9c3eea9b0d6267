"""
Pydantic models for the FHIR server.

This module contains models for:
- Condition records held by the store
- FHIR wire resources (Condition, Bundle, OperationOutcome)
"""

from fhir_server.models.condition import ClinicalStatus, Coding, ConditionRecord
from fhir_server.models.fhir import (
    Bundle,
    BundleEntry,
    CodeableConcept,
    ConditionResource,
    FHIRCoding,
    OperationOutcome,
    OperationOutcomeIssue,
    Reference,
)

__all__ = [
    "ClinicalStatus",
    "Coding",
    "ConditionRecord",
    "Bundle",
    "BundleEntry",
    "CodeableConcept",
    "ConditionResource",
    "FHIRCoding",
    "OperationOutcome",
    "OperationOutcomeIssue",
    "Reference",
]
