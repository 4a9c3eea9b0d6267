"""
Internal Condition record held by the resource store.
"""

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

SUBJECT_REFERENCE_PATTERN = re.compile(r"^Patient/[A-Za-z0-9\-\.]{1,64}$")


class ClinicalStatus(str, Enum):
    """Clinical status codes from the condition-clinical code system."""

    ACTIVE = "ACTIVE"
    RECURRENCE = "RECURRENCE"
    RELAPSE = "RELAPSE"
    INACTIVE = "INACTIVE"
    REMISSION = "REMISSION"
    RESOLVED = "RESOLVED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_code(cls, code: str) -> "ClinicalStatus":
        """Look up a status by code, ignoring case."""
        try:
            return cls(code.upper())
        except ValueError:
            raise ValueError(f"Unknown clinical status code '{code}'")


class Coding(BaseModel):
    """A (system, code) pair identifying a diagnosis."""

    model_config = ConfigDict(frozen=True)

    system: str | None = None
    code: str
    display: str | None = None


class ConditionRecord(BaseModel):
    """A patient's condition as persisted by the store."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    clinical_status: ClinicalStatus | None = None
    onset: datetime | None = None
    subject_reference: str
    codes: tuple[Coding, ...] = Field(default_factory=tuple)
    recorded_date: datetime | None = None

    @field_validator("subject_reference")
    @classmethod
    def validate_subject_reference(cls, value: str) -> str:
        if not SUBJECT_REFERENCE_PATTERN.match(value):
            raise ValueError(f"Subject reference '{value}' must have the form Patient/<id>")
        return value

    @field_validator("onset", "recorded_date")
    @classmethod
    def require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            raise ValueError("Timestamps must carry a time zone")
        return value

    @property
    def subject_id(self) -> str:
        """The patient id the subject reference points at."""
        return self.subject_reference.split("/", 1)[1]

    def has_code(self, code: str, system: str | None = None) -> bool:
        """Whether any diagnosis coding matches, optionally within a system."""
        return any(
            coding.code == code and (system is None or coding.system == system)
            for coding in self.codes
        )
