"""
Translation between stored Condition records and FHIR Condition resources.

Both directions are pure. Date-only values are promoted to midnight in an
explicitly supplied zone, never the zone of the host running the server.
"""

from datetime import date, datetime, time, tzinfo
from typing import Any

from pydantic import ValidationError

from fhir_server.constants import CONDITION, CONDITION_CLINICAL_STATUS_SYSTEM_URI, PATIENT
from fhir_server.errors import InvalidRequestError, MissingRequiredFieldError, UnprocessableEntityError
from fhir_server.models.condition import ClinicalStatus, Coding, ConditionRecord
from fhir_server.models.fhir import CodeableConcept, ConditionResource
from fhir_server.validation import RESOURCE_ID_PATTERN, normalize_reference


def promote_date(value: date | datetime, zone: tzinfo) -> datetime:
    """
    Turn a stored onset into an aware instant.

    A plain date becomes midnight of that day in ``zone``; a naive datetime is
    interpreted in ``zone``; an aware datetime is returned unchanged.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=zone)
    return datetime.combine(value, time.min, tzinfo=zone)


def parse_fhir_datetime(value: str, zone: tzinfo) -> datetime:
    """
    Parse a FHIR ``dateTime`` with day precision or finer.

    Raises:
        ValueError: If the value is not a date or date-time
    """
    value = value.strip()
    if len(value) == 10:
        return promote_date(date.fromisoformat(value), zone)
    if "T" not in value:
        raise ValueError(f"'{value}' is not a FHIR date or dateTime")
    return promote_date(datetime.fromisoformat(value), zone)


def format_fhir_datetime(value: datetime) -> str:
    """
    Render an aware datetime as a FHIR ``dateTime`` with offset.

    Fractions are written to the precision they carry, so the wire form
    keeps every digit the record holds.
    """
    if not value.microsecond:
        timespec = "seconds"
    elif value.microsecond % 1000:
        timespec = "microseconds"
    else:
        timespec = "milliseconds"
    return value.isoformat(timespec=timespec)


def to_wire(record: ConditionRecord) -> dict[str, Any]:
    """Map a stored record to a FHIR Condition resource."""
    resource: dict[str, Any] = {"resourceType": CONDITION}

    if record.id:
        resource["id"] = record.id

    if record.clinical_status is not None:
        resource["clinicalStatus"] = {
            "coding": [
                {
                    "system": CONDITION_CLINICAL_STATUS_SYSTEM_URI,
                    "code": record.clinical_status.value,
                }
            ]
        }

    if record.codes:
        resource["code"] = {
            "coding": [coding.model_dump(exclude_none=True) for coding in record.codes]
        }

    resource["subject"] = {"reference": record.subject_reference}

    if record.onset is not None:
        resource["onsetDateTime"] = format_fhir_datetime(record.onset)

    if record.recorded_date is not None:
        resource["recordedDate"] = format_fhir_datetime(record.recorded_date)

    return resource


def _format_validation_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}"


def _clinical_status(concept: CodeableConcept, errors: list[str]) -> ClinicalStatus | None:
    if not concept.coding:
        return None

    for coding in concept.coding:
        if coding.system != CONDITION_CLINICAL_STATUS_SYSTEM_URI:
            continue
        if not coding.code:
            errors.append("clinicalStatus.coding.code: missing")
            return None
        try:
            return ClinicalStatus.from_code(coding.code)
        except ValueError as e:
            errors.append(f"clinicalStatus.coding.code: {e}")
            return None

    errors.append(
        f"clinicalStatus.coding: no coding uses system {CONDITION_CLINICAL_STATUS_SYSTEM_URI}"
    )
    return None


def _codes(concept: CodeableConcept | None, errors: list[str]) -> list[Coding]:
    if concept is None:
        return []

    codes = []
    for index, coding in enumerate(concept.coding):
        if not coding.code:
            errors.append(f"code.coding[{index}].code: missing")
            continue
        codes.append(Coding(system=coding.system, code=coding.code, display=coding.display))
    return codes


def _timestamp(name: str, value: str | None, zone: tzinfo, errors: list[str]) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_fhir_datetime(value, zone)
    except ValueError:
        errors.append(f"{name}: invalid dateTime '{value}'")
        return None


def from_wire(payload: Any, zone: tzinfo) -> ConditionRecord:
    """
    Map an inbound FHIR Condition resource to a record.

    Args:
        payload: Parsed resource body
        zone: Zone applied to date-only or naive timestamps

    Raises:
        InvalidRequestError: If the payload is not a Condition resource
        MissingRequiredFieldError: If the subject reference is absent
        UnprocessableEntityError: If any element holds an invalid value
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a FHIR resource", field="resourceType")

    resource_type = payload.get("resourceType")
    if resource_type != CONDITION:
        raise InvalidRequestError(
            f"Resource type mismatch: expected '{CONDITION}' but resource has '{resource_type}'",
            field="resourceType",
        )

    try:
        resource = ConditionResource.model_validate(payload)
    except ValidationError as e:
        raise UnprocessableEntityError(
            CONDITION, [_format_validation_error(error) for error in e.errors()]
        ) from e

    if resource.subject is None or not resource.subject.reference:
        raise MissingRequiredFieldError(CONDITION, "subject.reference")

    errors: list[str] = []

    if resource.id and not RESOURCE_ID_PATTERN.match(resource.id):
        errors.append(f"id: invalid resource id '{resource.id}'")

    subject_reference = normalize_reference(resource.subject.reference, PATIENT)
    if subject_reference is None:
        errors.append(f"subject.reference: '{resource.subject.reference}' is not a Patient reference")

    clinical_status = None
    if resource.clinicalStatus is not None:
        clinical_status = _clinical_status(resource.clinicalStatus, errors)

    codes = _codes(resource.code, errors)
    onset = _timestamp("onsetDateTime", resource.onsetDateTime, zone, errors)
    recorded_date = _timestamp("recordedDate", resource.recordedDate, zone, errors)

    if errors:
        raise UnprocessableEntityError(CONDITION, errors)

    return ConditionRecord(
        id=resource.id or None,
        clinical_status=clinical_status,
        onset=onset,
        subject_reference=subject_reference,
        codes=codes,
        recorded_date=recorded_date,
    )
