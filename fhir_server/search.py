"""
Condition search parameters.

Each occurrence of a parameter becomes a clause; clauses are AND-ed and the
comma-separated values inside one clause are OR-ed, as FHIR search defines.

Supported parameters:
- ``_id``: resource id
- ``subject`` / ``patient``: ``Patient/<id>`` or a bare patient id
- ``clinical-status``: clinical status code
- ``code``: ``<code>`` or ``<system>|<code>``
- ``onset-date``: date with optional ``eq``/``ne``/``gt``/``ge``/``lt``/``le`` prefix
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, timezone, tzinfo
from typing import Any

from fhir_server.constants import PATIENT
from fhir_server.errors import InvalidRequestError
from fhir_server.models.condition import ClinicalStatus, ConditionRecord
from fhir_server.validation import RESOURCE_ID_PATTERN, normalize_reference, validate_count

CONTROL_PARAMETERS = frozenset({"_format", "_count"})

DATE_PREFIXES = ("eq", "ne", "gt", "ge", "lt", "le")

_DATE_COMPARATORS: dict[str, Callable[[date, date], bool]] = {
    "eq": lambda actual, expected: actual == expected,
    "ne": lambda actual, expected: actual != expected,
    "gt": lambda actual, expected: actual > expected,
    "ge": lambda actual, expected: actual >= expected,
    "lt": lambda actual, expected: actual < expected,
    "le": lambda actual, expected: actual <= expected,
}


@dataclass(frozen=True)
class DateBound:
    """A prefixed date comparison, e.g. ``ge2008-01-01``."""

    prefix: str
    value: date

    def matches(self, actual: date) -> bool:
        return _DATE_COMPARATORS[self.prefix](actual, self.value)


@dataclass(frozen=True)
class SearchClause:
    """One occurrence of a search parameter; matches if any value matches."""

    parameter: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class ConditionSearchCriteria:
    """Parsed Condition search."""

    clauses: tuple[SearchClause, ...] = ()
    zone: tzinfo = field(default=timezone.utc)

    def matches(self, record: ConditionRecord) -> bool:
        """Whether a record satisfies every clause."""
        return all(
            any(self._matches_value(clause.parameter, value, record) for value in clause.values)
            for clause in self.clauses
        )

    def _matches_value(self, parameter: str, value: Any, record: ConditionRecord) -> bool:
        if parameter == "_id":
            return record.id == value
        if parameter == "subject":
            return record.subject_reference == value
        if parameter == "clinical-status":
            return record.clinical_status == value
        if parameter == "code":
            system, code = value
            return record.has_code(code, system)
        if parameter == "onset-date":
            if record.onset is None:
                return False
            return value.matches(record.onset.astimezone(self.zone).date())
        return False


def _parse_id(raw: str) -> str:
    if not RESOURCE_ID_PATTERN.match(raw):
        raise InvalidRequestError(f"Invalid _id '{raw}'", field="_id")
    return raw


def _parse_subject(raw: str) -> str:
    reference = raw if "/" in raw else f"{PATIENT}/{raw}"
    normalized = normalize_reference(reference, PATIENT)
    if normalized is None:
        raise InvalidRequestError(f"Invalid patient reference '{raw}'", field="subject")
    return normalized


def _parse_clinical_status(raw: str) -> ClinicalStatus:
    code = raw.rsplit("|", 1)[-1]
    try:
        return ClinicalStatus.from_code(code)
    except ValueError as e:
        raise InvalidRequestError(str(e), field="clinical-status") from e


def _parse_code(raw: str) -> tuple[str | None, str]:
    if "|" in raw:
        system, code = raw.split("|", 1)
        return (system or None, code)
    return (None, raw)


def _parse_date_bound(raw: str) -> DateBound:
    prefix = "eq"
    if raw[:2] in DATE_PREFIXES:
        prefix, raw = raw[:2], raw[2:]
    try:
        return DateBound(prefix, date.fromisoformat(raw[:10]))
    except ValueError as e:
        raise InvalidRequestError(f"Invalid onset-date '{raw}'", field="onset-date") from e


_VALUE_PARSERS: dict[str, Callable[[str], Any]] = {
    "_id": _parse_id,
    "subject": _parse_subject,
    "patient": _parse_subject,
    "clinical-status": _parse_clinical_status,
    "code": _parse_code,
    "onset-date": _parse_date_bound,
}

# "patient" is an alias of "subject" for Conditions
_CANONICAL_NAMES = {"patient": "subject"}

SUPPORTED_PARAMETERS = tuple(sorted(_VALUE_PARSERS))


def parse_search_params(
    params: Iterable[tuple[str, str]],
    zone: tzinfo,
    default_count: int,
    max_count: int,
) -> tuple[ConditionSearchCriteria, int]:
    """
    Parse query parameters into search criteria and a page size.

    Args:
        params: Query parameters as (name, value) pairs, repeats allowed
        zone: Zone in which onset instants are compared against dates
        default_count: Page size when ``_count`` is absent
        max_count: Upper bound for ``_count``

    Returns:
        Tuple of (criteria, count)

    Raises:
        InvalidRequestError: On unknown parameters or malformed values
    """
    clauses: list[SearchClause] = []
    count = default_count

    for name, raw in params:
        if name == "_count":
            count = validate_count(raw, default_count, max_count)
            continue
        if name in CONTROL_PARAMETERS:
            continue

        parser = _VALUE_PARSERS.get(name)
        if parser is None:
            raise InvalidRequestError(
                f"Unknown search parameter '{name}'. "
                f"Supported: {', '.join(SUPPORTED_PARAMETERS)}",
                field=name,
            )

        values = tuple(parser(value.strip()) for value in raw.split(",") if value.strip())
        if not values:
            raise InvalidRequestError(f"Search parameter '{name}' has no value", field=name)
        clauses.append(SearchClause(_CANONICAL_NAMES.get(name, name), values))

    return ConditionSearchCriteria(clauses=tuple(clauses), zone=zone), count
