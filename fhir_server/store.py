"""
Condition storage.

The store is the only shared mutable state in the server. Inserts are
serialized so concurrently created records always receive distinct ids.
"""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

from fhir_server.config.logging import get_logger
from fhir_server.constants import CONDITION
from fhir_server.errors import FHIRServerError, ResourceConflictError, SeedDataError
from fhir_server.mapper import from_wire
from fhir_server.models.condition import ConditionRecord
from fhir_server.search import ConditionSearchCriteria

logger = get_logger(__name__)


class ConditionStore(ABC):
    """Abstract base class for Condition storage backends."""

    @abstractmethod
    async def get(self, condition_id: str) -> ConditionRecord | None:
        """Get a record by id, or None if unknown."""
        ...

    @abstractmethod
    async def create(self, record: ConditionRecord) -> ConditionRecord:
        """Insert a record, assigning an id if it has none. Returns the stored record."""
        ...

    @abstractmethod
    async def seed(self, records: Iterable[ConditionRecord]) -> None:
        """
        Insert records exactly as given, without assigning ids or stamping dates.

        Raises:
            ValueError: If a record has no id or its id is already stored
        """
        ...

    @abstractmethod
    async def search(self, criteria: ConditionSearchCriteria) -> list[ConditionRecord]:
        """Get all records matching the criteria, ordered by id."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Number of stored records."""
        ...


class InMemoryConditionStore(ConditionStore):
    """In-memory Condition storage for development and testing."""

    def __init__(self, records: Iterable[ConditionRecord] = ()):
        self._records: dict[str, ConditionRecord] = {}
        self._lock = asyncio.Lock()
        self._insert_seed(records)

    def _insert_seed(self, records: Iterable[ConditionRecord]) -> None:
        for record in records:
            if not record.id:
                raise ValueError("Seeded records must carry an id")
            if record.id in self._records:
                raise ValueError(f"Duplicate seeded id '{record.id}'")
            self._records[record.id] = record

    @classmethod
    def from_resources(
        cls, resources: Iterable[dict[str, Any]], zone: tzinfo
    ) -> "InMemoryConditionStore":
        """Build a store seeded from FHIR Condition resources."""
        return cls(from_wire(resource, zone) for resource in resources)

    async def get(self, condition_id: str) -> ConditionRecord | None:
        return self._records.get(condition_id)

    async def create(self, record: ConditionRecord) -> ConditionRecord:
        async with self._lock:
            if record.id:
                if record.id in self._records:
                    raise ResourceConflictError(CONDITION, record.id)
                condition_id = record.id
            else:
                condition_id = str(uuid.uuid4())
                while condition_id in self._records:
                    condition_id = str(uuid.uuid4())

            update: dict[str, Any] = {"id": condition_id}
            if record.recorded_date is None:
                update["recorded_date"] = datetime.now(timezone.utc).replace(microsecond=0)

            stored = record.model_copy(update=update)
            self._records[condition_id] = stored

        logger.debug("Stored condition", condition_id=condition_id)
        return stored

    async def seed(self, records: Iterable[ConditionRecord]) -> None:
        async with self._lock:
            self._insert_seed(records)

    async def search(self, criteria: ConditionSearchCriteria) -> list[ConditionRecord]:
        return [
            self._records[condition_id]
            for condition_id in sorted(self._records)
            if criteria.matches(self._records[condition_id])
        ]

    async def count(self) -> int:
        return len(self._records)


def load_seed_file(path: str | Path, zone: tzinfo) -> list[ConditionRecord]:
    """
    Load Condition records from a JSON file.

    The file holds either a JSON array of Condition resources or a Bundle
    whose entries carry them.

    Raises:
        SeedDataError: If the file is missing, malformed, or holds invalid resources
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SeedDataError(str(path), str(e)) from e
    except json.JSONDecodeError as e:
        raise SeedDataError(str(path), f"invalid JSON: {e}") from e

    if isinstance(data, dict) and data.get("resourceType") == "Bundle":
        data = [entry.get("resource") for entry in data.get("entry", [])]

    if not isinstance(data, list):
        raise SeedDataError(str(path), "expected a JSON array or a Bundle")

    records = []
    for index, resource in enumerate(data):
        try:
            record = from_wire(resource, zone)
        except FHIRServerError as e:
            raise SeedDataError(str(path), f"entry {index}: {e.message}") from e
        if not record.id:
            raise SeedDataError(str(path), f"entry {index}: missing id")
        records.append(record)

    logger.info("Loaded seed conditions", path=str(path), count=len(records))
    return records
