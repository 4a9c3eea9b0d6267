"""
Tests for Condition storage.
"""

import asyncio
import json
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from fhir_server.errors import ResourceConflictError, SeedDataError
from fhir_server.models.condition import ConditionRecord
from fhir_server.search import parse_search_params
from fhir_server.store import InMemoryConditionStore, load_seed_file

UTC = ZoneInfo("UTC")


def new_record(**kwargs) -> ConditionRecord:
    return ConditionRecord(subject_reference="Patient/p-1", **kwargs)


class TestInMemoryConditionStore:
    """Tests for InMemoryConditionStore."""

    @pytest.mark.asyncio
    async def test_get_seeded(self, seeded_store):
        """Should return seeded records by id."""
        record = await seeded_store.get("86sgf-1f7d-4394-a316-0a458edf28c4")

        assert record is not None
        assert record.subject_id == "da7f524f-27ce-4bb2-86d6-6d1d05312bd5"

    @pytest.mark.asyncio
    async def test_get_unknown(self, seeded_store):
        """Should return None for unknown ids."""
        assert await seeded_store.get("950d965d-a935-429f-945f-75a502a90188") is None

    @pytest.mark.asyncio
    async def test_create_assigns_id(self):
        """Should assign a fresh id when the record has none."""
        store = InMemoryConditionStore()

        created = await store.create(new_record())

        assert created.id
        assert await store.get(created.id) == created

    @pytest.mark.asyncio
    async def test_create_keeps_id(self):
        """Should keep a client-supplied id."""
        store = InMemoryConditionStore()

        created = await store.create(new_record(id="given-id"))

        assert created.id == "given-id"

    @pytest.mark.asyncio
    async def test_create_duplicate_id(self, seeded_store):
        """Should refuse to overwrite an existing record."""
        with pytest.raises(ResourceConflictError):
            await seeded_store.create(new_record(id="86sgf-1f7d-4394-a316-0a458edf28c4"))

    @pytest.mark.asyncio
    async def test_create_stamps_recorded_date(self):
        """Should set recorded_date when absent and keep it when present."""
        store = InMemoryConditionStore()
        recorded = datetime(2020, 1, 1, tzinfo=timezone.utc)

        stamped = await store.create(new_record())
        kept = await store.create(new_record(recorded_date=recorded))

        assert stamped.recorded_date is not None
        assert kept.recorded_date == recorded

    @pytest.mark.asyncio
    async def test_create_does_not_mutate_input(self):
        """Should leave the caller's record untouched."""
        store = InMemoryConditionStore()
        record = new_record()

        await store.create(record)

        assert record.id is None

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_unique_ids(self):
        """Should never hand out the same id twice."""
        store = InMemoryConditionStore()

        created = await asyncio.gather(*(store.create(new_record()) for _ in range(200)))

        assert len({record.id for record in created}) == 200
        assert await store.count() == 200

    @pytest.mark.asyncio
    async def test_search_ordered_by_id(self, seeded_store):
        """Should return matches ordered by id."""
        criteria, _ = parse_search_params([], UTC, 50, 100)

        results = await seeded_store.search(criteria)

        assert [record.id for record in results] == sorted(record.id for record in results)
        assert len(results) == 3

    def test_seeded_records_need_ids(self):
        """Should refuse seed records without ids."""
        with pytest.raises(ValueError):
            InMemoryConditionStore([new_record()])

    def test_seeded_records_unique(self):
        """Should refuse duplicate seed ids as a configuration error."""
        with pytest.raises(ValueError, match="Duplicate seeded id 'a'"):
            InMemoryConditionStore([new_record(id="a"), new_record(id="a")])

    @pytest.mark.asyncio
    async def test_seed_keeps_records_as_given(self):
        """Should store seed records without stamping recorded_date."""
        store = InMemoryConditionStore()

        await store.seed([new_record(id="a")])

        stored = await store.get("a")
        assert stored == new_record(id="a")
        assert stored.recorded_date is None

    @pytest.mark.asyncio
    async def test_seed_rejects_stored_id(self, seeded_store):
        """Should refuse seed records whose id is already stored."""
        with pytest.raises(ValueError):
            await seeded_store.seed([new_record(id="86sgf-1f7d-4394-a316-0a458edf28c4")])


class TestLoadSeedFile:
    """Tests for load_seed_file."""

    def test_loads_array(self, tmp_path, seed_resources):
        """Should load a JSON array of Conditions."""
        path = tmp_path / "seed.json"
        path.write_text(json.dumps(seed_resources))

        records = load_seed_file(path, UTC)

        assert [record.id for record in records] == [r["id"] for r in seed_resources]

    def test_loads_bundle(self, tmp_path, seed_resources):
        """Should unwrap Bundle entries."""
        path = tmp_path / "seed.json"
        bundle = {
            "resourceType": "Bundle",
            "type": "collection",
            "entry": [{"resource": resource} for resource in seed_resources],
        }
        path.write_text(json.dumps(bundle))

        assert len(load_seed_file(path, UTC)) == 3

    def test_missing_file(self, tmp_path):
        """Should raise SeedDataError for a missing file."""
        with pytest.raises(SeedDataError):
            load_seed_file(tmp_path / "missing.json", UTC)

    def test_invalid_json(self, tmp_path):
        """Should raise SeedDataError for malformed JSON."""
        path = tmp_path / "seed.json"
        path.write_text("[")

        with pytest.raises(SeedDataError, match="invalid JSON"):
            load_seed_file(path, UTC)

    def test_invalid_resource(self, tmp_path, seed_resources):
        """Should name the offending entry."""
        del seed_resources[1]["subject"]
        path = tmp_path / "seed.json"
        path.write_text(json.dumps(seed_resources))

        with pytest.raises(SeedDataError, match="entry 1"):
            load_seed_file(path, UTC)

    def test_entry_without_id(self, tmp_path, create_payload):
        """Should require ids on seed resources."""
        path = tmp_path / "seed.json"
        path.write_text(json.dumps([create_payload]))

        with pytest.raises(SeedDataError, match="missing id"):
            load_seed_file(path, UTC)

    def test_wrong_shape(self, tmp_path):
        """Should refuse JSON that is neither an array nor a Bundle."""
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"resourceType": "Condition"}))

        with pytest.raises(SeedDataError):
            load_seed_file(path, UTC)
