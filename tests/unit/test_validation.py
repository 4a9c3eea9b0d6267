"""
Tests for input validation.
"""

import pytest

from fhir_server.errors import InvalidRequestError
from fhir_server.validation import normalize_reference, validate_count, validate_resource_id


class TestValidateResourceId:
    """Tests for validate_resource_id."""

    @pytest.mark.parametrize(
        "resource_id",
        ["c-1", "86sgf-1f7d-4394-a316-0a458edf28c4", "abc.123", "A" * 64],
    )
    def test_valid(self, resource_id):
        """Should accept ids in the FHIR id alphabet."""
        assert validate_resource_id(resource_id) == resource_id

    @pytest.mark.parametrize(
        "resource_id",
        ["", "has space", "a/b", "A" * 65, "semi;colon", "under_score"],
    )
    def test_invalid(self, resource_id):
        """Should reject anything else."""
        with pytest.raises(InvalidRequestError) as exc:
            validate_resource_id(resource_id)

        assert exc.value.field == "id"


class TestNormalizeReference:
    """Tests for normalize_reference."""

    @pytest.mark.parametrize(
        "reference",
        [
            "Patient/p-1",
            " Patient/p-1 ",
            "http://example.org/fhir/R4/Patient/p-1",
            "https://example.org/Patient/p-1",
        ],
    )
    def test_relative_and_absolute(self, reference):
        """Should reduce references to Type/id."""
        assert normalize_reference(reference, "Patient") == "Patient/p-1"

    @pytest.mark.parametrize(
        "reference",
        ["Group/g-1", "p-1", "Patient/", "Patient/has space", "patient/p-1"],
    )
    def test_rejected(self, reference):
        """Should return None for other types or malformed references."""
        assert normalize_reference(reference, "Patient") is None


class TestValidateCount:
    """Tests for validate_count."""

    def test_empty_uses_default(self):
        assert validate_count("", 50, 500) == 50

    def test_within_bounds(self):
        assert validate_count("0", 50, 500) == 0
        assert validate_count("20", 50, 500) == 20

    def test_clamped(self):
        """Should clamp rather than reject large values."""
        assert validate_count("10000", 50, 500) == 500

    @pytest.mark.parametrize("value", ["-1", "abc", "1.5"])
    def test_invalid(self, value):
        with pytest.raises(InvalidRequestError):
            validate_count(value, 50, 500)
