"""Unit tests for membership request field limits."""

import pytest

from xblade.models.membership import ClubFields, PlayerFields
from xblade.services.errors import ValidationFailed
from xblade.services.membership_service import validate_fields


class TestClubFields:
    def test_strips_and_blanks_optional_fields(self) -> None:
        fields = ClubFields(name="  Eagles  ", web_url="   ", description="")
        assert fields.name == "Eagles"
        assert fields.web_url is None
        assert fields.description is None

    @pytest.mark.parametrize("name", ["E", "x" * 101])
    def test_name_length_bounds(self, name: str) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            validate_fields(ClubFields, {"name": name})
        assert "name" in exc_info.value.fields

    def test_description_limit(self) -> None:
        with pytest.raises(ValidationFailed):
            validate_fields(ClubFields, {"name": "Eagles", "description": "d" * 501})


class TestPlayerFields:
    def test_valid_player(self) -> None:
        fields = validate_fields(PlayerFields, {"name": "Jane Doe", "position": "Goalie", "jersey_number": 0})
        assert fields.jersey_number == 0

    @pytest.mark.parametrize("jersey", [-1, 100])
    def test_jersey_range(self, jersey: int) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            validate_fields(PlayerFields, {"name": "Jane Doe", "position": "Goalie", "jersey_number": jersey})
        assert "jersey_number" in exc_info.value.fields

    def test_position_required(self) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            validate_fields(PlayerFields, {"name": "Jane Doe"})
        assert "position" in exc_info.value.fields

    def test_validated_model_passes_through(self) -> None:
        fields = PlayerFields(name="Jane Doe", position="Goalie")
        assert validate_fields(PlayerFields, fields) is fields
