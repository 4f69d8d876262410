"""Tests for lore_extractor.pydantic_models."""

import pytest
from pydantic import ValidationError

from lore_extractor.pydantic_models import (
    Character,
    ChatCompletion,
    EntityEnvelope,
    EntityKind,
    LoreObject,
    MergeRecord,
    MergeVerdict,
    PipelineResult,
    PipelineStats,
    Relationship,
)


# =============================================================================
# Entity tests
# =============================================================================


class TestEntities:
    def test_kind_plural(self):
        assert EntityKind.CHARACTER.plural == "characters"
        assert EntityKind.OBJECT.plural == "objects"

    def test_aliases_deduplicated(self):
        character = Character(name="Jon", aliases=["Lord Snow", "Lord Snow", " ", None])
        assert character.aliases == ["Lord Snow"]

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Character(name="   ")

    def test_to_row_excludes_id(self):
        row = LoreObject(id="o1", name="Longclaw", powers=["cuts ice"]).to_row()
        assert "id" not in row
        assert row["powers"] == ["cuts ice"]

    def test_prompt_view_drops_empty_fields(self):
        view = Character(name="Jon", role="hero").prompt_view()
        assert view == {"name": "Jon", "role": "hero"}

    def test_list_scalar_coerced(self):
        assert Character(name="Jon", personality=["brave", "honest"]).personality == "brave, honest"


class TestRelationship:
    def test_to_row_uses_kind_values(self):
        row = Relationship(
            from_kind=EntityKind.CHARACTER, from_id="c1",
            to_kind=EntityKind.OBJECT, to_id="o1",
            relationship_type="Owner", strength=0.9,
        ).to_row()
        assert row["from_kind"] == "character"
        assert row["to_kind"] == "object"
        assert row["relationship_type"] == "owner"
        assert "id" not in row

    def test_invalid_strength_becomes_none(self):
        relationship = Relationship(
            from_kind="character", from_id="c1", to_kind="character", to_id="c2",
            relationship_type="ally", strength="strong",
        )
        assert relationship.strength is None


# =============================================================================
# Oracle response tests
# =============================================================================


class TestOracleResponses:
    def test_chat_completion_content(self):
        completion = ChatCompletion.model_validate({"choices": [{"message": {"content": "x"}}]})
        assert completion.content == "x"

    def test_envelope_from_keyed_dict(self):
        envelope = EntityEnvelope.from_payload({"events": [{"name": "Battle"}]}, "events")
        assert envelope.items == [{"name": "Battle"}]

    def test_envelope_wrong_key(self):
        with pytest.raises(ValidationError):
            EntityEnvelope.from_payload({"things": []}, "events")

    def test_envelope_scalar_payload(self):
        with pytest.raises(ValidationError):
            EntityEnvelope.from_payload("events", "events")


# =============================================================================
# Pipeline model tests
# =============================================================================


class TestPipelineModels:
    def test_verdict_confidence_bounds(self):
        with pytest.raises(ValidationError):
            MergeVerdict(same_entity=True, confidence=-0.1)
        with pytest.raises(ValidationError):
            MergeVerdict(same_entity=True, confidence=150)

    def test_merge_record_describe(self):
        record = MergeRecord(
            kind=EntityKind.CHARACTER, original_names=["Jon", "Jonh"], merged_into="Jon", confidence=0.9,
        )
        assert record.describe() == "Merged character 'Jonh' into 'Jon' (confidence 0.90)"

    def test_success_response_shape(self):
        result = PipelineResult(
            success=True,
            stats=PipelineStats(characters=2, pages_created=7, relationships_created=2,
                                consolidations_performed=1),
            duration=1.23456,
            warnings=["w"],
        )
        assert result.to_response() == {
            "success": True,
            "stats": {
                "characters": 2,
                "locations": 0,
                "events": 0,
                "objects": 0,
                "pagesCreated": 7,
                "relationshipsCreated": 2,
                "consolidationsPerformed": 1,
            },
            "duration": 1.235,
            "warnings": ["w"],
        }

    def test_failure_response_shape(self):
        error = {"code": "JSON_PARSE_ERROR", "message": "bad", "phase": "character", "recoverable": False}
        result = PipelineResult(success=False, error=error, duration=0.5, logs=[{"message": "x"}])
        response = result.to_response()
        assert set(response) == {"success", "error", "duration", "logs"}
        assert response["error"] == error
        assert response["success"] is False
