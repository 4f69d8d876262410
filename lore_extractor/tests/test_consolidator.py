"""Tests for lore_extractor.agents.consolidator module.

Tests the duplicate consolidation pipeline:
- merge_entities(): deterministic, first-record-biased merge policy
- consolidate(): candidate visiting, merge acceptance, failure isolation
"""

import json

import pytest

from lore_extractor.agents.consolidator import consolidate, merge_entities
from lore_extractor.core.errors import (
    ErrorCode,
    PipelineError,
    oracle_api_error,
    oracle_key_missing_error,
)
from lore_extractor.pydantic_models.entities import Character, Location, LoreObject


def verdict(same: bool = True, confidence: float = 0.9) -> str:
    return json.dumps({"same_entity": same, "confidence": confidence, "reason": "test"})


def characters(*names: str) -> list[Character]:
    return [Character(name=name) for name in names]


def assert_count_invariant(result):
    stats = result.stats
    assert stats.consolidated_count == stats.original_count - stats.duplicates_removed
    assert stats.consolidated_count == len(result.consolidated)


# =============================================================================
# merge_entities tests
# =============================================================================


class TestMergeEntities:
    """Merge policy."""

    def test_keeps_first_name(self, sample_characters):
        merged = merge_entities(sample_characters[0], sample_characters[1])
        assert merged.name == "Jon"

    def test_second_name_becomes_alias(self, sample_characters):
        merged = merge_entities(sample_characters[0], sample_characters[1])
        assert merged.aliases == ["Jonh", "Lord Snow"]

    def test_descriptions_concatenated(self, sample_characters):
        merged = merge_entities(sample_characters[0], sample_characters[1])
        assert merged.description == "Lord Commander\n\nBastard of Winterfell"

    def test_duplicate_description_not_repeated(self):
        merged = merge_entities(
            Character(name="Jon", description="Lord Commander of the Watch"),
            Character(name="Jonh", description="lord commander of the watch"),
        )
        assert merged.description == "Lord Commander of the Watch"

    def test_description_from_second_when_first_empty(self):
        merged = merge_entities(Character(name="Jon"), Character(name="Jonh", description="Bastard"))
        assert merged.description == "Bastard"

    def test_list_fields_unioned_in_order(self, sample_characters):
        merged = merge_entities(sample_characters[0], sample_characters[1])
        assert merged.abilities == ["swordsmanship", "leadership"]

    def test_list_union_case_insensitive(self, sample_objects):
        merged = merge_entities(
            sample_objects[0],
            LoreObject(name="Long Claw", powers=["Cuts Ice", "glows"]),
        )
        assert merged.powers == ["cuts ice", "glows"]

    def test_scalars_first_non_empty(self):
        merged = merge_entities(
            Location(name="Winterfell", type="castle"),
            Location(name="Winterfel", type="fortress", country="The North"),
        )
        assert merged.type == "castle"
        assert merged.country == "The North"

    def test_first_name_never_its_own_alias(self):
        merged = merge_entities(Character(name="Jon"), Character(name="JON", aliases=["Jon", "Snow"]))
        assert merged.aliases == ["Snow"]

    def test_keeps_first_id(self):
        merged = merge_entities(Character(name="Jon", id="a"), Character(name="Jonh", id="b"))
        assert merged.id == "a"

    def test_kind_mismatch_rejected(self):
        with pytest.raises(TypeError):
            merge_entities(Character(name="Winterfell"), Location(name="Winterfell"))


# =============================================================================
# consolidate tests
# =============================================================================


class TestConsolidate:
    """Adjudicated consolidation within one kind."""

    @pytest.mark.asyncio
    async def test_merges_confirmed_duplicate(self, scripted_oracle, run_logger, sample_characters):
        oracle = scripted_oracle({"consolidation": verdict(True, 0.9)})
        result = await consolidate(sample_characters, oracle, run_logger)

        assert [c.name for c in result.consolidated] == ["Jon", "Arya"]
        assert len(result.merges) == 1
        assert result.merges[0].original_names == ["Jon", "Jonh"]
        assert result.merges[0].merged_into == "Jon"
        assert result.stats.duplicates_removed == 1
        assert_count_invariant(result)
        assert oracle.phases() == ["consolidation"]

    @pytest.mark.asyncio
    async def test_confidence_must_exceed_threshold(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": verdict(True, 0.7)})
        result = await consolidate(characters("Jon", "Jonh"), oracle, run_logger)
        assert len(result.consolidated) == 2
        assert result.merges == []
        assert_count_invariant(result)

    @pytest.mark.asyncio
    async def test_negative_verdict_keeps_both(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": verdict(False, 0.95)})
        result = await consolidate(characters("Jon", "Jonh"), oracle, run_logger)
        assert [c.name for c in result.consolidated] == ["Jon", "Jonh"]

    @pytest.mark.asyncio
    async def test_percent_confidence(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": verdict(True, 90)})
        result = await consolidate(characters("Jon", "Jonh"), oracle, run_logger)
        assert len(result.consolidated) == 1
        assert result.merges[0].confidence == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_adjudication_failure_is_isolated(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": [
            oracle_api_error("HTTP 503", status_code=503),
            verdict(True, 0.95),
        ]})
        result = await consolidate(characters("Jon", "Jonh", "Arya", "Aria"), oracle, run_logger)

        assert [c.name for c in result.consolidated] == ["Jon", "Jonh", "Arya"]
        assert result.stats.adjudication_failures == 1
        assert result.stats.duplicates_removed == 1
        assert any("left unmerged" in w for w in run_logger.warnings())
        assert_count_invariant(result)

    @pytest.mark.asyncio
    async def test_unparseable_verdict_is_isolated(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": "yes, definitely"})
        result = await consolidate(characters("Jon", "Jonh"), oracle, run_logger)
        assert len(result.consolidated) == 2
        assert result.stats.adjudication_failures == 1

    @pytest.mark.asyncio
    async def test_malformed_verdict_is_isolated(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": '{"same": "maybe"}'})
        result = await consolidate(characters("Jon", "Jonh"), oracle, run_logger)
        assert len(result.consolidated) == 2
        assert result.stats.adjudication_failures == 1
        assert run_logger.warnings()

    @pytest.mark.asyncio
    async def test_missing_key_is_fatal(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": oracle_key_missing_error("DEEPSEEK_API_KEY")})
        with pytest.raises(PipelineError) as exc_info:
            await consolidate(characters("Jon", "Jonh"), oracle, run_logger)
        assert exc_info.value.code == ErrorCode.ORACLE_KEY_MISSING

    @pytest.mark.asyncio
    async def test_skips_pairs_with_removed_index(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": verdict(True, 0.95)})
        result = await consolidate(characters("Jon", "Jonh", "Jon"), oracle, run_logger)

        # (0,1) and (0,2) merge; (1,2) is skipped because 1 is gone
        assert len(oracle.calls) == 2
        assert [c.name for c in result.consolidated] == ["Jon"]
        assert result.consolidated[0].aliases == ["Jonh"]
        assert_count_invariant(result)

    @pytest.mark.asyncio
    async def test_survivor_order_preserved(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({"consolidation": verdict(True, 0.95)})
        result = await consolidate(characters("Arya", "Jon", "Sansa", "Jonh", "Bran"), oracle, run_logger)
        assert [c.name for c in result.consolidated] == ["Arya", "Jon", "Sansa", "Bran"]

    @pytest.mark.asyncio
    async def test_no_candidates_no_calls(self, scripted_oracle, run_logger):
        oracle = scripted_oracle({})
        result = await consolidate(characters("Jon", "Arya", "Bran"), oracle, run_logger)
        assert oracle.calls == []
        assert len(result.consolidated) == 3
        assert_count_invariant(result)

    @pytest.mark.asyncio
    async def test_empty_list(self, scripted_oracle, run_logger):
        result = await consolidate([], scripted_oracle({}), run_logger)
        assert result.consolidated == []
        assert result.stats.original_count == 0
        assert_count_invariant(result)
