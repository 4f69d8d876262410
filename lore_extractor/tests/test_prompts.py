"""Tests for lore_extractor.prompts."""

from lore_extractor.core.config import ExtractionLimits
from lore_extractor.prompts import (
    ADJUDICATION_SYSTEM_PROMPT,
    SYSTEM_PROMPTS,
    build_adjudication_prompt,
    build_extraction_prompt,
    build_relationship_prompt,
    cap_text,
)
from lore_extractor.pydantic_models.entities import Character, EntityKind, Location


class TestExtractionPrompt:
    def test_cap_text_short_unchanged(self):
        assert cap_text("abc", 10) == "abc"

    def test_cap_text_appends_marker(self):
        capped = cap_text("a" * 20, 10)
        assert capped == "a" * 10 + ExtractionLimits.CONTINUATION_MARKER

    def test_every_kind_has_a_system_prompt(self):
        assert set(SYSTEM_PROMPTS) == set(EntityKind)

    def test_prompt_embeds_capped_text(self):
        text = "x" * 60_000
        prompt = build_extraction_prompt(EntityKind.OBJECT, text)
        cap = ExtractionLimits.TEXT_CAPS["object"]
        assert "x" * cap + ExtractionLimits.CONTINUATION_MARKER in prompt
        assert "x" * (cap + 1) not in prompt

    def test_caps_differ_by_kind(self):
        text = "y" * 60_000
        character = build_extraction_prompt(EntityKind.CHARACTER, text)
        obj = build_extraction_prompt(EntityKind.OBJECT, text)
        assert len(character) > len(obj)

    def test_prompt_names_envelope_key(self):
        for kind in EntityKind:
            assert f'"{kind.plural}"' in build_extraction_prompt(kind, "story")


class TestAdjudicationPrompt:
    def test_embeds_both_records(self):
        prompt = build_adjudication_prompt(
            Character(name="Jon", role="hero"),
            Character(name="Jonh", description="A bastard"),
            0.75,
        )
        assert '"Jon"' in prompt
        assert '"Jonh"' in prompt
        assert "A bastard" in prompt
        assert "75%" in prompt
        assert "same_entity" in prompt
        assert ADJUDICATION_SYSTEM_PROMPT


class TestRelationshipPrompt:
    def test_lists_entities_and_context(self):
        prompt = build_relationship_prompt(
            [Character(name="Jon")],
            [Location(name="Winterfell")],
            [],
            [],
            "A northern saga",
        )
        assert "Jon" in prompt
        assert "Winterfell" in prompt
        assert "A northern saga" in prompt
        assert '"relationships"' in prompt

    def test_missing_description(self):
        prompt = build_relationship_prompt([], [], [], [], "")
        assert "(no description)" in prompt
