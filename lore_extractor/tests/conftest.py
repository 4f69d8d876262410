"""Pytest configuration and shared fixtures.

Provides reusable test fixtures for:
- Mock litellm router and oracle completions
- A scripted oracle that answers by phase
- Repository, run logger and sample text
- Sample entities
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from lore_extractor.core.config import API_KEY_ENV_VAR
from lore_extractor.core.cost_tracker import CostTracker
from lore_extractor.core.oracle_client import OracleClient
from lore_extractor.core.pipeline_logger import RunLogger
from lore_extractor.core.repository import InMemoryRepository
from lore_extractor.pydantic_models.entities import Character, LoreObject


SAMPLE_TEXT = (
    "Jon Snow stood on the walls of Winterfell and watched the snow fall. "
    "His sister Arya had gone south long ago, and Longclaw, the bastard sword "
    "of House Mormont, hung at his hip. The Battle of the Bastards was still "
    "fresh in every mind, and the men of the north spoke of little else. "
) * 3


def make_completion(content: str | None, prompt_tokens: int = 100, completion_tokens: int = 50) -> dict:
    """Chat-completion payload in the transport shape litellm returns."""
    return {
        "choices": [{"message": {"content": content}}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


# =============================================================================
# Oracle transport
# =============================================================================


@pytest.fixture
def api_key(monkeypatch):
    """Configure the oracle credential for the test."""
    monkeypatch.setenv(API_KEY_ENV_VAR, "test-key")
    return "test-key"


@pytest.fixture
def mock_router(api_key):
    """Patch the litellm Router used by OracleClient."""
    with patch("lore_extractor.core.oracle_client.get_router") as get_router:
        router = MagicMock()
        router.acompletion = AsyncMock(return_value=make_completion('{"result": "test"}'))
        get_router.return_value = router
        yield router


@pytest.fixture
def no_sleep():
    """Backoff sleep that returns immediately and records delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def cost_tracker():
    return CostTracker()


@pytest.fixture
def oracle_client(mock_router, no_sleep, cost_tracker):
    """OracleClient wired to the mocked router."""
    return OracleClient(model="deepseek/deepseek-chat", cost_tracker=cost_tracker, sleep=no_sleep)


# =============================================================================
# Scripted oracle
# =============================================================================


class ScriptedOracle:
    """Stands in for OracleClient; answers from a per-phase script.

    Each phase maps to one answer or a list of answers consumed in order
    (the last one repeats). An answer that is an exception is raised.
    """

    def __init__(self, script: dict, model: str = "test/scripted-model"):
        self.script = {
            phase: list(answers) if isinstance(answers, list) else [answers]
            for phase, answers in script.items()
        }
        self.model = model
        self.cost_tracker = CostTracker()
        self.calls: list[dict] = []

    async def call(self, prompt, system_prompt, temperature=None, max_tokens=None, phase=""):
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "phase": phase,
        })
        answers = self.script.get(phase)
        if not answers:
            raise AssertionError(f"No scripted answer for phase '{phase}'")
        answer = answers.pop(0) if len(answers) > 1 else answers[0]
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def phases(self) -> list[str]:
        return [c["phase"] for c in self.calls]


class HangingOracle:
    """Oracle whose calls never return; ``started`` is set on the first call."""

    def __init__(self):
        self.model = "test/hanging-model"
        self.cost_tracker = CostTracker()
        self.started = asyncio.Event()

    async def call(self, prompt, system_prompt, temperature=None, max_tokens=None, phase=""):
        self.started.set()
        await asyncio.sleep(3600)


@pytest.fixture
def scripted_oracle():
    """Factory for ScriptedOracle."""
    return ScriptedOracle


@pytest.fixture
def hanging_oracle():
    return HangingOracle()


@pytest.fixture
def lore_script():
    """A complete, successful oracle script for SAMPLE_TEXT.

    Jon / Jonh are near-duplicates (similarity 0.75) that the adjudicator
    merges; one proposed relationship names an unknown entity.
    """
    return {
        "character": json.dumps({"characters": [
            {"name": "Jon", "role": "protagonist", "description": "Lord Commander of the Night's Watch",
             "aliases": ["Lord Snow"], "abilities": ["swordsmanship"]},
            {"name": "Jonh", "role": "protagonist", "description": "Bastard of Winterfell",
             "abilities": ["swordsmanship", "leadership"]},
            {"name": "Arya", "role": "supporting", "description": "Jon's younger sister"},
        ]}),
        "location": "```json\n" + json.dumps({"locations": [
            {"name": "Winterfell", "type": "castle", "description": "Seat of House Stark"},
            {"name": "The Wall", "type": "fortification", "description": "Ice wall in the north"},
        ]}) + "\n```",
        "event": json.dumps({"events": [
            {"name": "Battle of the Bastards", "date": "303 AC", "description": "Battle for Winterfell",
             "involved_characters": ["Jon"]},
        ]}),
        "object": json.dumps({"objects": [
            {"name": "Longclaw", "type": "sword", "owner": "Jon", "description": "Valyrian steel sword"},
        ]}),
        "consolidation": json.dumps({"same_entity": True, "confidence": 0.9, "reason": "Typo"}),
        "relationships": json.dumps({"relationships": [
            {"from_entity_name": "Jon", "to_entity_name": "Longclaw", "relationship_type": "Owner",
             "strength": 0.9},
            {"from_entity_name": "arya", "to_entity_name": "WINTERFELL", "relationship_type": "located at",
             "strength": 70},
            {"from_entity_name": "Jon", "to_entity_name": "Samwell", "relationship_type": "friend"},
        ]}),
    }


# =============================================================================
# Repository, logger, text
# =============================================================================


@pytest.fixture
def repository():
    """In-memory repository holding one universe 'u1'."""
    repo = InMemoryRepository()
    repo.add_universe("u1", name="A Song of Ice", description="A northern saga")
    return repo


@pytest.fixture
def run_logger():
    return RunLogger(run_id="test")


@pytest.fixture
def sample_text():
    return SAMPLE_TEXT


# =============================================================================
# Sample entities
# =============================================================================


@pytest.fixture
def sample_characters():
    return [
        Character(name="Jon", role="protagonist", description="Lord Commander", abilities=["swordsmanship"]),
        Character(name="Jonh", description="Bastard of Winterfell", abilities=["leadership"], aliases=["Lord Snow"]),
        Character(name="Arya", role="supporting"),
    ]


@pytest.fixture
def sample_objects():
    return [
        LoreObject(name="Longclaw", type="sword", powers=["cuts ice"]),
        LoreObject(name="Needle", type="sword"),
    ]


@pytest.fixture
def completion():
    """Factory for chat-completion payloads (see make_completion)."""
    return make_completion
