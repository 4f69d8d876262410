"""Adjudication prompt for duplicate candidates.

The oracle sees both full records and answers yes/no with a confidence.
Names that merely look alike ("Jon" vs "Joan") are common in fiction, so the
prompt pushes towards keeping records apart when unsure.
"""

import json

from lore_extractor.pydantic_models.entities import Entity

ADJUDICATION_SYSTEM_PROMPT = """You decide whether two catalogue records from the same fictional work describe the same entity.

Return ONLY a valid JSON object. No markdown, no commentary."""


def build_adjudication_prompt(first: Entity, second: Entity, similarity: float) -> str:
    """Embed both records and ask for a verdict."""
    kind = first.kind.value
    first_json = json.dumps(first.prompt_view(), indent=2, ensure_ascii=False)
    second_json = json.dumps(second.prompt_view(), indent=2, ensure_ascii=False)

    return f"""Two {kind} records were extracted from the same story. Their names are {similarity:.0%} similar.

RECORD A:
{first_json}

RECORD B:
{second_json}

QUESTION: Do A and B refer to the SAME {kind}?

Consider:
- A nickname, title, misspelling or partial name of the same {kind} means YES
- Different {kind}s with similar names (siblings, namesakes, a city and its district) means NO
- When the records do not give enough evidence, answer NO

Return JSON:
{{
  "same_entity": true or false,
  "confidence": number between 0 and 1,
  "reason": "one sentence"
}}"""
