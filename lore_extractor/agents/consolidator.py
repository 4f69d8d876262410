"""Consolidator: oracle-adjudicated merging of near-duplicate entities.

Within one kind, every pair of names at or above the similarity threshold is
a candidate. Candidates are visited in (i, j) order; for each one whose
records are both still alive, the oracle is asked whether the two records
denote the same referent. A merge is accepted only on an affirmative answer
with confidence strictly above the merge threshold.

Merging is first-record-biased and deterministic:
- the first record's name, id and position survive
- aliases are unioned; the second record's name becomes an alias
- descriptions are concatenated (duplicates skipped)
- list fields are unioned, order preserved
- optional scalars take the first non-empty value

A failed adjudication for one pair is logged and the pair is left unmerged;
it never aborts consolidation of the remaining pairs.
"""

from pydantic import ValidationError

from lore_extractor.core.config import ConsolidationConfig
from lore_extractor.core.contract import parse_oracle_json
from lore_extractor.core.errors import ErrorCode, PipelineError
from lore_extractor.core.oracle_client import OracleClient
from lore_extractor.core.pipeline_logger import RunLogger
from lore_extractor.core.similarity import find_duplicates
from lore_extractor.prompts.consolidation_prompt import (
    ADJUDICATION_SYSTEM_PROMPT,
    build_adjudication_prompt,
)
from lore_extractor.pydantic_models.entities import Entity
from lore_extractor.pydantic_models.pipeline import (
    ConsolidationResult,
    ConsolidationStats,
    MergeRecord,
    MergeVerdict,
)

PHASE = "consolidation"

# Errors that abort consolidation instead of skipping the pair
_FATAL_CODES = frozenset({ErrorCode.ORACLE_KEY_MISSING})


def _union(*lists: list[str]) -> list[str]:
    """Order-preserving, case-insensitive union."""
    seen: set[str] = set()
    merged: list[str] = []
    for items in lists:
        for item in items:
            key = item.casefold()
            if key not in seen:
                seen.add(key)
                merged.append(item)
    return merged


def _join_descriptions(first: str | None, second: str | None) -> str | None:
    if not first:
        return second
    if not second or second.strip().casefold() in first.casefold():
        return first
    return f"{first}{ConsolidationConfig.DESCRIPTION_SEPARATOR}{second}"


def merge_entities(first: Entity, second: Entity) -> Entity:
    """Merge second into first. Both must be the same kind."""
    if type(first) is not type(second):
        raise TypeError(f"Cannot merge {type(first).__name__} with {type(second).__name__}")

    data = first.model_dump()
    data["id"] = first.id or second.id
    data["aliases"] = [
        alias for alias in _union(first.aliases, [second.name], second.aliases)
        if alias.casefold() != first.name.casefold()
    ]
    data["description"] = _join_descriptions(first.description, second.description)
    for name in first.LIST_FIELDS:
        data[name] = _union(getattr(first, name), getattr(second, name))
    for name in first.SCALAR_FIELDS:
        data[name] = getattr(first, name) or getattr(second, name)

    return type(first).model_validate(data)


async def adjudicate(
    first: Entity,
    second: Entity,
    similarity: float,
    client: OracleClient,
) -> MergeVerdict:
    """Ask the oracle whether two records are the same entity.

    Raises:
        PipelineError: Oracle or contract failure.
        ValidationError: The answer is JSON but not a verdict.
    """
    raw = await client.call(
        prompt=build_adjudication_prompt(first, second, similarity),
        system_prompt=ADJUDICATION_SYSTEM_PROMPT,
        temperature=ConsolidationConfig.ADJUDICATION_TEMPERATURE,
        max_tokens=ConsolidationConfig.ADJUDICATION_MAX_TOKENS,
        phase=PHASE,
    )
    return MergeVerdict.model_validate(parse_oracle_json(raw, phase=PHASE))


async def consolidate(
    entities: list[Entity],
    client: OracleClient,
    logger: RunLogger,
    threshold: float = ConsolidationConfig.SIMILARITY_THRESHOLD,
    merge_confidence: float = ConsolidationConfig.MERGE_CONFIDENCE,
) -> ConsolidationResult:
    """Detect and merge duplicates within one kind's list.

    Args:
        entities: Records of a single kind, in extraction order.
        client: Oracle client used for adjudication.
        logger: Run logger.
        threshold: Name similarity needed to become a candidate.
        merge_confidence: Verdict confidence must exceed this to merge.

    Returns:
        ConsolidationResult; survivors keep their relative order and
        consolidated_count == original_count - duplicates_removed.
    """
    working = list(entities)
    removed: set[int] = set()
    merges: list[MergeRecord] = []
    failures = 0

    candidates = find_duplicates([e.name for e in working], threshold) if len(working) > 1 else []
    if candidates:
        logger.debug(f"{len(candidates)} duplicate candidates among {working[0].kind.plural}")

    for candidate in candidates:
        if candidate.i in removed or candidate.j in removed:
            continue
        first, second = working[candidate.i], working[candidate.j]

        try:
            verdict = await adjudicate(first, second, candidate.similarity, client)
        except PipelineError as e:
            if e.code in _FATAL_CODES:
                raise
            failures += 1
            logger.warning(
                f"Could not adjudicate '{first.name}' / '{second.name}', left unmerged",
                error=e.message,
            )
            continue
        except ValidationError as e:
            failures += 1
            logger.warning(
                f"Unusable verdict for '{first.name}' / '{second.name}', left unmerged",
                error=f"{e.error_count()} validation errors",
            )
            continue

        if verdict.same_entity and verdict.confidence > merge_confidence:
            working[candidate.i] = merge_entities(first, second)
            removed.add(candidate.j)
            record = MergeRecord(
                kind=first.kind,
                original_names=[first.name, second.name],
                merged_into=first.name,
                confidence=verdict.confidence,
            )
            merges.append(record)
            logger.info(record.describe())
        else:
            logger.debug(
                f"Kept '{first.name}' and '{second.name}' apart",
                same=verdict.same_entity,
                confidence=verdict.confidence,
            )

    consolidated = [e for index, e in enumerate(working) if index not in removed]
    return ConsolidationResult(
        consolidated=consolidated,
        merges=merges,
        stats=ConsolidationStats(
            original_count=len(entities),
            consolidated_count=len(consolidated),
            duplicates_removed=len(removed),
            adjudication_failures=failures,
        ),
    )
