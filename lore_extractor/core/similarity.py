"""Name similarity and duplicate-candidate detection.

Similarity is normalized unit-cost Levenshtein distance over case-folded
names. find_duplicates() compares every pair within one kind's list; the
quadratic scan is fine at tens to low hundreds of entities per universe.
"""

from rapidfuzz.distance import Levenshtein

from lore_extractor.core.config import ConsolidationConfig
from lore_extractor.pydantic_models.pipeline import DuplicateCandidate


def edit_distance(a: str, b: str) -> int:
    """Insertions, deletions and substitutions each cost 1."""
    return Levenshtein.distance(a.casefold(), b.casefold())


def similarity(a: str, b: str) -> float:
    """1 - distance / longer length; 1.0 when both strings are empty."""
    longest = max(len(a.casefold()), len(b.casefold()))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / longest


def find_duplicates(
    names: list[str],
    threshold: float = ConsolidationConfig.SIMILARITY_THRESHOLD,
) -> list[DuplicateCandidate]:
    """All pairs (i < j) whose similarity is at least threshold.

    Ordered by ascending i, then ascending j.
    """
    candidates: list[DuplicateCandidate] = []
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            score = similarity(names[i], names[j])
            if score >= threshold:
                candidates.append(DuplicateCandidate(i=i, j=j, similarity=score))
    return candidates
