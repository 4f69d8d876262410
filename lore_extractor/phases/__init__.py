"""Phase runners for the lore extraction pipeline.

Each phase is encapsulated in its own runner class with:
- Clear inputs and outputs
- Its own progress checkpoint
- Logging through the run logger

Validation, extraction, consolidation and persistence raise on failure.
Page generation and relationship extraction are best effort and return
Ok/Err instead.
"""

from lore_extractor.phases.phase_base import (
    PhaseRunner,
    PhaseContext,
    ExtractionResources,
    ExtractionConfig,
    PipelineState,
)
from lore_extractor.phases.validation_phase import ValidationPhase, ValidationResult
from lore_extractor.phases.extraction_phase import ExtractionPhase, ExtractionResult
from lore_extractor.phases.consolidation_phase import (
    ConsolidationPhase,
    ConsolidationPhaseResult,
)
from lore_extractor.phases.persistence_phase import PersistencePhase, PersistenceResult
from lore_extractor.phases.page_phase import PageGenerationPhase
from lore_extractor.phases.relationship_phase import RelationshipPhase

__all__ = [
    "PhaseRunner",
    "PhaseContext",
    "ExtractionResources",
    "ExtractionConfig",
    "PipelineState",
    "ValidationPhase",
    "ValidationResult",
    "ExtractionPhase",
    "ExtractionResult",
    "ConsolidationPhase",
    "ConsolidationPhaseResult",
    "PersistencePhase",
    "PersistenceResult",
    "PageGenerationPhase",
    "RelationshipPhase",
]
