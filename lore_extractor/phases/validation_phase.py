"""Validation phase - reject unusable source text before any oracle call.

Runs the text validator and loads the universe row (name and description
feed the relationship prompt and the universe page). Every violated rule
is reported in one INVALID_PDF error.
"""

from dataclasses import dataclass

from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.core.errors import invalid_input_error, text_validation_error
from lore_extractor.core.text_validator import TextValidation, validate_text
from lore_extractor.phases.phase_base import PhaseRunner


@dataclass
class ValidationResult:
    """Result from the validation phase."""

    validation: TextValidation
    text_length: int
    universe_found: bool


class ValidationPhase(PhaseRunner[ValidationResult]):
    """Phase 1: input checks and text validation."""

    name = "validation"

    async def run(self) -> ValidationResult:
        """Validate the source text and load the universe.

        Raises:
            PipelineError: INVALID_INPUT when no text was given,
                INVALID_PDF when the text breaks any validation rule.
        """
        self.start()
        await self.checkpoint(ProgressCheckpoints.VALIDATION, JobSteps.VALIDATING)

        text = self.context.text
        if not text:
            raise invalid_input_error("Source text is required", phase=self.name)

        validation = validate_text(text)
        if not validation.valid:
            self.log(f"Rejected text: {', '.join(validation.codes)}", "error")
            raise text_validation_error(validation.messages, phase=self.name)

        universe = await self.context.repository.get_universe(self.context.universe_id)
        if universe is None:
            self.log("Universe row not found, continuing without description", "debug")
        self.context.universe = universe or {"id": self.context.universe_id}

        self.logger.phase_result("Validation", "text accepted", characters=len(text))
        self.end()
        return ValidationResult(
            validation=validation,
            text_length=len(text),
            universe_found=universe is not None,
        )
