"""Scenario coordinator — runs the two collaborators through every stage.

Scenario flow:
  1. Concept    — creative, from the scenario index alone.
  2. Structure  — design, from the concept.
  3. Enrich     — creative, narrative from concept + structure.
  4. Feedback loop, exactly max_iterations times (no early exit):
       a. critique — design, feedback on (narrative, structure)
       b. refine   — creative, rewrites narrative from (narrative, feedback)
       c. adjust   — design, rewrites structure from (narrative, structure)
  5. Polish     — creative, rewrites narrative.
  6. Validate   — design, ValidationResult from (narrative, structure).

Batches run scenarios 1..count one after another. An exception inside one
scenario is logged and recorded, and the batch carries on with the next index.
"""

from __future__ import annotations

import logging
import time

from kdo_dado import prompts
from kdo_dado.llm import Collaborator, CollaboratorRequest, run_stage
from kdo_dado.models import (
    BatchFailure,
    BatchResult,
    GenerationConfig,
    ScenarioArtifact,
    ScenarioRequest,
)
from kdo_dado.pipeline import stages

logger = logging.getLogger(__name__)

ORCHESTRATED_STRUCTURE = "Generated via single-request orchestration"


class ScenarioCoordinator:
    """Sequences the pipeline stages for one scenario or a batch.

    Args:
        creative: Collaborator for concept, narrative, refinement and polish.
        design:   Collaborator for structure, critique, mechanics and validation.
        config:   Iteration count and default batch size.
    """

    def __init__(
        self,
        creative: Collaborator,
        design: Collaborator,
        config: GenerationConfig | None = None,
    ) -> None:
        self.creative = creative
        self.design = design
        self.config = config or GenerationConfig()

    # ------------------------------------------------------------------
    # Single scenario
    # ------------------------------------------------------------------

    async def generate_scenario(self, request: ScenarioRequest) -> ScenarioArtifact:
        """Run the full pipeline for one scenario and return the finished artifact."""
        iterations = self.config.max_iterations
        logger.info("Generating scenario #%d", request.index)

        logger.info("[#%d] phase 1: concept", request.index)
        concept = await stages.generate_concept(self.creative, request.index)

        logger.info("[#%d] phase 2: game structure", request.index)
        structure = await stages.design_structure(self.design, concept)

        logger.info("[#%d] phase 3: narrative enrichment", request.index)
        narrative = await stages.enrich_narrative(self.creative, concept, structure)

        logger.info("[#%d] phase 4: feedback loop (%d iterations)", request.index, iterations)
        for i in range(1, iterations + 1):
            logger.info("[#%d]   iteration %d/%d", request.index, i, iterations)
            feedback = await stages.critique(self.design, narrative, structure)
            narrative = await stages.refine_narrative(self.creative, narrative, feedback)
            structure = await stages.adjust_mechanics(self.design, narrative, structure)

        logger.info("[#%d] phase 5: polish", request.index)
        narrative = await stages.polish(self.creative, narrative)

        logger.info("[#%d] phase 6: validation", request.index)
        validation = await stages.validate_design(self.design, narrative, structure)

        logger.info("Scenario #%d complete (valid=%s)", request.index, validation.is_valid)
        return ScenarioArtifact(
            index=request.index,
            concept=concept,
            narrative=narrative,
            game_structure=structure,
            validation=validation,
            iterations=iterations,
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def run_batch(self, count: int | None = None) -> BatchResult:
        """Generate scenarios 1..count in order, isolating per-item failures."""
        count = self.config.batch_size if count is None else count
        result = BatchResult(requested=count)
        started = time.perf_counter()
        logger.info("Starting batch of %d scenarios", count)

        for index in range(1, count + 1):
            try:
                artifact = await self.generate_scenario(ScenarioRequest(index=index))
            except Exception as e:
                logger.exception("Scenario #%d failed; continuing with the next one", index)
                result.failures.append(BatchFailure(index=index, error=f"{type(e).__name__}: {e}"))
                continue
            result.artifacts.append(artifact)
            logger.info("Progress: %d/%d scenarios processed", index, count)

        result.duration_seconds = time.perf_counter() - started
        logger.info(
            "Batch finished: %d/%d scenarios in %.2fs",
            result.succeeded, count, result.duration_seconds,
        )
        return result

    async def generate_multiple_scenarios(self, count: int | None = None) -> list[ScenarioArtifact]:
        """Generate a batch and return the artifacts that succeeded, in index order."""
        return (await self.run_batch(count)).artifacts

    # ------------------------------------------------------------------
    # Single-request orchestration
    # ------------------------------------------------------------------

    async def generate_with_orchestration(self, count: int | None = None) -> list[ScenarioArtifact]:
        """Ask one collaborator session to produce the whole batch with its own sub-agents.

        The result is not split per scenario: it comes back as a single
        artifact whose narrative holds the entire output.
        """
        count = self.config.batch_size if count is None else count
        logger.info("Orchestrated generation of %d scenarios", count)
        text = await run_stage(self.creative, CollaboratorRequest(
            stage="orchestrate",
            instructions=prompts.render_prompt(prompts.ORCHESTRATE, {
                "brief": prompts.BRIEF,
                "count": count,
                "iterations": self.config.max_iterations,
            }),
            behavior_profile=prompts.ORCHESTRATE_PROFILE,
            sub_roles={
                "creative-writer": prompts.CREATIVE_WRITER,
                "game-designer": prompts.GAME_DESIGNER,
                "coordinator": prompts.COORDINATOR,
            },
            permission_mode="acceptEdits",
        ))
        return [ScenarioArtifact(
            index=1,
            concept="",
            narrative=text,
            game_structure=ORCHESTRATED_STRUCTURE,
            iterations=self.config.max_iterations,
        )]
