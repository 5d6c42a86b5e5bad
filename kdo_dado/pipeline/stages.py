"""Pipeline stages — one collaborator invocation each.

Creative collaborator:  concept, enrich, refine, polish
Design collaborator:    structure, critique, adjust, validate

Structure, adjust and validate bind the game-design tools. Every stage returns
the accumulated text of its collaborator, except validate, which decodes it
into a ValidationResult. No stage retries; CollaboratorError propagates.
"""

from __future__ import annotations

import logging

from kdo_dado import prompts
from kdo_dado.llm import Collaborator, CollaboratorRequest, run_stage
from kdo_dado.models import ValidationResult
from kdo_dado.tools import GAME_DESIGN_TOOLS
from kdo_dado.validation import parse_validation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Creative stages
# ---------------------------------------------------------------------------

async def generate_concept(creative: Collaborator, index: int) -> str:
    """Stage 1: a fresh concept, seeded only by the scenario index."""
    return await run_stage(creative, CollaboratorRequest(
        stage="concept",
        instructions=prompts.render_prompt(prompts.CONCEPT, {"brief": prompts.BRIEF, "index": index}),
        behavior_profile=prompts.CONCEPT_PROFILE,
        sub_roles={"concept-refiner": prompts.CONCEPT_REFINER},
    ))


async def enrich_narrative(creative: Collaborator, concept: str, structure: str) -> str:
    return await run_stage(creative, CollaboratorRequest(
        stage="enrich",
        instructions=prompts.render_prompt(prompts.ENRICH, {"concept": concept, "structure": structure}),
        behavior_profile=prompts.ENRICH_PROFILE,
        sub_roles={"dialogue-specialist": prompts.DIALOGUE_SPECIALIST},
    ))


async def refine_narrative(creative: Collaborator, narrative: str, feedback: str) -> str:
    return await run_stage(creative, CollaboratorRequest(
        stage="refine",
        instructions=prompts.render_prompt(prompts.REFINE, {"narrative": narrative, "feedback": feedback}),
        behavior_profile=prompts.REFINE_PROFILE,
        sub_roles={"editor": prompts.EDITOR},
    ))


async def polish(creative: Collaborator, narrative: str) -> str:
    return await run_stage(creative, CollaboratorRequest(
        stage="polish",
        instructions=prompts.render_prompt(prompts.POLISH, {"narrative": narrative}),
        behavior_profile=prompts.POLISH_PROFILE,
        sub_roles={"proofreader": prompts.PROOFREADER},
    ))


# ---------------------------------------------------------------------------
# Design stages
# ---------------------------------------------------------------------------

async def design_structure(design: Collaborator, concept: str) -> str:
    return await run_stage(design, CollaboratorRequest(
        stage="structure",
        instructions=prompts.render_prompt(prompts.STRUCTURE, {"concept": concept}),
        behavior_profile=prompts.STRUCTURE_PROFILE,
        sub_roles={"balance-expert": prompts.BALANCE_EXPERT},
        tools=GAME_DESIGN_TOOLS,
    ))


async def critique(design: Collaborator, narrative: str, structure: str) -> str:
    """Playability feedback on the current narrative/structure pair."""
    return await run_stage(design, CollaboratorRequest(
        stage="critique",
        instructions=prompts.render_prompt(prompts.CRITIQUE, {"narrative": narrative, "structure": structure}),
        behavior_profile=prompts.CRITIQUE_PROFILE,
        sub_roles={"qa-tester": prompts.QA_TESTER},
    ))


async def adjust_mechanics(design: Collaborator, narrative: str, structure: str) -> str:
    return await run_stage(design, CollaboratorRequest(
        stage="adjust",
        instructions=prompts.render_prompt(prompts.ADJUST, {"narrative": narrative, "structure": structure}),
        behavior_profile=prompts.ADJUST_PROFILE,
        sub_roles={"math-expert": prompts.MATH_EXPERT},
        tools=GAME_DESIGN_TOOLS,
    ))


async def validate_design(design: Collaborator, narrative: str, structure: str) -> ValidationResult:
    """Final stage: joint review of narrative and structure.

    Output that cannot be decoded is treated as a pass (see parse_validation).
    """
    text = await run_stage(design, CollaboratorRequest(
        stage="validate",
        instructions=prompts.render_prompt(prompts.VALIDATE, {"narrative": narrative, "structure": structure}),
        behavior_profile=prompts.VALIDATE_PROFILE,
        tools=GAME_DESIGN_TOOLS,
    ))
    result = parse_validation(text)
    if not result.is_valid:
        logger.info("Validation reported %d issue(s)", len(result.issues))
    return result
