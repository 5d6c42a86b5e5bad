"""Scenario pipeline: stage functions and the coordinator that sequences them.

One scenario:
  concept → structure → enrich → (critique → refine → adjust) × max_iterations
  → polish → validate

Stage ownership:
  creative  — concept, enrich, refine, polish
  design    — structure, critique, adjust, validate (structure/adjust/validate
              may call the game-design tools)
"""

from .coordinator import ScenarioCoordinator  # noqa: F401
from .stages import (  # noqa: F401
    adjust_mechanics,
    critique,
    design_structure,
    enrich_narrative,
    generate_concept,
    polish,
    refine_narrative,
    validate_design,
)
