"""KDO DADO — multi-agent game scenario generator.

A creative collaborator and a design collaborator take turns on each
scenario: concept, structure, narrative, a fixed number of
critique/refine/adjust rounds, polish, then validation.
"""

from kdo_dado.models import GenerationConfig, ScenarioArtifact, ScenarioRequest, ValidationResult  # noqa: F401
from kdo_dado.pipeline import ScenarioCoordinator  # noqa: F401
