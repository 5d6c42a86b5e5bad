"""Core domain models.

All pipeline stages, tools and storage functions operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

# ---------------------------------------------------------------------------
# Requests and configuration
# ---------------------------------------------------------------------------


class ScenarioRequest(BaseModel):
    """One unit of work in a batch, identified by its 1-based index."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)


class GenerationConfig(BaseModel):
    """Settings the coordinator reads for the duration of a run."""

    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(default=3, ge=0)  # critique/refine/adjust rounds
    batch_size: int = Field(default=10, ge=1)


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


class ValidationResult(BaseModel):
    """Outcome of the final design review.

    The wire form uses camelCase (``{"isValid": ..., "issues": [...]}``) since
    that is what the validating collaborator is asked to emit.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_valid: bool = Field(default=True, alias="isValid")
    issues: list[str] = Field(default_factory=list)


class ScenarioArtifact(BaseModel):
    """A finished scenario, as returned to the batch collector."""

    model_config = ConfigDict(frozen=True)

    index: int
    concept: str
    narrative: str
    game_structure: str
    validation: ValidationResult = Field(default_factory=ValidationResult)
    iterations: int


class BatchFailure(BaseModel):
    """A batch item whose pipeline raised; the batch moved on without it."""

    index: int
    error: str


class BatchResult(BaseModel):
    artifacts: list[ScenarioArtifact] = Field(default_factory=list)
    failures: list[BatchFailure] = Field(default_factory=list)
    requested: int
    duration_seconds: float = 0.0

    @computed_field
    @property
    def succeeded(self) -> int:
        return len(self.artifacts)

    @computed_field
    @property
    def validated(self) -> int:
        return sum(1 for a in self.artifacts if a.validation.is_valid)


# ---------------------------------------------------------------------------
# Capability tool I/O
# ---------------------------------------------------------------------------

PlayerHp = Annotated[float, Field(ge=1, le=9999, description="Player hit points")]
BossHp = Annotated[float, Field(ge=1, le=99999, description="Boss hit points")]
Damage = Annotated[float, Field(ge=0, le=1000, description="Damage dealt per turn")]
Turns = Annotated[int, Field(ge=1, le=100, description="Expected battle length in turns")]
NumChoices = Annotated[int, Field(ge=1, le=10, description="Options offered at a decision node")]

Quality = Literal["BASIC", "MEDIUM", "HIGH"]


class BalanceInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_hp: PlayerHp
    boss_hp: BossHp
    player_damage: Damage
    boss_damage: Damage
    turns: Turns


class BalanceReport(BaseModel):
    is_balanced: bool
    balance_score: int
    feedback: list[str]
    turns_to_defeat: int
    turns_to_lose: int


class ChoiceInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    num_choices: NumChoices
    has_consequences: bool
    affects_inventory: bool
    affects_stats: bool


class ChoiceReport(BaseModel):
    complexity: float
    quality: Quality
    notes: list[str]
