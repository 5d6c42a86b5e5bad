"""Game-design capability tools, exposed over MCP.

Tools:
  - validate_balance(...)             — battle length and fairness from raw stats
  - calculate_choice_complexity(...)  — depth score for one decision node

Both are pure functions of their input. The evaluators below validate their
own parameters and raise InvalidToolInput, so a bad call is reported to the
calling model as a tool error rather than aborting the pipeline.

Usage (the Agent SDK transport launches it this way):
    python -m kdo_dado.tools
"""

import math
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from kdo_dado.models import (
    BalanceInput,
    BalanceReport,
    BossHp,
    ChoiceInput,
    ChoiceReport,
    Damage,
    NumChoices,
    PlayerHp,
    Turns,
)

# Turn count reported when a side deals no damage and so never wins.
NEVER_TURNS = 1_000_000


class InvalidToolInput(ValueError):
    """Raised when a tool receives parameters outside their declared ranges."""


def _ceil_turns(hp: float, damage: float) -> int:
    if damage == 0:
        return NEVER_TURNS
    return math.ceil(hp / damage)


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------

def evaluate_balance(**params: object) -> BalanceReport:
    """Score a boss fight from both sides' hit points and damage per turn."""
    try:
        args = BalanceInput.model_validate(params)
    except ValidationError as e:
        raise InvalidToolInput(f"validate_balance: {e}") from e

    turns_to_defeat = _ceil_turns(args.boss_hp, args.player_damage)
    turns_to_lose = _ceil_turns(args.player_hp, args.boss_damage)

    score = 0
    feedback: list[str] = []

    if args.player_damage == 0:
        feedback.append("Player deals no damage - the boss can never be defeated")
    if args.boss_damage == 0:
        feedback.append("Boss deals no damage - the player can never lose")

    if turns_to_defeat < 3:
        feedback.append("Boss too weak - will be defeated in under 3 turns")
        score -= 2
    elif turns_to_defeat > 20:
        feedback.append("Boss too strong - battle will take over 20 turns")
        score -= 2
    else:
        feedback.append(f"Good balance: ~{turns_to_defeat} turns to defeat boss")
        score += 2

    if turns_to_lose < 2:
        feedback.append("Player dies too quickly")
        score -= 2
    elif turns_to_lose > 15:
        feedback.append("Player has good survivability")
        score += 1

    return BalanceReport(
        is_balanced=score >= 0,
        balance_score=score,
        feedback=feedback,
        turns_to_defeat=turns_to_defeat,
        turns_to_lose=turns_to_lose,
    )


def evaluate_choice_complexity(**params: object) -> ChoiceReport:
    """Rate the branching depth of a decision node."""
    try:
        args = ChoiceInput.model_validate(params)
    except ValidationError as e:
        raise InvalidToolInput(f"calculate_choice_complexity: {e}") from e

    complexity = 1.0
    notes: list[str] = []

    if args.num_choices > 2:
        complexity += args.num_choices * 0.5
        notes.append(f"Multiple choices ({args.num_choices}) add complexity")
    if args.has_consequences:
        complexity += 1
        notes.append("Choices with consequences add replay value")
    if args.affects_inventory:
        complexity += 0.5
        notes.append("Inventory integration adds depth")
    if args.affects_stats:
        complexity += 0.5
        notes.append("Stat changes add strategic elements")

    if complexity > 3:
        quality = "HIGH"
    elif complexity > 2:
        quality = "MEDIUM"
    else:
        quality = "BASIC"

    return ChoiceReport(complexity=complexity, quality=quality, notes=notes)


# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------

mcp = FastMCP("game-design-tools")


@mcp.tool()
def validate_balance(
    player_hp: PlayerHp,
    boss_hp: BossHp,
    player_damage: Damage,
    boss_damage: Damage,
    turns: Turns,
) -> dict:
    """Validate game balance by checking stats and damage calculations."""
    return evaluate_balance(
        player_hp=player_hp,
        boss_hp=boss_hp,
        player_damage=player_damage,
        boss_damage=boss_damage,
        turns=turns,
    ).model_dump()


@mcp.tool()
def calculate_choice_complexity(
    num_choices: NumChoices,
    has_consequences: bool,
    affects_inventory: bool,
    affects_stats: bool,
) -> dict:
    """Calculate the complexity and branching factor of game choices."""
    return evaluate_choice_complexity(
        num_choices=num_choices,
        has_consequences=has_consequences,
        affects_inventory=affects_inventory,
        affects_stats=affects_stats,
    ).model_dump()


# ---------------------------------------------------------------------------
# Binding handed to collaborators
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolBinding:
    """A set of MCP tools a collaborator may call.

    `server` is used in-process (HTTP transport); `module` is what a
    subprocess-based transport runs with ``python -m`` to serve the same tools.
    """

    name: str
    server: FastMCP
    module: str
    tool_names: tuple[str, ...]

    @property
    def allowed_tools(self) -> list[str]:
        """Fully-qualified tool identifiers, e.g. mcp__game-design-tools__validate_balance."""
        return [f"mcp__{self.name}__{tool}" for tool in self.tool_names]


GAME_DESIGN_TOOLS = ToolBinding(
    name="game-design-tools",
    server=mcp,
    module="kdo_dado.tools",
    tool_names=("validate_balance", "calculate_choice_complexity"),
)


if __name__ == "__main__":
    mcp.run()
