"""Handlebars prompts, behavior profiles and sub-roles for every stage.

Each stage has:
  - a template rendered with the stage inputs (triple-stash, so collaborator
    text is inserted verbatim rather than HTML-escaped),
  - a behavior profile (the collaborator's system instructions),
  - one specialist sub-role it may delegate to.
"""

from collections.abc import Callable
from typing import Any

import pybars

from kdo_dado.llm import SubRole

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return compiled(context)
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── Shared brief ─────────────────────────────────────────

BRIEF = """CONTEXT:
- A Christmas gift for a 30-year-old sister, recently married
- Format: old-school text adventure with choices and actions
- Ending: a Pokemon-style turn-based battle
- Heroine: a dentist who must travel to defeat a boss"""


# ── Stage templates ──────────────────────────────────────

CONCEPT = """You are an expert in creative narrative for video games.

Generate an original, humorous scenario CONCEPT for a Christmas card game.

{{{brief}}}

Scenario #{{index}} - it must be UNIQUE and DIFFERENT from every other scenario.

Provide:
1. A catchy TITLE
2. The initial SETUP (why the dentist sets off)
3. The VILLAIN (something unexpected and funny)
4. The LOCATIONS visited (2-3 original places)
5. The TONE (humor, romance, suspense, ...)

Answer in a STRUCTURED FORMAT with clear sections."""

STRUCTURE = """You are a game design expert specialising in text adventures and RPGs.

Create the interactive GAME STRUCTURE for this concept:

CONCEPT:
{{{concept}}}

1. TEXT ADVENTURE PHASE: 3-4 decision nodes with multiple choices, each with
   consequences; a small inventory (2-3 items); player stats (HP, Charisma, Laughter).
2. BATTLE PHASE: turn-based combat, 4-6 special "dentist" attacks, a
   weakness/exploit system, a boss with 3 phases of attack patterns.
3. SPECIAL MECHANICS: marriage references (couple bonus), humor-based powers,
   Christmas elements.

Use the balance and choice-complexity tools to check your numbers.

FORMAT: a detailed structure with stats, choices and combat mechanics."""

ENRICH = """You are an expert in dialogue writing and narration.

Enrich this scenario with memorable dialogue and vivid descriptions.

CONCEPT:
{{{concept}}}

GAME STRUCTURE:
{{{structure}}}

Add:
1. Key dialogues (2-3 memorable conversations)
2. Sensory descriptions of the locations
3. Moments of comedy or emotion
4. Subtle, funny references to the sister's wedding
5. Interactive text elements

FORMAT: the complete enriched scenario."""

CRITIQUE = """You are a critical but constructive game designer.

Analyse this scenario from a PLAYABILITY point of view:

NARRATIVE:
{{{narrative}}}

GAME STRUCTURE:
{{{structure}}}

Give feedback on:
1. PLAYABILITY: are the choices clear and meaningful?
2. BALANCE: is the battle too easy or too hard?
3. IMMERSION: does the text work in an interactive format?
4. ORIGINALITY: are the mechanics unique?
5. PROBLEMS: what does not work?

FORMAT: structured feedback with critical points and concrete suggestions."""

REFINE = """You are an expert in creative rewriting.

CURRENT NARRATIVE:
{{{narrative}}}

FEEDBACK FROM THE GAME DESIGNER:
{{{feedback}}}

Improve the narrative by addressing every point of feedback: fix the issues,
improve the flow, make dialogue more natural, add memorable moments, keep the
humor and Christmas warmth.

Return the complete IMPROVED VERSION of the scenario."""

ADJUST = """You are an expert in game balancing.

Refine the game mechanics to fit the narrative:

NARRATIVE:
{{{narrative}}}

CURRENT MECHANICS:
{{{structure}}}

Improve stat and damage balance, clarity of choices and consequences,
strategic depth of the battle, progression and rewards.

Return the REFINED GAME MECHANICS with specific numbers and clear systems."""

POLISH = """You are a professional editor.

Polish this scenario for final production:

SCENARIO:
{{{narrative}}}

Check grammar and spelling, narrative consistency, a tone fit for Christmas,
clear professional formatting, originality.

Return the FINAL SCENARIO, perfectly formatted and ready to use in a game."""

VALIDATE = """You are an expert QA tester.

Validate this complete scenario:

SCENARIO:
{{{narrative}}}

{{{structure}}}

Checklist:
- Choices are consistent
- The battle is balanced and playable
- No impossible dead ends
- Stats and mechanics work
- Progression is logical
- It is fun and engaging

Use the available tools to check balance calculations and choice complexity.

Reply with JSON only:
{
  "isValid": true or false,
  "issues": ["list of problems found"]
}"""

ORCHESTRATE = """You are a game scenario generation coordinator.

Your task: generate {{count}} unique, complete game scenarios for a Christmas gift.

{{{brief}}}

For each scenario:
1. Generate a unique concept with villain, locations and tone
2. Create the game structure with stats, choices and combat mechanics
3. Write the full narrative with dialogue and descriptions
4. Iterate {{iterations}} times with self-critique to refine quality
5. Validate balance and playability

Each scenario must be DIFFERENT: vary villains, locations, mechanics and tone.
Output every complete scenario with all details (concept, narrative, mechanics, validation)."""


# ── Behavior profiles ────────────────────────────────────

CONCEPT_PROFILE = """You are a creative writing expert specialising in video game narratives.
You create engaging, humorous and emotionally resonant scenarios for text adventures.
The work is a Christmas gift: fun, surprising and heartwarming."""

STRUCTURE_PROFILE = """You are a game design expert specialising in text adventures and RPG mechanics.
You create balanced, engaging systems with clear progression and meaningful choices."""

ENRICH_PROFILE = """You are an expert dialogue writer and narrative designer.
You write natural, character-driven dialogue and vivid, sensory descriptions."""

CRITIQUE_PROFILE = """You are a critical but constructive game designer.
You give honest, actionable feedback on playability, balance and polish."""

REFINE_PROFILE = """You are an expert creative editor and rewrite specialist.
You apply feedback while keeping the content's voice and what already works."""

ADJUST_PROFILE = """You are a game balance and mechanics expert.
You understand damage curves, progression systems and player agency,
and you produce specific, implementable mechanics with clear numbers."""

POLISH_PROFILE = """You are a professional editor and proofreader.
You ensure perfect grammar, spelling and formatting while keeping the voice and charm."""

VALIDATE_PROFILE = """You are a meticulous QA tester.
You use all available tools to validate game designs and catch balance issues,
logical inconsistencies and gameplay problems.
Return ONLY valid JSON as your final response."""

ORCHESTRATE_PROFILE = """You are a creative game scenario generator using multi-agent collaboration.
You coordinate creative writing and game design expertise and iterate on your
work to ensure quality and uniqueness."""


# ── Sub-roles ────────────────────────────────────────────

CONCEPT_REFINER = SubRole(
    description="Expert in refining creative concepts for uniqueness and quality",
    behavior_profile="You review creative concepts and suggest improvements that make them more unique, engaging and well-structured.",
    capability_tier="haiku",
)
BALANCE_EXPERT = SubRole(
    description="Expert in game balance and difficulty tuning",
    behavior_profile="You ensure challenges are fair but engaging, with good risk/reward ratios.",
    capability_tier="haiku",
)
DIALOGUE_SPECIALIST = SubRole(
    description="Expert in writing natural, engaging dialogue",
    behavior_profile="You make conversations flow naturally, reveal character and advance the plot.",
    capability_tier="sonnet",
)
QA_TESTER = SubRole(
    description="Expert QA tester for identifying playability issues",
    behavior_profile="You identify bugs, balance issues, confusing elements and gameplay problems.",
    capability_tier="sonnet",
)
EDITOR = SubRole(
    description="Expert editor for refining narrative based on feedback",
    behavior_profile="You make sure all feedback is addressed while keeping narrative quality and voice.",
    capability_tier="sonnet",
)
MATH_EXPERT = SubRole(
    description="Expert in game math and damage calculations",
    behavior_profile="You balance the game math: damage curves, XP requirements and stat scaling.",
    capability_tier="haiku",
)
PROOFREADER = SubRole(
    description="Expert proofreader for the final quality check",
    behavior_profile="You catch every error and ensure a professional presentation.",
    capability_tier="haiku",
)

CREATIVE_WRITER = SubRole(
    description="Creative writing expert for game narratives, dialogue and stories.",
    behavior_profile=(
        "You create engaging concepts with unique hooks, rich dialogue, vivid "
        "descriptions and humorous, emotional moments fit for a Christmas gift."
    ),
    capability_tier="sonnet",
)
GAME_DESIGNER = SubRole(
    description="Game design expert for interactive narratives, branching choices and RPG battles.",
    behavior_profile=(
        "You design meaningful choices, branching storylines with consequences, "
        "Pokemon-style turn-based combat, character progression and difficulty curves. "
        "Your designs are playable, clear and favour fun over complexity."
    ),
    capability_tier="sonnet",
)
COORDINATOR = SubRole(
    description="Main coordinator that orchestrates the multi-agent scenario generation process",
    behavior_profile=(
        "You manage the workflow between the creative writing and game design agents, "
        "make sure every scenario is complete, validated and unique, and track progress."
    ),
    capability_tier="sonnet",
)
