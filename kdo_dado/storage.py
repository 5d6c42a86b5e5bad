"""Plain-text output files.

Every run overwrites its files wholesale; nothing is read back.

Directory layout:

    {base}/
      scenarios.txt        ← banner + one block per scenario
      scenario-1.txt       ← one block each
      scenario-2.txt
      ...

Block layout (format_scenario):

    ==== SCENARIO #N ====
    <polished narrative>
    ────
    GAME MECHANICS:
    <game structure>
    ────
    ORIGINAL CONCEPT:
    <concept>
    ────
    Validation: VALIDATED | ISSUES: a; b
"""

from __future__ import annotations

from pathlib import Path

from kdo_dado.models import ScenarioArtifact, ValidationResult

RULE = "=" * 80
SEPARATOR = "─" * 80

BANNER = f"""{RULE}
    CHRISTMAS CARDS - VIDEO GAME SCENARIOS
    Generated by KDO DADO - multi-agent system with recursive feedback
{RULE}
"""


def validation_summary(validation: ValidationResult) -> str:
    if validation.is_valid:
        return "VALIDATED"
    return "ISSUES: " + "; ".join(validation.issues)


def format_scenario(artifact: ScenarioArtifact, number: int) -> str:
    """Render one scenario as a text block, numbered `number`."""
    return (
        f"\n{RULE}\n"
        f"SCENARIO #{number}\n"
        f"{RULE}\n\n"
        f"{artifact.narrative}\n\n"
        f"{SEPARATOR}\n\n"
        f"GAME MECHANICS:\n{artifact.game_structure}\n\n"
        f"{SEPARATOR}\n\n"
        f"ORIGINAL CONCEPT:\n{artifact.concept}\n\n"
        f"{SEPARATOR}\n\n"
        f"Validation: {validation_summary(artifact.validation)}\n\n"
        f"{RULE}\n"
    )


def format_batch(artifacts: list[ScenarioArtifact]) -> str:
    blocks = [format_scenario(a, i) for i, a in enumerate(artifacts, start=1)]
    return BANNER + "\n" + "\n\n".join(blocks) + "\n"


class ScenarioStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    def save_batch(self, artifacts: list[ScenarioArtifact], filename: str = "scenarios.txt") -> Path:
        """Write every scenario into one file, replacing any previous run."""
        path = self._base / filename
        path.write_text(format_batch(artifacts), encoding="utf-8")
        return path

    def save_individual(self, artifacts: list[ScenarioArtifact]) -> list[Path]:
        """Write scenario-N.txt for each artifact, numbered by position in the batch.

        Files left over from an earlier, larger run are removed first.
        """
        for stale in self._base.glob("scenario-*.txt"):
            stale.unlink()
        paths: list[Path] = []
        for number, artifact in enumerate(artifacts, start=1):
            path = self._base / f"scenario-{number}.txt"
            path.write_text(format_scenario(artifact, number), encoding="utf-8")
            paths.append(path)
        return paths
