"""KDO DADO — command-line entry point.

Generates a batch of game scenarios and writes them to the output directory.

Usage:
    kdo-dado                       # 10 scenarios, 3 feedback rounds, SDK transport
    kdo-dado --count 2 --iterations 1 --transport echo
    python -m kdo_dado --mode orchestrated
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from kdo_dado.agent_sdk import AgentSdkCollaborator
from kdo_dado.config import Settings, load_settings
from kdo_dado.llm import Collaborator, EchoCollaborator, HttpCollaborator
from kdo_dado.models import BatchResult, GenerationConfig
from kdo_dado.pipeline import ScenarioCoordinator
from kdo_dado.storage import ScenarioStore

logger = logging.getLogger(__name__)

BANNER = """
==============================================================
   KDO DADO - multi-agent game scenario generator
   creative writer + game designer, recursive feedback loop
==============================================================
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kdo-dado", description="KDO DADO scenario generator")
    parser.add_argument("--count", type=int, default=None,
                        help="Number of scenarios (default: KDO_BATCH_SIZE or 10)")
    parser.add_argument("--iterations", type=int, default=None,
                        help="Feedback loop rounds per scenario (default: KDO_MAX_ITERATIONS or 3)")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Output directory (default: KDO_OUTPUT_DIR or ./output)")
    parser.add_argument("--transport", choices=["sdk", "http", "echo"], default=None,
                        help="Collaborator backend (default: KDO_TRANSPORT or sdk)")
    parser.add_argument("--model", default=None, help="Model identifier")
    parser.add_argument("--mode", choices=["pipeline", "orchestrated"], default="pipeline",
                        help="Stage-by-stage pipeline, or one orchestrated request")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    generation = GenerationConfig(
        max_iterations=settings.generation.max_iterations if args.iterations is None else args.iterations,
        batch_size=settings.generation.batch_size if args.count is None else args.count,
    )
    updates: dict = {"generation": generation}
    if args.output_dir is not None:
        updates["output_dir"] = args.output_dir
    if args.transport is not None:
        updates["transport"] = args.transport
    if args.model is not None:
        updates["model"] = args.model
    return settings.model_copy(update=updates)


def make_collaborator(settings: Settings) -> Collaborator:
    if settings.transport == "echo":
        return EchoCollaborator()
    if settings.transport == "http":
        cred = settings.credential
        return HttpCollaborator(
            base_url=settings.base_url,
            api_key=cred.value if cred and cred.kind == "api_key" else "",
            auth_token=cred.value if cred and cred.kind == "auth_token" else "",
            model=settings.model,
        )
    return AgentSdkCollaborator(model=settings.model)


def print_summary(result: BatchResult, iterations: int) -> None:
    print("=" * 60)
    print("GENERATION SUMMARY")
    print("=" * 60)
    print(f"Scenarios generated: {result.succeeded}/{result.requested}")
    print(f"Iterations per scenario: {iterations}")
    print(f"Validated: {result.validated}/{result.succeeded}")
    print(f"Duration: {result.duration_seconds:.2f}s")
    for failure in result.failures:
        print(f"  failed #{failure.index}: {failure.error}")
    print("=" * 60)


async def run(settings: Settings, mode: str) -> int:
    collaborator = make_collaborator(settings)
    coordinator = ScenarioCoordinator(collaborator, collaborator, settings.generation)

    if mode == "orchestrated":
        artifacts = await coordinator.generate_with_orchestration()
        result = BatchResult(artifacts=artifacts, requested=settings.generation.batch_size)
    else:
        result = await coordinator.run_batch()

    print_summary(result, settings.generation.max_iterations)

    if result.requested > 0 and result.succeeded == 0:
        cause = result.failures[0].error if result.failures else "no output"
        print(f"FATAL ERROR: every scenario failed ({cause})", file=sys.stderr)
        return 1

    store = ScenarioStore(settings.output_dir)
    batch_path = store.save_batch(result.artifacts)
    individual = store.save_individual(result.artifacts)
    print(f"Saved {batch_path}")
    print(f"Saved {len(individual)} individual scenario files in {store.base_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(BANNER)

    try:
        settings = apply_overrides(load_settings(), args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if settings.transport != "echo":
        if settings.credential is None:
            print("ERROR: no authentication credential found.", file=sys.stderr)
            print("Set one of these environment variables (or put it in .env):", file=sys.stderr)
            print('  export ANTHROPIC_AUTH_TOKEN="your-token"', file=sys.stderr)
            print('  export ANTHROPIC_API_KEY="your-key"', file=sys.stderr)
            return 1
        print(f"Using {settings.credential.kind} ({settings.transport} transport)")

    try:
        return asyncio.run(run(settings, args.mode))
    except Exception as e:
        logger.exception("Run aborted")
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
