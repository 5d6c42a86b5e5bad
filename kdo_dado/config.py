"""Runtime settings read from the environment (and an optional .env file).

Variables:
  ANTHROPIC_AUTH_TOKEN   bearer token (takes precedence, e.g. behind a proxy)
  ANTHROPIC_API_KEY      API key
  ANTHROPIC_BASE_URL     API root for the http transport
  KDO_TRANSPORT          sdk | http | echo
  KDO_MODEL              model identifier
  KDO_MAX_ITERATIONS     feedback loop rounds per scenario
  KDO_BATCH_SIZE         scenarios per run
  KDO_OUTPUT_DIR         where text files are written
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from kdo_dado.models import GenerationConfig

Transport = Literal["sdk", "http", "echo"]

_DEFAULTS: dict[str, str] = {
    "ANTHROPIC_BASE_URL": "https://api.anthropic.com",
    "KDO_TRANSPORT": "sdk",
    "KDO_MODEL": "claude-sonnet-4-5",
    "KDO_MAX_ITERATIONS": "3",
    "KDO_BATCH_SIZE": "10",
    "KDO_OUTPUT_DIR": "output",
}


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


class Credential(BaseModel):
    kind: Literal["auth_token", "api_key"]
    value: str


class Settings(BaseModel):
    transport: Transport = "sdk"
    model: str = "claude-sonnet-4-5"
    base_url: str = "https://api.anthropic.com"
    output_dir: Path = Path("output")
    generation: GenerationConfig = GenerationConfig()
    credential: Credential | None = None


def find_credential(env: Mapping[str, str]) -> Credential | None:
    """Return the credential to use, auth token first, or None if neither is set."""
    if env.get("ANTHROPIC_AUTH_TOKEN"):
        return Credential(kind="auth_token", value=env["ANTHROPIC_AUTH_TOKEN"])
    if env.get("ANTHROPIC_API_KEY"):
        return Credential(kind="api_key", value=env["ANTHROPIC_API_KEY"])
    return None


def load_settings(env: Mapping[str, str] | None = None, dotenv_path: Path | None = None) -> Settings:
    """Build Settings from `env` (defaults to os.environ after loading .env)."""
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    def get(name: str) -> str:
        return env.get(name) or _DEFAULTS[name]

    try:
        return Settings(
            transport=get("KDO_TRANSPORT"),
            model=get("KDO_MODEL"),
            base_url=get("ANTHROPIC_BASE_URL"),
            output_dir=Path(get("KDO_OUTPUT_DIR")),
            generation=GenerationConfig(
                max_iterations=get("KDO_MAX_ITERATIONS"),
                batch_size=get("KDO_BATCH_SIZE"),
            ),
            credential=find_credential(env),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
