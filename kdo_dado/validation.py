"""Best-effort decoding of the validate stage's output.

The validating collaborator is asked to finish with a JSON object
{"isValid": bool, "issues": [str, ...]}, but its text is not trusted: it may
wrap the object in prose or markdown fences, or omit it entirely.

decode_validation() reports success or failure as a value. parse_validation()
applies the optimistic policy on top: anything undecodable counts as valid
with no issues.
"""

from __future__ import annotations

import json
import logging
import re
from typing import NamedTuple

from pydantic import ValidationError

from kdo_dado.models import ValidationResult

logger = logging.getLogger(__name__)

# Greedy: first "{" through last "}", across lines.
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

OPTIMISTIC_DEFAULT = ValidationResult(is_valid=True, issues=[])


class DecodeResult(NamedTuple):
    ok: bool
    result: ValidationResult | None = None
    error: str = ""


def decode_validation(text: str) -> DecodeResult:
    match = _OBJECT_RE.search(text)
    if match is None:
        return DecodeResult(ok=False, error="no JSON object found")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        return DecodeResult(ok=False, error=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return DecodeResult(ok=False, error=f"expected an object, got {type(data).__name__}")
    if "isValid" not in data and "is_valid" not in data:
        # An object that omits the verdict is not a pass
        data = {**data, "isValid": False}

    try:
        return DecodeResult(ok=True, result=ValidationResult.model_validate(data))
    except ValidationError as e:
        return DecodeResult(ok=False, error=f"bad field types: {e.error_count()} error(s)")


def parse_validation(text: str) -> ValidationResult:
    """Decode `text`, falling back to the optimistic default on any failure."""
    decoded = decode_validation(text)
    if decoded.ok and decoded.result is not None:
        return decoded.result
    # An undecodable review is reported as valid; a broken design can slip through here.
    logger.warning("Validation output not decodable (%s); assuming valid", decoded.error)
    return OPTIMISTIC_DEFAULT
