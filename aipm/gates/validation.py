from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import ValidationError, validate

from aipm.errors import PipelineError, SchemaError
from aipm.gates.parsers import extract_json
from aipm.utils.io import read_text

SCHEMAS_DIR = Path(__file__).resolve().parents[1] / "schemas"


@dataclass
class ValidationResult:
    """Either a schema-conforming payload or the reason there is none."""

    payload: Optional[Dict[str, Any]] = None
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict[str, Any]:
    return json.loads(read_text(SCHEMAS_DIR / name))


def validate_reply(raw_text: str, schema_name: str) -> ValidationResult:
    try:
        parsed = extract_json(raw_text)
    except SchemaError as exc:
        return ValidationResult(error=exc)
    if not isinstance(parsed, dict):
        return ValidationResult(
            error=SchemaError(f"Expected a JSON object, got {type(parsed).__name__}.")
        )
    try:
        validate(instance=parsed, schema=load_schema(schema_name))
    except ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        return ValidationResult(error=SchemaError(f"{location}: {exc.message}"))
    return ValidationResult(payload=parsed)
