"""
Schema Validation Utilities

Validates serialized Documents before they are turned into models.

Two levels:
- Basic checks (always): required keys, known question types, schema
  version, coordinate ranges. Cheap enough to run on every load.
- Strict checks (``strict=True``): full JSON Schema validation with
  jsonschema against ``document.schema.json``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ..models.variants import QuestionType


# Schema version constants
DOCUMENT_SCHEMA_VERSION = 1


_SCHEMAS: dict[str, dict] = {}
_QUESTION_TYPES = {t.value for t in QuestionType}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_document(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a serialized Document.

    Args:
        data: Document dictionary (as written by serialize_document)
        strict: If True, also validate against the JSON schema

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Document must be an object, got {type(data).__name__}")

    version = data.get("schemaVersion", DOCUMENT_SCHEMA_VERSION)
    if version != DOCUMENT_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported document schema version: {version} (expected {DOCUMENT_SCHEMA_VERSION})",
            path="schemaVersion",
        )

    groups = data.get("questionGroups", [])
    if not isinstance(groups, list):
        raise ValidationError("questionGroups must be a list", path="questionGroups")

    seen_ids: set[str] = set()
    for i, group in enumerate(groups):
        path = f"questionGroups.{i}"
        validate_group(group, path=path)
        if group["id"] in seen_ids:
            raise ValidationError(f"Duplicate group id: {group['id']!r}", path=f"{path}.id")
        seen_ids.add(group["id"])

    if strict:
        schema = _load_schema("document")
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            raise ValidationError(
                f"Schema validation failed: {e.message}",
                path=".".join(str(p) for p in e.absolute_path),
                errors=[e.message],
            )


def validate_group(data: dict[str, Any], *, path: str = "") -> None:
    """Basic checks for a single serialized question group."""
    if not isinstance(data, dict):
        raise ValidationError("Question group must be an object", path=path)

    missing = [f for f in ("id", "questionType") if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )

    if not isinstance(data["id"], str) or not data["id"]:
        raise ValidationError(f"Group id must be a non-empty string, got {data['id']!r}", path=f"{path}.id")

    if not isinstance(data["questionType"], str) or data["questionType"] not in _QUESTION_TYPES:
        raise ValidationError(
            f"Unknown question type: {data['questionType']!r}",
            path=f"{path}.questionType",
        )

    for key in ("questions", "answers", "labelPool", "positions"):
        if key in data and not isinstance(data[key], list):
            raise ValidationError(f"{key} must be a list", path=f"{path}.{key}")

    for j, pos in enumerate(data.get("positions") or []):
        if not isinstance(pos, dict):
            raise ValidationError("Position must be an object", path=f"{path}.positions.{j}")
        for axis in ("x", "y"):
            value = pos.get(axis)
            if not isinstance(value, (int, float)) or not (0 <= value <= 100):
                raise ValidationError(
                    f"Coordinate {axis}={value!r} outside 0-100",
                    path=f"{path}.positions.{j}.{axis}",
                )

