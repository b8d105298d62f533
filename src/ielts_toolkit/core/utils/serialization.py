"""
Serialization Utilities

Provides to/from JSON utilities for Documents and question groups.

- Clean separation: `serialize_*` and `deserialize_*` functions
- All models have `to_dict()` and `from_dict()` methods
- Validation via schemas before deserialization
- Optional repair on load: re-derive everything that is derivable (gap
  answers, numbers, pool letters) and clear references that dangle
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..models.document import Document
from ..models.groups import QuestionGroup, group_from_dict
from ..schemas.validator import DOCUMENT_SCHEMA_VERSION, validate_document, validate_group

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Question Group Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_group(group: QuestionGroup) -> dict[str, Any]:
    """Serialize a single question group."""
    return group.to_dict()


def deserialize_group(data: dict[str, Any], *, validate: bool = True) -> QuestionGroup:
    """
    Deserialize a single question group.

    Raises:
        ValidationError: If validate=True and data is invalid
        UnsupportedVariant: If the question type is unknown
    """
    if validate:
        validate_group(data)
    return group_from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# Document Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_document(document: Document) -> dict[str, Any]:
    """
    Serialize a Document to a dictionary.

    The output can be written to JSON and will pass schema validation.
    """
    return {"schemaVersion": DOCUMENT_SCHEMA_VERSION, **document.to_dict()}


def deserialize_document(
    data: dict[str, Any],
    *,
    validate: bool = True,
    strict: bool = False,
    repair: bool = False,
) -> Document:
    """
    Deserialize a Document from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate before deserialization
        strict: Use the full JSON schema when validating
        repair: Re-derive answers/numbers/letters and clear dangling
            references instead of trusting the stored values

    Returns:
        Document instance

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If data cannot be parsed into models
    """
    if validate:
        validate_document(data, strict=strict)

    document = Document.from_dict(data)
    if repair:
        from ...authoring.editing import repair_group

        repaired = tuple(repair_group(g) for g in document.groups)
        changed = [g.id for g, r in zip(document.groups, repaired) if g != r]
        if changed:
            logger.warning(f"Repaired {len(changed)} question group(s): {changed}")
            document = Document(stem=document.stem, groups=repaired)
    return document


# ─────────────────────────────────────────────────────────────────────────────
# File I/O
# ─────────────────────────────────────────────────────────────────────────────

def load_document_json(
    path: Path,
    *,
    validate: bool = True,
    strict: bool = False,
    repair: bool = False,
) -> Document:
    """
    Load a Document from a JSON file.

    Raises:
        FileNotFoundError: If path doesn't exist
        ValidationError: If validation fails
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return deserialize_document(data, validate=validate, strict=strict, repair=repair)


def save_document_json(document: Document, path: Path) -> None:
    """Save a Document to a JSON file (parent directories are created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_document(document), f, indent=2, ensure_ascii=False)
        f.write("\n")
