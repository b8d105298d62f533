"""
Module: authoring.config

Purpose:
    Configuration dataclass for the authoring engines. Immutable
    configuration with validation on construction, optionally loaded from
    a JSON file.

Key Classes:
    - AuthoringConfig: Defaults used when creating and editing groups

Key Functions:
    - load_config(path): Read an AuthoringConfig from JSON, falling back
      to defaults on a missing or malformed file

Dependencies:
    - dataclasses (std)
    - json (std)

Used By:
    - authoring.registry: Default group shapes
    - authoring.editing: Pool minimums, word-limit labels
    - cli: --config option
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_NOTE_TEXT = """Example Note Title

This is an example note. You can include (1)_______ here where students need to fill in the blanks.
The note can have multiple paragraphs with more (2)_______ in them.

• Points can be included as bullet points
• With (3)_______ in them as well
• Each point might have a different topic

You can also include tables or lists if needed."""

DEFAULT_WORD_LIMIT_LABELS: Dict[int, str] = {
    1: "ONE WORD ONLY",
    2: "NO MORE THAN TWO WORDS",
    3: "NO MORE THAN THREE WORDS",
}


@dataclass(frozen=True)
class AuthoringConfig:
    """
    Configuration for the authoring engines (immutable).

    Attributes:
        default_pool_size: Entries in a new matching-family pool (when the
            variant has no default of its own)
        min_pool_size: Smallest pool an edit may shrink a pool to
        default_option_count: Options on a new multiple-choice item
        default_answers_required: Letters per multiple-answer item
        default_paragraph_count: Paragraph letters for matching information
        default_table_size: (rows, columns) of a new table, header included
        coordinate_precision: Decimal places kept for percent coordinates
        word_limit_labels: Word limit -> instruction text
        default_note_text: Example text for a new note completion group

    Example:
        >>> AuthoringConfig(min_pool_size=3).min_pool_size
        3
    """

    # Pools
    default_pool_size: int = 3
    min_pool_size: int = 2

    # Items
    default_option_count: int = 4
    default_answers_required: int = 2
    default_paragraph_count: int = 6
    default_table_size: tuple = (3, 3)

    # Coordinates
    coordinate_precision: int = 1

    # Text
    word_limit_labels: Dict[int, str] = field(default_factory=lambda: dict(DEFAULT_WORD_LIMIT_LABELS))
    default_note_text: str = DEFAULT_NOTE_TEXT

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.min_pool_size < 1:
            raise ValueError(f"min_pool_size must be positive: {self.min_pool_size}")
        if self.default_pool_size < self.min_pool_size:
            raise ValueError(
                f"default_pool_size ({self.default_pool_size}) must be at least "
                f"min_pool_size ({self.min_pool_size})"
            )
        if self.default_option_count < 2:
            raise ValueError(f"default_option_count must be at least 2: {self.default_option_count}")
        if self.default_answers_required < 1:
            raise ValueError(f"default_answers_required must be positive: {self.default_answers_required}")
        if self.default_paragraph_count < 1:
            raise ValueError(f"default_paragraph_count must be positive: {self.default_paragraph_count}")
        rows, cols = self.default_table_size
        if rows < 2 or cols < 2:
            raise ValueError(f"default_table_size must be at least 2x2: {self.default_table_size}")
        if not 0 <= self.coordinate_precision <= 4:
            raise ValueError(f"coordinate_precision must be 0-4: {self.coordinate_precision}")

    def word_limit_text(self, limit: Optional[int]) -> str:
        """Instruction text for a word limit ("" when unknown or unset)."""
        if limit is None:
            return ""
        return self.word_limit_labels.get(limit, "")

    @classmethod
    def from_dict(cls, data: dict) -> AuthoringConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")
        kwargs = {k: v for k, v in data.items() if k in known}
        if "word_limit_labels" in kwargs:
            kwargs["word_limit_labels"] = {int(k): v for k, v in kwargs["word_limit_labels"].items()}
        if "default_table_size" in kwargs:
            kwargs["default_table_size"] = tuple(kwargs["default_table_size"])
        return cls(**kwargs)


DEFAULT_CONFIG = AuthoringConfig()


def load_config(path: Optional[Path]) -> AuthoringConfig:
    """
    Load configuration from a JSON file.

    Missing files, unreadable JSON and invalid values all fall back to the
    defaults with a warning, so a bad config never blocks authoring.
    """
    if path is None:
        return DEFAULT_CONFIG
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(f"Config file not found: {path}; using defaults")
        return DEFAULT_CONFIG
    except json.JSONDecodeError as e:
        logger.warning(f"Config file {path} is not valid JSON ({e}); using defaults")
        return DEFAULT_CONFIG
    if not isinstance(payload, dict):
        logger.warning(f"Config file {path} must contain an object; using defaults")
        return DEFAULT_CONFIG
    try:
        return AuthoringConfig.from_dict(payload)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid config in {path} ({e}); using defaults")
        return DEFAULT_CONFIG
