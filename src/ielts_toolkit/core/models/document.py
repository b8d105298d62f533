"""
Module: document

Purpose:
    Provides the top-level authored unit: a Stem (reading passage or
    listening audio) plus an ordered sequence of question groups that the
    Document exclusively owns.

    Every operation returns a new Document; the receiver is never changed,
    so a discarded edit simply leaves the last committed Document in place.

Key Classes:
    - StemKind: PASSAGE or AUDIO
    - Stem: Passage or audio descriptor
    - Document: Stem + groups, with pure group-level operations

Dependencies:
    - dataclasses (std)
    - .groups

Used By:
    - core.utils.serialization
    - authoring.numbering
    - authoring.projection
    - cli
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from .groups import QuestionGroup, group_from_dict

logger = logging.getLogger(__name__)


class StemKind(str, Enum):
    PASSAGE = "passage"
    AUDIO = "audio"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Stem:
    """
    Material the question groups refer to.

    Attributes:
        kind: PASSAGE (reading) or AUDIO (listening)
        title: Display title
        difficulty: Free-form difficulty label ("easy", "band 6", ...)
        content: Passage text (PASSAGE only)
        audio_url: Opaque audio reference (AUDIO only)
        transcript: Optional transcript (AUDIO only)
    """

    kind: StemKind = StemKind.PASSAGE
    title: str = ""
    difficulty: str = ""
    content: str = ""
    audio_url: Optional[str] = None
    transcript: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.kind, StemKind):
            object.__setattr__(self, "kind", StemKind(self.kind))
        if self.kind == StemKind.PASSAGE and self.audio_url:
            raise ValueError("A passage stem cannot carry an audio reference")

    @classmethod
    def passage(cls, title: str, content: str, difficulty: str = "") -> Stem:
        return cls(StemKind.PASSAGE, title, difficulty, content=content)

    @classmethod
    def audio(cls, title: str, audio_url: str, transcript: str = "", difficulty: str = "") -> Stem:
        return cls(StemKind.AUDIO, title, difficulty, audio_url=audio_url, transcript=transcript)

    def to_dict(self) -> dict:
        d = {"kind": self.kind.value, "title": self.title, "difficulty": self.difficulty}
        if self.kind == StemKind.PASSAGE:
            d["content"] = self.content
        else:
            d["audioUrl"] = self.audio_url or ""
            if self.transcript:
                d["transcript"] = self.transcript
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Stem:
        return cls(
            kind=StemKind(data.get("kind", "passage")),
            title=data.get("title", ""),
            difficulty=data.get("difficulty", ""),
            content=data.get("content", ""),
            audio_url=data.get("audioUrl") or None,
            transcript=data.get("transcript", ""),
        )


@dataclass(frozen=True)
class Document:
    """
    Stem plus an ordered sequence of question groups.

    Attributes:
        stem: Passage or audio descriptor
        groups: Question groups in display order

    Invariants:
        - Group ids are unique
    """

    stem: Stem = field(default_factory=Stem)
    groups: Tuple[QuestionGroup, ...] = ()

    def __post_init__(self) -> None:
        ids = [g.id for g in self.groups]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate question group ids: {ids}")

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def group_ids(self) -> Tuple[str, ...]:
        return tuple(g.id for g in self.groups)

    def index_of(self, group_id: str) -> int:
        for i, group in enumerate(self.groups):
            if group.id == group_id:
                return i
        raise KeyError(f"No question group with id {group_id!r}")

    def get_group(self, group_id: str) -> QuestionGroup:
        """Return the group with ``group_id`` (raises KeyError)."""
        return self.groups[self.index_of(group_id)]

    # ─────────────────────────────────────────────────────────────────────────
    # Operations (each returns a new Document)
    # ─────────────────────────────────────────────────────────────────────────

    def add_group(self, group: QuestionGroup, index: Optional[int] = None) -> Document:
        """Insert ``group`` at ``index`` (default: append)."""
        groups = list(self.groups)
        if index is None:
            groups.append(group)
        else:
            groups.insert(index, group)
        logger.debug(f"Added group {group.id} ({group.question_type.value})")
        return replace(self, groups=tuple(groups))

    def remove_group(self, group_id: str) -> Document:
        """
        Remove a group. Callers holding a selection on ``group_id`` must
        drop it afterwards.
        """
        index = self.index_of(group_id)
        logger.debug(f"Removed group {group_id}")
        return replace(self, groups=self.groups[:index] + self.groups[index + 1:])

    def move_group(self, group_id: str, new_index: int) -> Document:
        groups = list(self.groups)
        group = groups.pop(self.index_of(group_id))
        new_index = max(0, min(new_index, len(groups)))
        groups.insert(new_index, group)
        return replace(self, groups=tuple(groups))

    def replace_group(self, group: QuestionGroup) -> Document:
        """Swap in a new version of an existing group (matched by id)."""
        index = self.index_of(group.id)
        current = self.groups[index]
        if group.question_type != current.question_type:
            raise ValueError(
                f"Question type of group {group.id!r} is fixed "
                f"({current.question_type.value} -> {group.question_type.value})"
            )
        groups = list(self.groups)
        groups[index] = group
        return replace(self, groups=tuple(groups))

    def update_group(
        self,
        group_id: str,
        operation: Callable[..., QuestionGroup],
        *args: Any,
        **kwargs: Any,
    ) -> Document:
        """
        Apply a pure group operation and commit the result.

        Args:
            group_id: Group to edit
            operation: Function ``(group, *args, **kwargs) -> group``
                (typically from ``authoring.editing``)

        Returns:
            New Document, or ``self`` if the operation was a no-op

        Raises:
            KeyError: If no group has ``group_id``
            DanglingReference: If the result breaks a group invariant
        """
        from ..schemas.invariants import check_invariants

        current = self.get_group(group_id)
        updated = operation(current, *args, **kwargs)
        if updated is current or updated == current:
            return self
        if updated.id != current.id:
            raise ValueError(f"Operation changed the id of group {group_id!r}")
        check_invariants(updated)
        return self.replace_group(updated)

    def with_stem(self, stem: Stem) -> Document:
        return replace(self, stem=stem)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "stem": self.stem.to_dict(),
            "questionGroups": [g.to_dict() for g in self.groups],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Document:
        return cls(
            stem=Stem.from_dict(data.get("stem") or {}),
            groups=tuple(group_from_dict(g) for g in data.get("questionGroups", [])),
        )
