"""
Module: registry

Purpose:
    Variant registry: builds default-populated question groups for a tag
    and exposes each variant's structural constraints. Every group it
    returns already satisfies the group invariants.

Key Functions:
    - create_group(tag, group_id=None, config=None): New default group
    - get_constraints(tag): VariantConstraints for a tag
    - supported_variants(): All tags in declaration order
    - question_type_label(tag): Human-readable title

Dependencies:
    - uuid (std): Group ids
    - .config, .reconcile, .sequencer

Used By:
    - authoring.editing
    - cli: ``new`` and ``variants`` commands
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional, Tuple, Union

from ..core.models import (
    CHART_TEXT,
    CompletionGroup,
    DiagramGroup,
    GapTextGroup,
    MatchingGroup,
    MultiAnswerGroup,
    MultipleChoiceGroup,
    PoolEntry,
    QuestionGroup,
    QuestionType,
    StatementGroup,
    TableGroup,
    VariantConstraints,
    constraints_for,
    parse_question_type,
)
from .config import DEFAULT_CONFIG, AuthoringConfig
from .reconcile import reconcile
from .sequencer import index_to_letter

logger = logging.getLogger(__name__)

Factory = Callable[[str, QuestionType, AuthoringConfig], QuestionGroup]


def _pool(size: int) -> Tuple[PoolEntry, ...]:
    return tuple(PoolEntry(index_to_letter(i)) for i in range(size))


def default_pool_size(tag: QuestionType, config: AuthoringConfig) -> int:
    if tag == QuestionType.MATCHING_INFORMATION:
        return config.default_paragraph_count
    if tag == QuestionType.MULTIPLE_CHOICE_MULTIPLE_ANSWERS:
        return max(constraints_for(tag).default_pool_size, config.min_pool_size)
    return config.default_pool_size


def min_pool_size(tag: QuestionType, config: AuthoringConfig) -> int:
    """Paragraph letters may shrink to one; every other pool to the configured minimum."""
    if tag == QuestionType.MATCHING_INFORMATION:
        return constraints_for(tag).min_pool_size
    return config.min_pool_size


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────

def _multiple_choice(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    return MultipleChoiceGroup(group_id, tag)


def _multi_answer(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    return MultiAnswerGroup(
        group_id, tag,
        pool=_pool(default_pool_size(tag, config)),
        answers_required=config.default_answers_required,
    )


def _statement(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    return StatementGroup(group_id, tag)


def _completion(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    return CompletionGroup(group_id, tag)


def _matching(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    return MatchingGroup(group_id, tag, pool=_pool(default_pool_size(tag, config)))


def _gap_text(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    grammar = constraints_for(tag).marker_grammar
    text = config.default_note_text if tag == QuestionType.NOTE_COMPLETION else ""
    return GapTextGroup(
        group_id, tag,
        text=text,
        marker_grammar=grammar,
        answers=reconcile(text, (), grammar),
    )


def _table(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    rows, cols = config.default_table_size
    return TableGroup(group_id, tag, rows=tuple(("",) * cols for _ in range(rows)))


def _diagram(group_id: str, tag: QuestionType, config: AuthoringConfig) -> QuestionGroup:
    if tag == QuestionType.FLOW_CHART_COMPLETION:
        return DiagramGroup(group_id, tag, chart_type=CHART_TEXT)
    return DiagramGroup(group_id, tag)


_FACTORIES: dict[QuestionType, Factory] = {
    QuestionType.MULTIPLE_CHOICE: _multiple_choice,
    QuestionType.MULTIPLE_CHOICE_MULTIPLE_ANSWERS: _multi_answer,
    QuestionType.TRUE_FALSE_NOT_GIVEN: _statement,
    QuestionType.YES_NO_NOT_GIVEN: _statement,
    QuestionType.MATCHING: _matching,
    QuestionType.MATCHING_INFORMATION: _matching,
    QuestionType.MATCHING_HEADINGS: _matching,
    QuestionType.MATCHING_FEATURES: _matching,
    QuestionType.MATCHING_SENTENCE_ENDINGS: _matching,
    QuestionType.SENTENCE_COMPLETION: _completion,
    QuestionType.FORM_COMPLETION: _completion,
    QuestionType.SHORT_ANSWER: _completion,
    QuestionType.SUMMARY_COMPLETION: _gap_text,
    QuestionType.NOTE_COMPLETION: _gap_text,
    QuestionType.TABLE_COMPLETION: _table,
    QuestionType.FLOW_CHART_COMPLETION: _diagram,
    QuestionType.DIAGRAM_LABEL_COMPLETION: _diagram,
}

if set(_FACTORIES) != set(QuestionType):
    raise RuntimeError("Every QuestionType needs a default factory")


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def create_group(
    tag: Union[str, QuestionType],
    *,
    group_id: Optional[str] = None,
    config: Optional[AuthoringConfig] = None,
) -> QuestionGroup:
    """
    Build a default-populated group for ``tag``.

    Args:
        tag: Variant tag (QuestionType or its string value)
        group_id: Id to use (default: a new uuid4 string)
        config: Authoring defaults (default: DEFAULT_CONFIG)

    Returns:
        New group satisfying every group invariant

    Raises:
        UnsupportedVariant: If ``tag`` is not a known variant; nothing is created
    """
    question_type = parse_question_type(tag)
    group = _FACTORIES[question_type](
        group_id or str(uuid.uuid4()),
        question_type,
        config or DEFAULT_CONFIG,
    )
    logger.debug(f"Created {question_type.value} group {group.id}")
    return group


def get_constraints(tag: Union[str, QuestionType]) -> VariantConstraints:
    """Structural constraints for ``tag`` (raises UnsupportedVariant)."""
    return constraints_for(tag)


def supported_variants() -> Tuple[QuestionType, ...]:
    return tuple(QuestionType)


def question_type_label(tag: Union[str, QuestionType]) -> str:
    """Human-readable title, e.g. "Note Completion"."""
    return constraints_for(tag).title
