"""
Module: variants

Purpose:
    Provides the closed set of question-group variants (QuestionType) and the
    structural constraints each variant carries. This is the single table
    every engine consults before touching a group, so adding a variant is a
    change here plus one entry in each dispatch table (checked at import).

Key Functions:
    - parse_question_type(tag): Resolve a string tag, raising UnsupportedVariant
    - constraints_for(tag): Look up the VariantConstraints for a tag

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.models.groups
    - authoring.registry
    - authoring.projection
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class UnsupportedVariant(ValueError):
    """Raised when a question group is requested for an unknown variant tag."""

    def __init__(self, tag: object):
        super().__init__(f"Unsupported question type: {tag!r}")
        self.tag = tag


class QuestionType(str, Enum):
    """Variant tag stored in ``questionType``."""
    MULTIPLE_CHOICE = "multiple_choice"
    MULTIPLE_CHOICE_MULTIPLE_ANSWERS = "multiple_choice_multiple_answers"
    TRUE_FALSE_NOT_GIVEN = "true_false_not_given"
    YES_NO_NOT_GIVEN = "yes_no_not_given"
    MATCHING = "matching"
    MATCHING_INFORMATION = "matching_information"
    MATCHING_HEADINGS = "matching_headings"
    MATCHING_FEATURES = "matching_features"
    MATCHING_SENTENCE_ENDINGS = "matching_sentence_endings"
    SENTENCE_COMPLETION = "sentence_completion"
    FORM_COMPLETION = "form_completion"
    SHORT_ANSWER = "short_answer"
    SUMMARY_COMPLETION = "summary_completion"
    NOTE_COMPLETION = "note_completion"
    TABLE_COMPLETION = "table_completion"
    FLOW_CHART_COMPLETION = "flow_chart_completion"
    DIAGRAM_LABEL_COMPLETION = "diagram_label_completion"

    def __str__(self) -> str:
        return self.value


class VariantShape(str, Enum):
    """How a variant stores its questions and answers."""
    ENUMERATED = "enumerated"    # Numbered items, each with its own answer
    LABEL_POOL = "label_pool"    # Shared lettered pool, items reference it
    TEXT_GAPS = "text_gaps"      # Free text with inline gap markers
    TABLE_GAPS = "table_gaps"    # Grid of cells, some flagged as gaps
    COORDINATES = "coordinates"  # Image with percentage-placed labels

    def __str__(self) -> str:
        return self.value


class ReferenceKind(str, Enum):
    """What a pool-referencing answer stores."""
    NONE = "none"      # Not a pool variant
    LETTER = "letter"  # Pool letter ("B"); shifted when earlier entries go
    VALUE = "value"    # Pool entry text; cleared when the entry goes

    def __str__(self) -> str:
        return self.value


class MarkerGrammar(str, Enum):
    """Inline gap-marker grammars recognised in free text."""
    NUMBERED = "numbered"    # (N)_______  -> gap id "N"
    BRACKETED = "bracketed"  # [gap]       -> gap id "gap-<k>" by occurrence

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class VariantConstraints:
    """
    Structural constraints declared by one variant.

    Attributes:
        question_type: The variant tag
        title: Human-readable name ("Note Completion")
        shape: Storage shape of the variant
        reference_kind: LETTER/VALUE for pool variants, NONE otherwise
        multi_answer: Whether an item may hold several answers
        min_pool_size: Smallest pool the editor may shrink to
        default_pool_size: Entries in a freshly created pool
        marker_grammar: Default gap grammar (TEXT_GAPS only)
        label_prefix: Prefix for position ids (COORDINATES only)
        word_limit: Whether a word limit applies
        word_bank: Whether an optional word bank applies

    Example:
        >>> constraints_for("matching_features").reference_kind
        <ReferenceKind.LETTER: 'letter'>
    """

    question_type: QuestionType
    title: str
    shape: VariantShape
    reference_kind: ReferenceKind = ReferenceKind.NONE
    multi_answer: bool = False
    min_pool_size: int = 0
    default_pool_size: int = 0
    marker_grammar: Optional[MarkerGrammar] = None
    label_prefix: Optional[str] = None
    word_limit: bool = False
    word_bank: bool = False

    def __post_init__(self) -> None:
        if self.min_pool_size < 0 or self.default_pool_size < self.min_pool_size:
            raise ValueError(
                f"Invalid pool sizes for {self.question_type}: "
                f"min={self.min_pool_size}, default={self.default_pool_size}"
            )
        if self.shape == VariantShape.LABEL_POOL and self.reference_kind == ReferenceKind.NONE:
            raise ValueError(f"Pool variant {self.question_type} needs a reference kind")

    @property
    def has_pool(self) -> bool:
        return self.shape == VariantShape.LABEL_POOL


_T = QuestionType
_S = VariantShape
_R = ReferenceKind

VARIANT_CONSTRAINTS: dict[QuestionType, VariantConstraints] = {
    c.question_type: c
    for c in (
        VariantConstraints(_T.MULTIPLE_CHOICE, "Multiple Choice", _S.ENUMERATED),
        VariantConstraints(
            _T.MULTIPLE_CHOICE_MULTIPLE_ANSWERS, "Multiple Choice (Multiple Answers)",
            _S.LABEL_POOL, _R.LETTER, multi_answer=True, min_pool_size=2, default_pool_size=5,
        ),
        VariantConstraints(_T.TRUE_FALSE_NOT_GIVEN, "True / False / Not Given", _S.ENUMERATED),
        VariantConstraints(_T.YES_NO_NOT_GIVEN, "Yes / No / Not Given", _S.ENUMERATED),
        VariantConstraints(
            _T.MATCHING, "Matching", _S.LABEL_POOL, _R.VALUE,
            min_pool_size=2, default_pool_size=3,
        ),
        VariantConstraints(
            _T.MATCHING_INFORMATION, "Matching Information", _S.LABEL_POOL, _R.LETTER,
            min_pool_size=1, default_pool_size=6,
        ),
        VariantConstraints(
            _T.MATCHING_HEADINGS, "Matching Headings", _S.LABEL_POOL, _R.VALUE,
            min_pool_size=2, default_pool_size=3,
        ),
        VariantConstraints(
            _T.MATCHING_FEATURES, "Matching Features", _S.LABEL_POOL, _R.LETTER,
            min_pool_size=2, default_pool_size=3,
        ),
        VariantConstraints(
            _T.MATCHING_SENTENCE_ENDINGS, "Matching Sentence Endings", _S.LABEL_POOL, _R.LETTER,
            min_pool_size=2, default_pool_size=3,
        ),
        VariantConstraints(
            _T.SENTENCE_COMPLETION, "Sentence Completion", _S.ENUMERATED, word_limit=True,
        ),
        VariantConstraints(
            _T.FORM_COMPLETION, "Form Completion", _S.ENUMERATED, word_limit=True, word_bank=True,
        ),
        VariantConstraints(_T.SHORT_ANSWER, "Short Answer", _S.ENUMERATED, word_limit=True),
        VariantConstraints(
            _T.SUMMARY_COMPLETION, "Summary Completion", _S.TEXT_GAPS,
            marker_grammar=MarkerGrammar.BRACKETED, word_limit=True, word_bank=True,
        ),
        VariantConstraints(
            _T.NOTE_COMPLETION, "Note Completion", _S.TEXT_GAPS,
            marker_grammar=MarkerGrammar.NUMBERED, word_limit=True, word_bank=True,
        ),
        VariantConstraints(
            _T.TABLE_COMPLETION, "Table Completion", _S.TABLE_GAPS, word_limit=True, word_bank=True,
        ),
        VariantConstraints(
            _T.FLOW_CHART_COMPLETION, "Flow-chart Completion", _S.COORDINATES,
            label_prefix="step", word_limit=True, word_bank=True,
        ),
        VariantConstraints(
            _T.DIAGRAM_LABEL_COMPLETION, "Diagram Label Completion", _S.COORDINATES,
            label_prefix="label", word_limit=True, word_bank=True,
        ),
    )
}

if set(VARIANT_CONSTRAINTS) != set(QuestionType):
    raise RuntimeError("VARIANT_CONSTRAINTS must cover every QuestionType")


def parse_question_type(tag: Union[str, QuestionType]) -> QuestionType:
    """
    Resolve a variant tag.

    Args:
        tag: QuestionType or its string value

    Returns:
        The matching QuestionType

    Raises:
        UnsupportedVariant: If the tag is not a known variant
    """
    if isinstance(tag, QuestionType):
        return tag
    try:
        return QuestionType(tag)
    except ValueError:
        raise UnsupportedVariant(tag) from None


def constraints_for(tag: Union[str, QuestionType]) -> VariantConstraints:
    """Look up constraints for a tag (raises UnsupportedVariant)."""
    return VARIANT_CONSTRAINTS[parse_question_type(tag)]
