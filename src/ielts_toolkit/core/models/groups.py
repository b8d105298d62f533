"""
Module: groups

Purpose:
    Provides the QuestionGroup sum type: one frozen dataclass per variant
    family, each carrying the ``question_type`` tag it was created with.
    Groups are never mutated; engines return new instances via
    dataclasses.replace().

Key Classes:
    - MultipleChoiceGroup: multiple_choice
    - MultiAnswerGroup: multiple_choice_multiple_answers
    - StatementGroup: true_false_not_given, yes_no_not_given
    - CompletionGroup: sentence_completion, form_completion, short_answer
    - MatchingGroup: matching, matching_information, matching_headings,
      matching_features, matching_sentence_endings
    - GapTextGroup: note_completion, summary_completion
    - TableGroup: table_completion
    - DiagramGroup: flow_chart_completion, diagram_label_completion

Key Functions:
    - group_from_dict(data): Deserialize any group, dispatching on questionType
    - family_for(tag): Group class that stores a given variant

Dependencies:
    - dataclasses (std)
    - .variants, .items, .anchors

Used By:
    - core.models.document
    - authoring (all engines)

Invariants checked on construction:
    - question_type belongs to the family class
    - gap / cell / label / pool-letter ids are unique within the group
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Iterable, Optional, Tuple, Type, Union

from .anchors import CellAnswer, GapAnswer, LabelAnswer, Position, TextStep
from .items import (
    CompletionItem,
    MatchingItem,
    MultiAnswerItem,
    MultipleChoiceItem,
    PoolEntry,
    StatementItem,
)
from .variants import (
    MarkerGrammar,
    QuestionType,
    ReferenceKind,
    VariantConstraints,
    constraints_for,
    parse_question_type,
)

CHART_IMAGE = "image"
CHART_TEXT = "text"


def _require_unique(values: Iterable[str], what: str, group_id: str) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ValueError(f"Duplicate {what} {value!r} in group {group_id!r}")
        seen.add(value)


# ─────────────────────────────────────────────────────────────────────────────
# Base
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _GroupBase:
    """
    Fields shared by every question group.

    Attributes:
        id: Opaque identifier, unique within a Document
        question_type: Variant tag; fixed for the lifetime of the group
        instruction: Instruction text shown above the group
        starting_number: First item number (numbering offset)
    """

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset()

    id: str
    question_type: QuestionType
    instruction: str = ""
    starting_number: int = 1

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Question group id cannot be empty")
        if not isinstance(self.question_type, QuestionType):
            # Allow plain string tags; frozen, so go through object.__setattr__
            object.__setattr__(self, "question_type", parse_question_type(self.question_type))
        if self.question_type not in self.FAMILY:
            raise ValueError(
                f"{type(self).__name__} cannot hold question type {self.question_type.value!r}"
            )
        if self.starting_number < 1:
            raise ValueError(f"starting_number must be positive: {self.starting_number}")

    @property
    def constraints(self) -> VariantConstraints:
        return constraints_for(self.question_type)

    def _base_dict(self) -> dict:
        d = {
            "id": self.id,
            "questionType": self.question_type.value,
            "instruction": self.instruction,
        }
        if self.starting_number != 1:
            d["startingQuestionNumber"] = self.starting_number
        return d

    @staticmethod
    def _base_kwargs(data: dict) -> dict:
        return {
            "id": data["id"],
            "question_type": parse_question_type(data["questionType"]),
            "instruction": data.get("instruction", ""),
            "starting_number": data.get("startingQuestionNumber") or 1,
        }


def _word_limit_dict(word_limit: Optional[int], word_limit_text: str, options: Tuple[str, ...]) -> dict:
    d: dict = {}
    if word_limit is not None:
        d["wordLimit"] = word_limit
    if word_limit_text:
        d["wordLimitText"] = word_limit_text
    if options:
        d["options"] = list(options)
    return d


def _word_limit_kwargs(data: dict) -> dict:
    return {
        "word_limit": data.get("wordLimit"),
        "word_limit_text": data.get("wordLimitText", ""),
        "options": tuple(data.get("options") or ()),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Enumerated families
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MultipleChoiceGroup(_GroupBase):
    """Numbered questions, each with its own lettered options."""

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.MULTIPLE_CHOICE})

    items: Tuple[MultipleChoiceItem, ...] = ()

    @property
    def question_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["questions"] = [item.to_dict() for item in self.items]
        return d

    @classmethod
    def from_dict(cls, data: dict) -> MultipleChoiceGroup:
        return cls(
            **cls._base_kwargs(data),
            items=tuple(MultipleChoiceItem.from_dict(q) for q in data.get("questions", [])),
        )


@dataclass(frozen=True)
class StatementGroup(_GroupBase):
    """TRUE/FALSE/NOT GIVEN or YES/NO/NOT GIVEN statements."""

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.TRUE_FALSE_NOT_GIVEN,
        QuestionType.YES_NO_NOT_GIVEN,
    })

    items: Tuple[StatementItem, ...] = ()

    @property
    def allowed_answers(self) -> Tuple[str, ...]:
        if self.question_type == QuestionType.TRUE_FALSE_NOT_GIVEN:
            return ("TRUE", "FALSE", "NOT GIVEN")
        return ("YES", "NO", "NOT GIVEN")

    @property
    def question_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["questions"] = [item.to_dict() for item in self.items]
        return d

    @classmethod
    def from_dict(cls, data: dict) -> StatementGroup:
        return cls(
            **cls._base_kwargs(data),
            items=tuple(StatementItem.from_dict(q) for q in data.get("questions", [])),
        )


@dataclass(frozen=True)
class CompletionGroup(_GroupBase):
    """
    Sentence completion, form completion and short answer.

    Short answers serialize their prompt as ``question`` and the word limit
    as ``maxWords``; the completion variants use ``sentenceWithBlank`` and
    ``wordLimit``.
    """

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.SENTENCE_COMPLETION,
        QuestionType.FORM_COMPLETION,
        QuestionType.SHORT_ANSWER,
    })

    items: Tuple[CompletionItem, ...] = ()
    word_limit: Optional[int] = None
    word_limit_text: str = ""
    options: Tuple[str, ...] = ()

    @property
    def question_count(self) -> int:
        return len(self.items)

    @property
    def _prompt_key(self) -> str:
        return "question" if self.question_type == QuestionType.SHORT_ANSWER else "sentenceWithBlank"

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["questions"] = [item.to_dict(self._prompt_key) for item in self.items]
        limits = _word_limit_dict(self.word_limit, self.word_limit_text, self.options)
        if self.question_type == QuestionType.SHORT_ANSWER and "wordLimit" in limits:
            limits["maxWords"] = limits.pop("wordLimit")
        d.update(limits)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> CompletionGroup:
        base = cls._base_kwargs(data)
        is_short = base["question_type"] == QuestionType.SHORT_ANSWER
        prompt_key = "question" if is_short else "sentenceWithBlank"
        limits = _word_limit_kwargs(data)
        if is_short and limits["word_limit"] is None:
            limits["word_limit"] = data.get("maxWords")
        return cls(
            **base,
            items=tuple(CompletionItem.from_dict(q, prompt_key) for q in data.get("questions", [])),
            **limits,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Label-pool families
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MultiAnswerGroup(_GroupBase):
    """Questions answered by choosing ``answers_required`` letters from a shared pool."""

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.MULTIPLE_CHOICE_MULTIPLE_ANSWERS,
    })

    pool: Tuple[PoolEntry, ...] = ()
    items: Tuple[MultiAnswerItem, ...] = ()
    answers_required: int = 2

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_unique((e.label for e in self.pool), "pool label", self.id)
        if self.answers_required < 1:
            raise ValueError(f"answers_required must be positive: {self.answers_required}")

    uses_value_references: ClassVar[bool] = False

    def reference_for(self, entry: PoolEntry) -> str:
        return entry.label

    @property
    def pool_references(self) -> Tuple[str, ...]:
        """Values an item answer may hold (pool letters)."""
        return tuple(e.label for e in self.pool)

    @property
    def question_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["labelPool"] = [entry.to_dict() for entry in self.pool]
        d["questions"] = [item.to_dict() for item in self.items]
        d["answersRequired"] = self.answers_required
        return d

    @classmethod
    def from_dict(cls, data: dict) -> MultiAnswerGroup:
        return cls(
            **cls._base_kwargs(data),
            pool=tuple(PoolEntry.from_dict(e) for e in data.get("labelPool", [])),
            items=tuple(MultiAnswerItem.from_dict(q) for q in data.get("questions", [])),
            answers_required=data.get("answersRequired", 2),
        )


@dataclass(frozen=True)
class MatchingGroup(_GroupBase):
    """
    Prompts matched against a shared label pool.

    Whether ``MatchingItem.answer`` stores a letter or the entry text is
    given by ``constraints.reference_kind``.
    """

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.MATCHING,
        QuestionType.MATCHING_INFORMATION,
        QuestionType.MATCHING_HEADINGS,
        QuestionType.MATCHING_FEATURES,
        QuestionType.MATCHING_SENTENCE_ENDINGS,
    })

    pool: Tuple[PoolEntry, ...] = ()
    items: Tuple[MatchingItem, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_unique((e.label for e in self.pool), "pool label", self.id)

    @property
    def uses_value_references(self) -> bool:
        return self.constraints.reference_kind == ReferenceKind.VALUE

    def reference_for(self, entry: PoolEntry) -> str:
        """
        Value an answer stores to point at ``entry``.

        Letter variants store the label. Value variants store the text;
        plain matching falls back to "Option <letter>" for empty text,
        other value variants have no reference for an empty entry ("").
        """
        if not self.uses_value_references:
            return entry.label
        if entry.text:
            return entry.text
        if self.question_type == QuestionType.MATCHING:
            return f"Option {entry.label}"
        return ""

    @property
    def pool_references(self) -> Tuple[str, ...]:
        """Values an item answer may hold, in pool order."""
        return tuple(ref for ref in (self.reference_for(e) for e in self.pool) if ref)

    @property
    def question_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["labelPool"] = [entry.to_dict() for entry in self.pool]
        d["questions"] = [item.to_dict() for item in self.items]
        return d

    @classmethod
    def from_dict(cls, data: dict) -> MatchingGroup:
        return cls(
            **cls._base_kwargs(data),
            pool=tuple(PoolEntry.from_dict(e) for e in data.get("labelPool", [])),
            items=tuple(MatchingItem.from_dict(q) for q in data.get("questions", [])),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Gap families
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GapTextGroup(_GroupBase):
    """
    Note or summary text with inline gap markers.

    ``answers`` is derived from ``text`` by the reconciliation engine and is
    kept in first-occurrence order of the markers.
    """

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.NOTE_COMPLETION,
        QuestionType.SUMMARY_COMPLETION,
    })

    text: str = ""
    marker_grammar: MarkerGrammar = MarkerGrammar.NUMBERED
    answers: Tuple[GapAnswer, ...] = ()
    word_limit: Optional[int] = None
    word_limit_text: str = ""
    options: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.marker_grammar, MarkerGrammar):
            object.__setattr__(self, "marker_grammar", MarkerGrammar(self.marker_grammar))
        _require_unique((a.gap_id for a in self.answers), "gap id", self.id)

    @property
    def question_count(self) -> int:
        return len(self.answers)

    def answer_for(self, gap_id: str) -> Optional[GapAnswer]:
        for answer in self.answers:
            if answer.gap_id == gap_id:
                return answer
        return None

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["text"] = self.text
        d["markerStyle"] = self.marker_grammar.value
        d["answers"] = [a.to_dict() for a in self.answers]
        d.update(_word_limit_dict(self.word_limit, self.word_limit_text, self.options))
        return d

    @classmethod
    def from_dict(cls, data: dict) -> GapTextGroup:
        base = cls._base_kwargs(data)
        grammar = data.get("markerStyle") or constraints_for(base["question_type"]).marker_grammar
        return cls(
            **base,
            text=data.get("text", ""),
            marker_grammar=MarkerGrammar(grammar),
            answers=tuple(GapAnswer.from_dict(a) for a in data.get("answers", [])),
            **_word_limit_kwargs(data),
        )


@dataclass(frozen=True)
class TableGroup(_GroupBase):
    """
    Table whose cells may be flagged as gaps.

    Row 0 is the header row. ``answers`` holds one CellAnswer per gap cell,
    ordered row-major.
    """

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.TABLE_COMPLETION})

    rows: Tuple[Tuple[str, ...], ...] = ()
    answers: Tuple[CellAnswer, ...] = ()
    word_limit: Optional[int] = None
    word_limit_text: str = ""
    options: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        widths = {len(row) for row in self.rows}
        if len(widths) > 1:
            raise ValueError(f"Table rows must all have the same width in group {self.id!r}")
        _require_unique((a.cell_id for a in self.answers), "cell id", self.id)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def question_count(self) -> int:
        return len(self.answers)

    def answer_for(self, cell_id: str) -> Optional[CellAnswer]:
        for answer in self.answers:
            if answer.cell_id == cell_id:
                return answer
        return None

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["tableStructure"] = [list(row) for row in self.rows]
        d["answers"] = [a.to_dict() for a in self.answers]
        d.update(_word_limit_dict(self.word_limit, self.word_limit_text, self.options))
        return d

    @classmethod
    def from_dict(cls, data: dict) -> TableGroup:
        return cls(
            **cls._base_kwargs(data),
            rows=tuple(tuple(row) for row in data.get("tableStructure", [])),
            answers=tuple(CellAnswer.from_dict(a) for a in data.get("answers", [])),
            **_word_limit_kwargs(data),
        )


@dataclass(frozen=True)
class DiagramGroup(_GroupBase):
    """
    Image with percentage-placed labels (diagram labelling, image flow chart).

    Flow charts may instead use ``chart_type == "text"``, in which case the
    answers are keyed by the step ids of gap steps in ``text_steps`` and
    ``positions`` stays empty.

    Attributes:
        image: Opaque image reference (URL or data URI), None until uploaded
        description: Optional diagram description
        chart_type: "image" or "text" (always "image" for diagrams)
        positions: Label placements in click order
        answers: One LabelAnswer per position / gap step
        text_steps: Steps of a text-mode flow chart
    """

    FAMILY: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.FLOW_CHART_COMPLETION,
        QuestionType.DIAGRAM_LABEL_COMPLETION,
    })

    image: Optional[str] = None
    description: str = ""
    chart_type: str = CHART_IMAGE
    positions: Tuple[Position, ...] = ()
    answers: Tuple[LabelAnswer, ...] = ()
    text_steps: Tuple[TextStep, ...] = ()
    word_limit: Optional[int] = None
    word_limit_text: str = ""
    options: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.chart_type not in (CHART_IMAGE, CHART_TEXT):
            raise ValueError(f"chart_type must be 'image' or 'text': {self.chart_type!r}")
        if self.chart_type == CHART_TEXT and self.question_type != QuestionType.FLOW_CHART_COMPLETION:
            raise ValueError("Only flow charts support text mode")
        _require_unique((p.label_id for p in self.positions), "label id", self.id)
        _require_unique((s.step_id for s in self.text_steps), "step id", self.id)
        _require_unique((a.label_id for a in self.answers), "answer label id", self.id)

    @property
    def is_text_mode(self) -> bool:
        return self.chart_type == CHART_TEXT

    @property
    def question_count(self) -> int:
        return len(self.answers)

    def answer_for(self, label_id: str) -> Optional[LabelAnswer]:
        for answer in self.answers:
            if answer.label_id == label_id:
                return answer
        return None

    def to_dict(self) -> dict:
        d = self._base_dict()
        d["chartType"] = self.chart_type
        if self.image:
            d["image"] = self.image
        if self.description:
            d["description"] = self.description
        d["positions"] = [p.to_dict() for p in self.positions]
        d["answers"] = [a.to_dict() for a in self.answers]
        if self.text_steps:
            d["textSteps"] = [s.to_dict() for s in self.text_steps]
        d.update(_word_limit_dict(self.word_limit, self.word_limit_text, self.options))
        return d

    @classmethod
    def from_dict(cls, data: dict) -> DiagramGroup:
        return cls(
            **cls._base_kwargs(data),
            image=data.get("image") or None,
            description=data.get("description", ""),
            chart_type=data.get("chartType", CHART_IMAGE),
            positions=tuple(Position.from_dict(p) for p in data.get("positions", [])),
            answers=tuple(LabelAnswer.from_dict(a) for a in data.get("answers", [])),
            text_steps=tuple(TextStep.from_dict(s) for s in data.get("textSteps", [])),
            **_word_limit_kwargs(data),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Sum type + dispatch
# ─────────────────────────────────────────────────────────────────────────────

QuestionGroup = Union[
    MultipleChoiceGroup,
    MultiAnswerGroup,
    StatementGroup,
    CompletionGroup,
    MatchingGroup,
    GapTextGroup,
    TableGroup,
    DiagramGroup,
]

_FAMILIES: Tuple[Type[_GroupBase], ...] = (
    MultipleChoiceGroup,
    MultiAnswerGroup,
    StatementGroup,
    CompletionGroup,
    MatchingGroup,
    GapTextGroup,
    TableGroup,
    DiagramGroup,
)

FAMILY_BY_TYPE: dict[QuestionType, Type[_GroupBase]] = {
    tag: family for family in _FAMILIES for tag in family.FAMILY
}

if set(FAMILY_BY_TYPE) != set(QuestionType):
    raise RuntimeError("Every QuestionType must belong to exactly one group family")


def family_for(tag: Union[str, QuestionType]) -> Type[_GroupBase]:
    """Return the group class storing ``tag`` (raises UnsupportedVariant)."""
    return FAMILY_BY_TYPE[parse_question_type(tag)]


def group_from_dict(data: dict) -> QuestionGroup:
    """
    Deserialize any question group.

    Args:
        data: Dict with at least ``id`` and ``questionType``

    Returns:
        Instance of the family class for the tag

    Raises:
        UnsupportedVariant: If questionType is unknown
        ValueError: If the group violates a structural invariant
    """
    return family_for(data.get("questionType")).from_dict(data)
