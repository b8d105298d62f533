"""
Core Models Package

Immutable, validated data models for authored question content.

All models in this package are frozen dataclasses. Engines never mutate a
model in place; they build a new instance with ``dataclasses.replace``, so
an edit either produces a complete new value or leaves the old one alone.

| Shape | Group class | Anchors |
|-------|-------------|---------|
| Enumerated items | `MultipleChoiceGroup`, `StatementGroup`, `CompletionGroup` | `number` |
| Label pool | `MultiAnswerGroup`, `MatchingGroup` | pool letter / text |
| Text gaps | `GapTextGroup` | `gapId` |
| Table gaps | `TableGroup` | `cellId` |
| Coordinates | `DiagramGroup` | `labelId` |
"""

from .variants import (
    MarkerGrammar,
    QuestionType,
    ReferenceKind,
    UnsupportedVariant,
    VariantConstraints,
    VariantShape,
    VARIANT_CONSTRAINTS,
    constraints_for,
    parse_question_type,
)
from .items import (
    CompletionItem,
    MatchingItem,
    MultiAnswerItem,
    MultipleChoiceItem,
    PoolEntry,
    StatementItem,
)
from .anchors import CellAnswer, GapAnswer, LabelAnswer, Position, TextStep
from .groups import (
    CHART_IMAGE,
    CHART_TEXT,
    CompletionGroup,
    DiagramGroup,
    GapTextGroup,
    MatchingGroup,
    MultiAnswerGroup,
    MultipleChoiceGroup,
    QuestionGroup,
    StatementGroup,
    TableGroup,
    family_for,
    group_from_dict,
)
from .document import Document, Stem, StemKind

__all__ = [
    "MarkerGrammar",
    "QuestionType",
    "ReferenceKind",
    "UnsupportedVariant",
    "VariantConstraints",
    "VariantShape",
    "VARIANT_CONSTRAINTS",
    "constraints_for",
    "parse_question_type",
    "CompletionItem",
    "MatchingItem",
    "MultiAnswerItem",
    "MultipleChoiceItem",
    "PoolEntry",
    "StatementItem",
    "CellAnswer",
    "GapAnswer",
    "LabelAnswer",
    "Position",
    "TextStep",
    "CHART_IMAGE",
    "CHART_TEXT",
    "CompletionGroup",
    "DiagramGroup",
    "GapTextGroup",
    "MatchingGroup",
    "MultiAnswerGroup",
    "MultipleChoiceGroup",
    "QuestionGroup",
    "StatementGroup",
    "TableGroup",
    "family_for",
    "group_from_dict",
    "Document",
    "Stem",
    "StemKind",
]
