"""
Module: numbering

Purpose:
    Document-wide question numbering. Numbers flow across groups in
    document order: every answerable entry (item, gap, gap cell, label or
    gap step) consumes one number.

Key Functions:
    - assign_question_numbers(document, start): group id -> QuestionRange
    - numbering_summary(document): Totals per question type

Used By:
    - authoring.projection
    - output.answer_key
    - cli
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterator

from ..core.models import Document


@dataclass(frozen=True, slots=True)
class QuestionRange:
    """
    Question numbers used by one group.

    An empty group has ``count == 0`` and ``last == first - 1``.
    """

    first: int
    last: int
    count: int

    def __post_init__(self) -> None:
        if self.count < 0 or self.last != self.first + self.count - 1:
            raise ValueError(f"Inconsistent range: {self.first}-{self.last} ({self.count})")

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.first, self.last + 1))

    def __contains__(self, number: object) -> bool:
        return isinstance(number, int) and self.first <= number <= self.last

    @property
    def label(self) -> str:
        """Heading text like "Questions 1-5" or "Question 6"."""
        if self.count == 0:
            return "No questions"
        if self.count == 1:
            return f"Question {self.first}"
        return f"Questions {self.first}-{self.last}"


@dataclass(frozen=True, slots=True)
class NumberingSummary:
    total_questions: int
    by_type: Dict[str, int]


def assign_question_numbers(document: Document, start: int = 1) -> Dict[str, QuestionRange]:
    """
    Number every question in ``document``.

    Args:
        document: Document to number
        start: First question number

    Returns:
        Mapping of group id -> QuestionRange, in document order
    """
    if start < 1:
        raise ValueError(f"start must be positive: {start}")
    ranges: Dict[str, QuestionRange] = {}
    current = start
    for group in document.groups:
        count = group.question_count
        ranges[group.id] = QuestionRange(current, current + count - 1, count)
        current += count
    return ranges


def numbering_summary(document: Document) -> NumberingSummary:
    counts: Counter = Counter()
    for group in document.groups:
        counts[group.question_type.value] += group.question_count
    return NumberingSummary(sum(counts.values()), dict(counts))
