"""
Group Invariant Checks

Verifies that a question group is internally consistent after an edit:

1. gap / label / cell ids are unique within the group
2. every gap, cell or position answer matches exactly one marker, gap cell
   or position that is currently present (no orphans, nothing unanswered)
3. enumerated item numbers are contiguous from the group's starting number
4. pool letters are contiguous A, B, C, ... in pool order
5. pool references point at an entry that is currently in the pool
6. percentage coordinates lie in [0, 100]

The editing engines are built so none of these can fail. A failure is an
engine bug, so it raises DanglingReference (an AssertionError) rather than
a recoverable error.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ..models import (
    CompletionGroup,
    DiagramGroup,
    GapTextGroup,
    MatchingGroup,
    MultiAnswerGroup,
    MultipleChoiceGroup,
    QuestionGroup,
    StatementGroup,
    TableGroup,
)
from ..models.anchors import COORDINATE_MAX, COORDINATE_MIN


class DanglingReference(AssertionError):
    """Raised when a group breaks a structural invariant."""

    def __init__(self, group_id: str, problems: Sequence[str]):
        super().__init__(f"Group {group_id!r} is inconsistent: " + "; ".join(problems))
        self.group_id = group_id
        self.problems = list(problems)


def _duplicates(values: Iterable[str]) -> list[str]:
    seen, dupes = set(), []
    for value in values:
        if value in seen:
            dupes.append(value)
        seen.add(value)
    return dupes


def _check_numbers(group: QuestionGroup, items: Sequence, problems: list[str]) -> None:
    expected = list(range(group.starting_number, group.starting_number + len(items)))
    actual = [item.number for item in items]
    if actual != expected:
        problems.append(f"item numbers {actual} are not contiguous from {group.starting_number}")


def _check_pool(group, problems: list[str]) -> None:
    from ...authoring.sequencer import index_to_letter

    labels = [e.label for e in group.pool]
    expected = [index_to_letter(i) for i in range(len(labels))]
    if labels != expected:
        problems.append(f"pool letters {labels} are not contiguous from A")


def _check_gap_text(group: GapTextGroup, problems: list[str]) -> None:
    from ...authoring.markers import gap_ids

    present = list(gap_ids(group.text, group.marker_grammar))
    answered = [a.gap_id for a in group.answers]
    for dupe in _duplicates(answered):
        problems.append(f"gap id {dupe!r} answered twice")
    missing = [g for g in present if g not in answered]
    orphans = [g for g in answered if g not in present]
    if missing:
        problems.append(f"markers without answers: {missing}")
    if orphans:
        problems.append(f"answers without markers: {orphans}")


def _check_table(group: TableGroup, problems: list[str]) -> None:
    for dupe in _duplicates(a.cell_id for a in group.answers):
        problems.append(f"cell {dupe!r} answered twice")
    for answer in group.answers:
        try:
            row, col = answer.row, answer.col
        except (ValueError, IndexError):
            problems.append(f"malformed cell id {answer.cell_id!r}")
            continue
        if not (1 <= row < group.row_count and 0 <= col < group.col_count):
            problems.append(f"answer for cell {answer.cell_id!r} outside the table body")


def _check_diagram(group: DiagramGroup, problems: list[str]) -> None:
    answered = [a.label_id for a in group.answers]
    for dupe in _duplicates(answered):
        problems.append(f"label id {dupe!r} answered twice")
    if group.is_text_mode:
        anchors = [s.step_id for s in group.text_steps if s.is_gap]
        numbers = [s.step_number for s in group.text_steps]
        if numbers != list(range(1, len(numbers) + 1)):
            problems.append(f"step numbers {numbers} are not contiguous from 1")
        if group.positions:
            problems.append("text-mode flow chart has image positions")
    else:
        anchors = [p.label_id for p in group.positions]
        for dupe in _duplicates(anchors):
            problems.append(f"position id {dupe!r} used twice")
        for p in group.positions:
            if not (COORDINATE_MIN <= p.x <= COORDINATE_MAX and COORDINATE_MIN <= p.y <= COORDINATE_MAX):
                problems.append(f"position {p.label_id!r} outside 0-100")
    missing = [a for a in anchors if a not in answered]
    orphans = [a for a in answered if a not in anchors]
    if missing:
        problems.append(f"labels without answers: {missing}")
    if orphans:
        problems.append(f"answers without labels: {orphans}")


def _check_references(group, problems: list[str]) -> None:
    allowed = set(group.pool_references)
    for item in group.items:
        refs = item.answers if isinstance(group, MultiAnswerGroup) else (item.answer,)
        for ref in refs:
            if ref and ref not in allowed:
                problems.append(f"item {item.number} references {ref!r}, not in pool")


def _check_choice_answers(group: MultipleChoiceGroup, problems: list[str]) -> None:
    from ...authoring.sequencer import option_letters

    for item in group.items:
        if item.answer and item.answer not in option_letters(len(item.options)):
            problems.append(f"item {item.number} answer {item.answer!r} is not one of its options")


def collect_problems(group: QuestionGroup) -> list[str]:
    """Return a description of every broken invariant (empty when consistent)."""
    problems: list[str] = []
    if isinstance(group, (MultipleChoiceGroup, StatementGroup, CompletionGroup)):
        _check_numbers(group, group.items, problems)
        if isinstance(group, MultipleChoiceGroup):
            _check_choice_answers(group, problems)
    elif isinstance(group, (MultiAnswerGroup, MatchingGroup)):
        _check_numbers(group, group.items, problems)
        _check_pool(group, problems)
        _check_references(group, problems)
    elif isinstance(group, GapTextGroup):
        _check_gap_text(group, problems)
    elif isinstance(group, TableGroup):
        _check_table(group, problems)
    elif isinstance(group, DiagramGroup):
        _check_diagram(group, problems)
    else:
        problems.append(f"unknown group class {type(group).__name__}")
    return problems


def check_invariants(group: QuestionGroup) -> None:
    """
    Assert that ``group`` is consistent.

    Raises:
        DanglingReference: If any invariant is broken
    """
    problems = collect_problems(group)
    if problems:
        raise DanglingReference(group.id, problems)
