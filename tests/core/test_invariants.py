"""
Unit Tests for Group Invariant Checks

Tests for collect_problems / check_invariants.
"""

from dataclasses import replace

import pytest

from ielts_toolkit.authoring import create_group
from ielts_toolkit.core.models import (
    CellAnswer,
    DiagramGroup,
    GapAnswer,
    LabelAnswer,
    MultipleChoiceGroup,
    MultipleChoiceItem,
    PoolEntry,
    Position,
    QuestionType,
    StatementGroup,
    StatementItem,
    TableGroup,
    TextStep,
)
from ielts_toolkit.core.schemas import DanglingReference, check_invariants, collect_problems


class TestCollectProblems:
    """Tests for invariant detection per family."""

    @pytest.mark.parametrize("question_type", list(QuestionType))
    def test_default_group_when_created_then_consistent(self, question_type):
        """Factory output satisfies every invariant."""
        assert collect_problems(create_group(question_type, group_id="g")) == []

    def test_numbers_when_gap_then_reported(self):
        """Item numbers must be contiguous from the starting number."""
        group = StatementGroup(
            "g", QuestionType.TRUE_FALSE_NOT_GIVEN,
            items=(StatementItem(1), StatementItem(3)),
        )

        assert any("not contiguous" in p for p in collect_problems(group))

    def test_pool_when_letters_skip_then_reported(self, matching_features_group):
        """Pool letters run A.. without gaps."""
        group = replace(matching_features_group, pool=(PoolEntry("A", "x"), PoolEntry("C", "z")))

        problems = collect_problems(group)

        assert any("pool letters" in p for p in problems)
        assert any("references 'B'" in p for p in problems)

    def test_choice_when_answer_beyond_options_then_reported(self):
        """MC answers name one of the item's own options."""
        group = MultipleChoiceGroup(
            "g", QuestionType.MULTIPLE_CHOICE,
            items=(MultipleChoiceItem(1, "q", ("a", "b"), "C"),),
        )

        assert collect_problems(group)

    def test_gap_text_when_answers_mismatch_then_reported(self, note_group):
        """Markers and answers correspond one to one."""
        group = replace(note_group, answers=(GapAnswer("1"), GapAnswer("7")))

        problems = collect_problems(group)

        assert "markers without answers: ['2']" in problems
        assert "answers without markers: ['7']" in problems

    def test_table_when_header_answer_then_reported(self):
        """Header cells never carry answers."""
        group = TableGroup(
            "g", QuestionType.TABLE_COMPLETION,
            rows=(("h1", "h2"), ("a", "b")),
            answers=(CellAnswer("0-1"),),
        )

        assert collect_problems(group) == ["answer for cell '0-1' outside the table body"]

    def test_diagram_when_answer_unbound_then_reported(self):
        """Each position has exactly one answer."""
        group = DiagramGroup(
            "g", QuestionType.DIAGRAM_LABEL_COMPLETION,
            image="https://cdn.example/d.png",
            positions=(Position("label-1", 10, 10),),
            answers=(LabelAnswer("label-2"),),
        )

        problems = collect_problems(group)

        assert "labels without answers: ['label-1']" in problems

    def test_text_steps_when_numbers_skip_then_reported(self):
        """Step numbers run 1..n."""
        group = DiagramGroup(
            "g", QuestionType.FLOW_CHART_COMPLETION,
            chart_type="text",
            text_steps=(TextStep("step-1", 1), TextStep("step-2", 3, is_gap=True)),
            answers=(LabelAnswer("step-2"),),
        )

        assert collect_problems(group) == ["step numbers [1, 3] are not contiguous from 1"]


class TestCheckInvariants:
    """Tests for the raising wrapper."""

    def test_check_when_consistent_then_silent(self, note_group):
        """Consistent groups pass."""
        check_invariants(note_group)

    def test_check_when_broken_then_raises_with_problems(self, note_group):
        """Broken groups raise DanglingReference with every problem listed."""
        group = replace(note_group, answers=())

        with pytest.raises(DanglingReference) as exc_info:
            check_invariants(group)

        assert exc_info.value.problems == ["markers without answers: ['1', '2']"]
