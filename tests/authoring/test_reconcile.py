"""
Unit Tests for Gap Reconciliation

Tests for text-gap reconciliation and table cell gaps.
"""

import pytest

from ielts_toolkit.authoring.reconcile import (
    add_column,
    add_gap,
    add_row,
    reconcile,
    remove_column,
    remove_gap,
    remove_row,
    set_cell_answer,
    set_gap_answer,
    set_marker_grammar,
    set_text,
    toggle_cell_gap,
)
from ielts_toolkit.core.models import (
    CellAnswer,
    GapAnswer,
    GapTextGroup,
    MarkerGrammar,
    QuestionType,
    TableGroup,
)

N = MarkerGrammar.NUMBERED
B = MarkerGrammar.BRACKETED


def _pairs(answers):
    return [(a.gap_id, a.correct_answer) for a in answers]


class TestReconcile:
    """Tests for reconcile function."""

    def test_reconcile_when_new_marker_then_empty_answer_added(self):
        """Existing answers carry forward; new gaps start empty."""
        text = "Intro\n* Point (1)_______ more\n* Point two (2)_______."

        result = reconcile(text, [GapAnswer("1", "alpha")], N)

        assert _pairs(result) == [("1", "alpha"), ("2", "")]

    def test_reconcile_when_marker_deleted_then_answer_dropped(self):
        """Answers for vanished markers are dropped."""
        result = reconcile("only (2)___", [GapAnswer("1", "a"), GapAnswer("2", "b")], N)

        assert _pairs(result) == [("2", "b")]

    def test_reconcile_when_repeated_then_idempotent(self):
        """Reconciling twice gives the same list."""
        text = "(3)___ x (1)___ y (3)___"
        once = reconcile(text, [GapAnswer("3", "c")], N)

        assert reconcile(text, once, N) == once
        assert _pairs(once) == [("3", "c"), ("1", "")]

    def test_reconcile_when_answers_out_of_order_then_text_order(self):
        """Result order follows first occurrence in text."""
        result = reconcile("[gap] and [gap]", [GapAnswer("gap-1", "b"), GapAnswer("gap-0", "a")], B)

        assert _pairs(result) == [("gap-0", "a"), ("gap-1", "b")]

    def test_reconcile_when_zero_padded_id_then_answer_kept(self):
        """A (01)___ marker keeps the answer stored under "01"."""
        result = reconcile("Intro (01)_______ end", [GapAnswer("01", "alpha")], N)

        assert _pairs(result) == [("01", "alpha")]

    def test_reconcile_when_no_markers_then_empty(self):
        """Plain text has no gaps."""
        assert reconcile("nothing here", [GapAnswer("1", "x")], N) == ()


class TestGapTextOperations:
    """Tests for GapTextGroup operations."""

    def test_set_text_when_marker_added_then_answers_follow(self, note_group):
        """Editing text adds answer slots for new markers."""
        result = set_text(note_group, note_group.text + " and (3)___")

        assert _pairs(result.answers) == [("1", "alpha"), ("2", ""), ("3", "")]

    def test_set_text_when_unchanged_then_same_group(self, note_group):
        """No-op edits return the same object."""
        assert set_text(note_group, note_group.text) is note_group

    def test_set_gap_answer_when_unknown_then_warns(self, note_group, caplog):
        """Answers for unknown gaps are refused with a warning."""
        result = set_gap_answer(note_group, "9", "x")

        assert result is note_group
        assert "no gap '9'" in caplog.text

    def test_add_gap_when_numbered_then_next_number_appended(self, note_group):
        """add_gap appends (max+1)_______."""
        result = add_gap(note_group)

        assert result.text.endswith("(3)_______")
        assert result.answers[-1] == GapAnswer("3")

    def test_add_gap_when_empty_text_then_marker_only(self):
        """Empty text becomes just the marker."""
        group = GapTextGroup("g", QuestionType.SUMMARY_COMPLETION, marker_grammar=B)

        result = add_gap(group)

        assert result.text == "[gap]"
        assert _pairs(result.answers) == [("gap-0", "")]

    def test_remove_gap_when_bracketed_then_later_answers_rekeyed(self):
        """Later bracketed gaps keep their answers after a removal."""
        group = GapTextGroup(
            "g", QuestionType.SUMMARY_COMPLETION,
            text="a [gap] b [gap] c [gap]",
            marker_grammar=B,
            answers=(GapAnswer("gap-0", "x"), GapAnswer("gap-1", "y"), GapAnswer("gap-2", "z")),
        )

        result = remove_gap(group, "gap-0")

        assert result.text == "a ___ b [gap] c [gap]"
        assert _pairs(result.answers) == [("gap-0", "y"), ("gap-1", "z")]

    def test_remove_gap_when_numbered_then_other_ids_kept(self, note_group):
        """Numbered ids are stable across removals."""
        result = remove_gap(note_group, "1")

        assert "(1)" not in result.text
        assert _pairs(result.answers) == [("2", "")]

    def test_grammar_when_numbered_to_bracketed_then_answers_by_position(self, note_group):
        """Switching grammar keeps each answer with its marker."""
        result = set_marker_grammar(note_group, B)

        assert result.marker_grammar == B
        assert result.text == "Intro\n* Point [gap] more\n* Point two [gap]."
        assert _pairs(result.answers) == [("gap-0", "alpha"), ("gap-1", "")]

    def test_grammar_when_literal_would_match_then_escaped(self):
        """Text that would become a marker in the new grammar is escaped."""
        group = GapTextGroup(
            "g", QuestionType.SUMMARY_COMPLETION,
            text="Write [gap]; literal (9)___ here",
            marker_grammar=B,
            answers=(GapAnswer("gap-0", "x"),),
        )

        result = set_marker_grammar(group, N)

        assert _pairs(result.answers) == [("1", "x")]
        assert "\\(9)___" in result.text


class TestTableGaps:
    """Tests for table cell gaps."""

    @pytest.fixture
    def table(self):
        return TableGroup(
            "t", QuestionType.TABLE_COMPLETION,
            rows=(("H1", "H2", "H3"), ("a", "b", "c"), ("d", "e", "f")),
            answers=(CellAnswer("1-1", "b!"), CellAnswer("2-2", "f!")),
        )

    def test_toggle_when_body_cell_then_gap_added_in_order(self, table):
        """Toggling adds an empty answer, kept row-major."""
        result = toggle_cell_gap(table, 1, 0)

        assert [a.cell_id for a in result.answers] == ["1-0", "1-1", "2-2"]

    def test_toggle_when_gap_cell_then_removed(self, table):
        """Toggling a gap cell removes its answer."""
        result = toggle_cell_gap(table, 1, 1)

        assert [a.cell_id for a in result.answers] == ["2-2"]

    def test_toggle_when_header_then_refused(self, table):
        """Header cells cannot be gaps."""
        assert toggle_cell_gap(table, 0, 1) is table

    def test_set_cell_answer_when_not_gap_then_unchanged(self, table):
        """Only gap cells take answers."""
        assert set_cell_answer(table, 1, 0, "x") is table

    def test_remove_row_when_above_gaps_then_gaps_move_up(self, table):
        """Removing row 1 moves row 2 gaps to row 1."""
        result = remove_row(table, 1)

        assert result.rows == (("H1", "H2", "H3"), ("d", "e", "f"))
        assert [(a.cell_id, a.correct_answer) for a in result.answers] == [("1-2", "f!")]

    def test_remove_column_when_before_gaps_then_gaps_shift_left(self, table):
        """Removing column 0 shifts later gap cells left."""
        result = remove_column(table, 0)

        assert [a.cell_id for a in result.answers] == ["1-0", "2-1"]

    def test_remove_row_when_minimum_then_refused(self):
        """Tables keep at least two rows."""
        table = TableGroup("t", QuestionType.TABLE_COMPLETION, rows=(("a", "b"), ("c", "d")))

        assert remove_row(table, 1) is table

    def test_add_row_and_column_when_called_then_grid_grows(self, table):
        """New rows/columns are empty strings."""
        result = add_column(add_row(table))

        assert (result.row_count, result.col_count) == (4, 4)
        assert result.rows[3] == ("", "", "", "")
