"""
Unit Tests for Content Models

Tests for variant constraints, item/anchor records and group families.
"""

import pytest

from ielts_toolkit.core.models import (
    CHART_TEXT,
    CompletionGroup,
    CompletionItem,
    DiagramGroup,
    GapTextGroup,
    MarkerGrammar,
    MatchingGroup,
    MultiAnswerGroup,
    MultiAnswerItem,
    PoolEntry,
    Position,
    QuestionType,
    ReferenceKind,
    StatementGroup,
    TableGroup,
    TextStep,
    UnsupportedVariant,
    VariantShape,
    constraints_for,
    family_for,
    group_from_dict,
    parse_question_type,
)


class TestVariantConstraints:
    """Tests for the variant registry data."""

    def test_parse_when_known_tag_then_returns_enum(self):
        """String tags resolve to QuestionType."""
        assert parse_question_type("note_completion") == QuestionType.NOTE_COMPLETION

    def test_parse_when_unknown_tag_then_raises_unsupported(self):
        """Unknown tags raise UnsupportedVariant carrying the tag."""
        with pytest.raises(UnsupportedVariant) as exc_info:
            parse_question_type("essay")

        assert exc_info.value.tag == "essay"

    def test_constraints_when_value_variants_then_reference_kind_value(self):
        """matching and matching_headings store entry text."""
        assert constraints_for("matching").reference_kind == ReferenceKind.VALUE
        assert constraints_for("matching_headings").reference_kind == ReferenceKind.VALUE
        assert constraints_for("matching_features").reference_kind == ReferenceKind.LETTER

    def test_constraints_when_gap_variants_then_grammar_declared(self):
        """Summary uses brackets, notes use numbered markers."""
        assert constraints_for("summary_completion").marker_grammar == MarkerGrammar.BRACKETED
        assert constraints_for("note_completion").marker_grammar == MarkerGrammar.NUMBERED

    def test_constraints_when_matching_information_then_min_pool_one(self):
        """Paragraph letters may shrink to a single entry."""
        c = constraints_for(QuestionType.MATCHING_INFORMATION)

        assert c.shape == VariantShape.LABEL_POOL
        assert c.min_pool_size == 1

    def test_family_when_every_type_then_has_family(self):
        """Every tag maps to exactly one group class."""
        for question_type in QuestionType:
            assert question_type in family_for(question_type).FAMILY


class TestRecords:
    """Tests for item and anchor validation."""

    def test_item_when_number_zero_then_raises(self):
        """Item numbers are positive."""
        with pytest.raises(ValueError):
            CompletionItem(0)

    def test_multi_answer_when_duplicate_letters_then_raises(self):
        """An answer set holds each letter once."""
        with pytest.raises(ValueError):
            MultiAnswerItem(1, answers=("A", "A"))

    def test_position_when_outside_range_then_raises(self):
        """Coordinates are percentages."""
        with pytest.raises(ValueError):
            Position("label-1", 100.5, 10.0)

    def test_position_when_on_edge_then_accepted(self):
        """0 and 100 are valid coordinates."""
        position = Position("label-1", 0.0, 100.0)

        assert (position.x, position.y) == (0.0, 100.0)

    def test_text_step_when_roundtrip_then_equal(self):
        """TextStep survives to_dict/from_dict."""
        step = TextStep("step-1", 1, "before", "after", True)

        assert TextStep.from_dict(step.to_dict()) == step


class TestGroups:
    """Tests for group family construction and serialization."""

    def test_group_when_wrong_family_then_raises(self):
        """A class only accepts its own question types."""
        with pytest.raises(ValueError):
            StatementGroup("g1", QuestionType.MATCHING)

    def test_group_when_string_tag_then_coerced(self):
        """Plain string tags are accepted and converted."""
        group = StatementGroup("g1", "yes_no_not_given")

        assert group.question_type == QuestionType.YES_NO_NOT_GIVEN
        assert group.allowed_answers == ("YES", "NO", "NOT GIVEN")

    @pytest.mark.parametrize("question_type", list(QuestionType))
    def test_family_when_empty_then_question_count_zero(self, question_type):
        """Every family defines its own question count."""
        family = family_for(question_type)

        assert "question_count" in vars(family)
        assert family("g", question_type).question_count == 0

    def test_group_when_empty_id_then_raises(self):
        """Groups need an id."""
        with pytest.raises(ValueError):
            StatementGroup("", QuestionType.TRUE_FALSE_NOT_GIVEN)

    def test_pool_when_duplicate_letters_then_raises(self):
        """Pool letters are unique."""
        with pytest.raises(ValueError):
            MatchingGroup(
                "g1", QuestionType.MATCHING_FEATURES,
                pool=(PoolEntry("A"), PoolEntry("A")),
            )

    def test_matching_when_empty_text_then_option_fallback(self):
        """Plain matching refers to empty entries as "Option <letter>"."""
        group = MatchingGroup(
            "g1", QuestionType.MATCHING,
            pool=(PoolEntry("A", ""), PoolEntry("B", "Bees")),
        )

        assert group.pool_references == ("Option A", "Bees")

    def test_headings_when_empty_text_then_no_reference(self):
        """Headings without text cannot be referenced yet."""
        group = MatchingGroup(
            "g1", QuestionType.MATCHING_HEADINGS,
            pool=(PoolEntry("A", ""), PoolEntry("B", "ii")),
        )

        assert group.pool_references == ("ii",)

    def test_multi_answer_when_pool_then_letters_referenced(self):
        """Multiple-answer items reference pool letters."""
        group = MultiAnswerGroup(
            "g1", QuestionType.MULTIPLE_CHOICE_MULTIPLE_ANSWERS,
            pool=(PoolEntry("A", "x"), PoolEntry("B", "y")),
        )

        assert group.pool_references == ("A", "B")
        assert group.uses_value_references is False

    def test_table_when_ragged_rows_then_raises(self):
        """Every row has the same width."""
        with pytest.raises(ValueError):
            TableGroup("g1", QuestionType.TABLE_COMPLETION, rows=(("a", "b"), ("c",)))

    def test_diagram_when_text_mode_then_only_flow_chart(self):
        """Diagram labelling has no text mode."""
        with pytest.raises(ValueError):
            DiagramGroup("g1", QuestionType.DIAGRAM_LABEL_COMPLETION, chart_type=CHART_TEXT)

    def test_short_answer_when_serialized_then_uses_question_keys(self):
        """Short answers use ``question`` and ``maxWords``."""
        group = CompletionGroup(
            "g1", QuestionType.SHORT_ANSWER,
            items=(CompletionItem(1, "What colour?", "red"),),
            word_limit=2,
        )

        data = group.to_dict()

        assert data["questions"][0]["question"] == "What colour?"
        assert data["maxWords"] == 2
        assert "wordLimit" not in data
        assert group_from_dict(data) == group

    def test_starting_number_when_default_then_omitted(self):
        """startingQuestionNumber is only written when it differs from 1."""
        group = GapTextGroup("g1", QuestionType.NOTE_COMPLETION)

        assert "startingQuestionNumber" not in group.to_dict()

    def test_group_from_dict_when_unknown_type_then_raises(self):
        """Dispatch refuses unknown tags."""
        with pytest.raises(UnsupportedVariant):
            group_from_dict({"id": "g1", "questionType": "essay"})

    def test_gap_text_when_marker_style_missing_then_variant_default(self):
        """A missing markerStyle falls back to the variant's grammar."""
        group = group_from_dict({"id": "g1", "questionType": "summary_completion", "text": "[gap]"})

        assert group.marker_grammar == MarkerGrammar.BRACKETED
