"""
Unit Tests for Positional Label Engine

Tests for click -> percentage conversion, label operations and
text-mode flow-chart steps.
"""

import pytest

from ielts_toolkit.authoring.positions import (
    ImageRect,
    add_position,
    add_text_step,
    answer_for_index,
    load_image,
    move_position,
    move_text_step,
    natural_size,
    next_label_id,
    place_label,
    remove_position,
    remove_text_step,
    round_half_up,
    set_chart_type,
    set_image,
    set_label_answer,
    to_natural_pixels,
    to_pixels,
    update_text_step,
)
from ielts_toolkit.core.models import (
    CHART_IMAGE,
    CHART_TEXT,
    DiagramGroup,
    LabelAnswer,
    Position,
    QuestionType,
)

RECT = ImageRect(100, 0, 500, 200)


@pytest.fixture
def diagram():
    return DiagramGroup("d", QuestionType.DIAGRAM_LABEL_COMPLETION, image="https://cdn.example/heart.png")


@pytest.fixture
def flow_text():
    return DiagramGroup("f", QuestionType.FLOW_CHART_COMPLETION, chart_type=CHART_TEXT)


class TestCoordinates:
    """Tests for coordinate conversion."""

    def test_place_when_click_inside_then_percent(self):
        """(150, 40) in (100, 0, 500, 200) is (10.0, 20.0)."""
        position = place_label(150, 40, RECT, "label-1")

        assert (position.x, position.y) == (10.0, 20.0)

    def test_to_pixels_when_placed_then_roundtrips(self):
        """Converting back gives the original click."""
        position = place_label(150, 40, RECT, "label-1")

        assert to_pixels(position, RECT) == (150.0, 40.0)

    def test_place_when_outside_then_clamped(self):
        """Clicks just outside the image land on the edge."""
        position = place_label(90, 250, RECT, "label-1")

        assert (position.x, position.y) == (0.0, 100.0)

    def test_round_half_up_when_half_then_rounds_up(self):
        """Halves round up, unlike Python's banker's rounding."""
        assert round_half_up(12.25) == 12.3
        assert round_half_up(0.05) == 0.1

    def test_rect_when_zero_size_then_raises(self):
        """Image rects need a positive size."""
        with pytest.raises(ValueError):
            ImageRect(0, 0, 0, 10)

    def test_next_label_id_when_gaps_then_past_highest(self):
        """Ids continue past the highest number in use."""
        assert next_label_id(["label-1", "label-4", "other"], "label") == "label-5"
        assert next_label_id([], "step") == "step-1"


class TestImages:
    """Tests for data-URI image decoding (Pillow)."""

    def test_natural_size_when_data_uri_then_dimensions(self, sample_png_data_uri):
        """Natural size is read from the embedded image."""
        assert natural_size(sample_png_data_uri) == (200, 100)

    def test_load_when_url_then_none(self):
        """Opaque URLs are not fetched."""
        assert load_image("https://cdn.example/x.png") is None

    def test_load_when_corrupt_then_none_with_warning(self, caplog):
        """Undecodable payloads are reported and skipped."""
        assert load_image("data:image/png;base64,bm90IGFuIGltYWdl") is None
        assert "Could not decode" in caplog.text

    def test_natural_pixels_when_position_then_scaled(self):
        """Percentages map onto the natural size."""
        assert to_natural_pixels(Position("label-1", 50.0, 25.0), (200, 100)) == (100, 25)


class TestImageModeOperations:
    """Tests for label placement on a DiagramGroup."""

    def test_add_when_image_set_then_position_and_answer(self, diagram):
        """Each placement gets a matching empty answer."""
        result = add_position(diagram, 150, 40, RECT)

        assert result.positions == (Position("label-1", 10.0, 20.0),)
        assert result.answers == (LabelAnswer("label-1"),)

    def test_add_when_no_image_then_refused(self):
        """Labels need an image."""
        group = DiagramGroup("d", QuestionType.DIAGRAM_LABEL_COMPLETION)

        assert add_position(group, 150, 40, RECT) is group

    def test_remove_when_middle_then_other_ids_kept(self, diagram):
        """Removing a label leaves the other ids alone."""
        group = diagram
        for x in (150, 200, 250):
            group = add_position(group, x, 40, RECT)
        group = set_label_answer(group, "label-3", "aorta")

        result = remove_position(group, 1)

        assert [p.label_id for p in result.positions] == ["label-1", "label-3"]
        assert result.answer_for("label-3").correct_answer == "aorta"

    def test_add_after_remove_when_lower_id_free_then_no_collision(self, diagram):
        """New ids never collide with ids still in use."""
        group = add_position(add_position(diagram, 150, 40, RECT), 200, 40, RECT)
        group = remove_position(group, 0)

        result = add_position(group, 300, 40, RECT)

        assert [p.label_id for p in result.positions] == ["label-2", "label-3"]

    def test_flow_chart_when_image_mode_then_step_prefix(self):
        """Flow-chart labels use the step prefix."""
        group = DiagramGroup("f", QuestionType.FLOW_CHART_COMPLETION, image="https://cdn.example/f.png")

        assert add_position(group, 150, 40, RECT).positions[0].label_id == "step-1"

    def test_move_when_out_of_range_then_clamped(self, diagram):
        """Moved coordinates are clamped and rounded."""
        group = add_position(diagram, 150, 40, RECT)

        result = move_position(group, 0, 101.0, 33.333)

        assert (result.positions[0].x, result.positions[0].y) == (100.0, 33.3)

    def test_set_image_when_changed_then_positions_cleared(self, diagram):
        """Placements do not survive a new image."""
        group = add_position(diagram, 150, 40, RECT)

        result = set_image(group, "https://cdn.example/lungs.png")

        assert result.positions == () and result.answers == ()

    def test_answer_for_index_when_unbound_then_falls_back_to_index(self, diagram):
        """Answers without a matching id are read by list position."""
        group = DiagramGroup(
            "d", QuestionType.DIAGRAM_LABEL_COMPLETION,
            image="x.png",
            positions=(Position("label-1", 1, 1),),
            answers=(LabelAnswer("legacy", "valve"),),
        )

        assert answer_for_index(group, 0) == "valve"


class TestTextMode:
    """Tests for text-mode flow charts."""

    def test_add_step_when_gap_then_answer_created(self, flow_text):
        """Gap steps own an answer keyed by step id."""
        result = add_text_step(add_text_step(flow_text, "Start"), "Then", is_gap=True)

        assert [(s.step_id, s.step_number) for s in result.text_steps] == [("step-1", 1), ("step-2", 2)]
        assert result.answers == (LabelAnswer("step-2"),)

    def test_update_step_when_gap_toggled_off_then_answer_dropped(self, flow_text):
        """Turning off is_gap removes the answer."""
        group = add_text_step(flow_text, is_gap=True)

        result = update_text_step(group, 0, is_gap=False, text_before="Plain")

        assert result.answers == ()
        assert result.text_steps[0].text_before == "Plain"

    def test_remove_step_when_first_then_renumbered(self, flow_text):
        """Step numbers stay contiguous; ids do not change."""
        group = flow_text
        for _ in range(3):
            group = add_text_step(group, is_gap=True)

        result = remove_text_step(group, 0)

        assert [(s.step_id, s.step_number) for s in result.text_steps] == [("step-2", 1), ("step-3", 2)]
        assert [a.label_id for a in result.answers] == ["step-2", "step-3"]

    def test_move_step_when_moved_then_answers_follow_order(self, flow_text):
        """Answer order follows gap-step order."""
        group = add_text_step(add_text_step(flow_text, is_gap=True), is_gap=True)

        result = move_text_step(group, 1, 0)

        assert [a.label_id for a in result.answers] == ["step-2", "step-1"]

    @pytest.mark.parametrize("index", [-1, 2])
    def test_move_step_when_index_out_of_range_then_raises(self, flow_text, index):
        """Negative and past-the-end indices are refused."""
        group = add_text_step(add_text_step(flow_text, is_gap=True), is_gap=True)

        with pytest.raises(IndexError):
            move_text_step(group, index, 0)

    def test_chart_type_when_switched_then_other_mode_cleared(self, flow_text):
        """Switching modes discards the other mode's data."""
        group = add_text_step(flow_text, is_gap=True)

        result = set_chart_type(group, CHART_IMAGE)

        assert result.text_steps == () and result.answers == ()
        assert add_position(set_chart_type(result, CHART_TEXT), 1, 1, RECT).positions == ()

    def test_step_when_image_mode_then_raises(self, diagram):
        """Step operations need text mode."""
        with pytest.raises(ValueError):
            add_text_step(diagram)
