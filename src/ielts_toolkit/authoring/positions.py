"""
Module: positions

Purpose:
    Positional label engine for image-based variants (diagram labelling and
    image-mode flow charts). A pointer click on the displayed image becomes
    a percentage coordinate relative to the image, so placements survive any
    change of display size. Also manages text-mode flow-chart steps.

Key Functions:
    - place_label(click_x, click_y, rect, label_id): Click -> Position
    - to_pixels(position, rect): Position -> display pixels
    - load_image(image_ref) / natural_size(image_ref): Decode a data-URI image
    - to_natural_pixels(position, size): Position -> natural-image pixels
    - add_position / remove_position / move_position / set_label_answer /
      answer_for_index / set_image / set_chart_type: DiagramGroup operations
    - add_text_step / update_text_step / remove_text_step / move_text_step:
      text-mode flow-chart operations

Dependencies:
    - Pillow: Reading natural image dimensions from data URIs
    - .sequencer: Step renumbering

Used By:
    - authoring.editing
    - output.answer_key: Diagram thumbnails
"""

from __future__ import annotations

import base64
import binascii
import logging
import math
import re
from dataclasses import dataclass, replace
from io import BytesIO
from typing import Iterable, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..core.models import (
    CHART_IMAGE,
    CHART_TEXT,
    DiagramGroup,
    LabelAnswer,
    Position,
    QuestionType,
    TextStep,
)
from ..core.models.anchors import COORDINATE_MAX, COORDINATE_MIN
from .sequencer import renumber_sequential

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 1
_DATA_URI = re.compile(r"^data:image/[\w.+-]+;base64,(?P<payload>.+)$", re.DOTALL)


# ─────────────────────────────────────────────────────────────────────────────
# Coordinates
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ImageRect:
    """
    Bounding box of the displayed image, in the same pixel space as clicks.

    Attributes:
        left: X of the left edge
        top: Y of the top edge
        width: Displayed width (> 0)
        height: Displayed height (> 0)
    """

    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image rect must have positive size: {self.width}x{self.height}")


def round_half_up(value: float, precision: int = DEFAULT_PRECISION) -> float:
    """Round like JavaScript's Math.round: halves always go up."""
    factor = 10 ** precision
    return math.floor(value * factor + 0.5) / factor


def clamp_percent(value: float) -> float:
    return max(COORDINATE_MIN, min(COORDINATE_MAX, value))


def _percent(value: float, precision: int) -> float:
    return clamp_percent(round_half_up(clamp_percent(value), precision))


def place_label(
    click_x: float,
    click_y: float,
    rect: ImageRect,
    label_id: str,
    precision: int = DEFAULT_PRECISION,
) -> Position:
    """
    Convert a click on the displayed image into a percentage Position.

    Clicks marginally outside the image are clamped to the edge.

    Example:
        >>> place_label(150, 40, ImageRect(100, 0, 500, 200), "label-1")
        Position(label_id='label-1', x=10.0, y=20.0)
    """
    x = (click_x - rect.left) / rect.width * 100
    y = (click_y - rect.top) / rect.height * 100
    return Position(label_id, _percent(x, precision), _percent(y, precision))


def to_pixels(position: Position, rect: ImageRect) -> Tuple[float, float]:
    """Display-pixel coordinates of ``position`` inside ``rect``."""
    return (
        rect.left + position.x / 100 * rect.width,
        rect.top + position.y / 100 * rect.height,
    )


def next_label_id(existing_ids: Iterable[str], prefix: str) -> str:
    """
    Next ``<prefix>-N`` id: one past the highest N in use.

    Existing ids are never renumbered, so a new id can never collide with
    an answer still bound to an earlier label.
    """
    highest = 0
    head = f"{prefix}-"
    for label_id in existing_ids:
        tail = label_id[len(head):] if label_id.startswith(head) else ""
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{prefix}-{highest + 1}"


# ─────────────────────────────────────────────────────────────────────────────
# Natural image size (Pillow)
# ─────────────────────────────────────────────────────────────────────────────

def load_image(image_ref: Optional[str]) -> Optional[Image.Image]:
    """
    Decode a base64 data-URI image.

    Returns None for opaque URLs (the asset collaborator owns those) and for
    data URIs that cannot be decoded.
    """
    if not image_ref:
        return None
    match = _DATA_URI.match(image_ref)
    if not match:
        return None
    try:
        raw = base64.b64decode(match.group("payload"), validate=False)
        img = Image.open(BytesIO(raw))
        img.load()
        return img
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not decode data-URI image: {e}")
        return None


def natural_size(image_ref: Optional[str]) -> Optional[Tuple[int, int]]:
    """Natural (width, height) of a data-URI image, None when unknown."""
    img = load_image(image_ref)
    return img.size if img is not None else None


def to_natural_pixels(position: Position, size: Tuple[int, int]) -> Tuple[int, int]:
    """Pixel coordinates of ``position`` on the natural-size image."""
    width, height = size
    return (round(position.x / 100 * width), round(position.y / 100 * height))


# ─────────────────────────────────────────────────────────────────────────────
# DiagramGroup operations (image mode)
# ─────────────────────────────────────────────────────────────────────────────

def _label_prefix(group: DiagramGroup) -> str:
    return group.constraints.label_prefix or "label"


def add_position(
    group: DiagramGroup,
    click_x: float,
    click_y: float,
    rect: ImageRect,
    precision: int = DEFAULT_PRECISION,
) -> DiagramGroup:
    """
    Place a new label at a click and create its (empty) answer entry.

    Ignored with a warning in text mode or before an image is set.
    """
    if group.is_text_mode:
        logger.warning(f"Group {group.id}: cannot place labels on a text-mode flow chart")
        return group
    if not group.image:
        logger.warning(f"Group {group.id}: cannot place labels before an image is set")
        return group
    label_id = next_label_id(
        [p.label_id for p in group.positions] + [a.label_id for a in group.answers],
        _label_prefix(group),
    )
    position = place_label(click_x, click_y, rect, label_id, precision)
    logger.debug(f"Group {group.id}: placed {label_id} at ({position.x}, {position.y})")
    return replace(
        group,
        positions=group.positions + (position,),
        answers=group.answers + (LabelAnswer(label_id),),
    )


def remove_position(group: DiagramGroup, index: int) -> DiagramGroup:
    """Remove the position at ``index`` and its answer; other ids are kept."""
    if not 0 <= index < len(group.positions):
        raise IndexError(f"Position index out of range: {index}")
    removed = group.positions[index]
    return replace(
        group,
        positions=group.positions[:index] + group.positions[index + 1:],
        answers=tuple(a for a in group.answers if a.label_id != removed.label_id),
    )


def move_position(
    group: DiagramGroup,
    index: int,
    x: float,
    y: float,
    precision: int = DEFAULT_PRECISION,
) -> DiagramGroup:
    """Set new percentage coordinates (clamped and rounded) for a position."""
    if not 0 <= index < len(group.positions):
        raise IndexError(f"Position index out of range: {index}")
    positions = list(group.positions)
    positions[index] = replace(positions[index], x=_percent(x, precision), y=_percent(y, precision))
    return replace(group, positions=tuple(positions))


def set_label_answer(group: DiagramGroup, label_id: str, answer: str) -> DiagramGroup:
    """Set the answer bound to ``label_id``; unknown ids leave the group unchanged."""
    if group.answer_for(label_id) is None:
        logger.warning(f"Group {group.id}: no label {label_id!r} to answer")
        return group
    answers = tuple(
        replace(a, correct_answer=answer) if a.label_id == label_id else a
        for a in group.answers
    )
    return replace(group, answers=answers)


def answer_for_index(group: DiagramGroup, index: int) -> str:
    """
    Answer shown for the label at display index ``index``.

    Binds by id when an answer carries the position's label id, otherwise
    falls back to the answer at the same list index.
    """
    if group.is_text_mode:
        gap_steps = [s for s in group.text_steps if s.is_gap]
        anchor = gap_steps[index].step_id if index < len(gap_steps) else None
    else:
        anchor = group.positions[index].label_id if index < len(group.positions) else None
    if anchor is not None:
        bound = group.answer_for(anchor)
        if bound is not None:
            return bound.correct_answer
    if 0 <= index < len(group.answers):
        return group.answers[index].correct_answer
    return ""


def set_image(group: DiagramGroup, image_ref: Optional[str]) -> DiagramGroup:
    """
    Replace the image reference.

    Placements are relative to the old image, so positions and their
    answers are cleared whenever the reference changes.
    """
    if image_ref == group.image:
        return group
    if group.is_text_mode:
        logger.warning(f"Group {group.id}: switch to image mode before setting an image")
        return group
    if group.positions:
        logger.debug(f"Group {group.id}: image changed, cleared {len(group.positions)} position(s)")
    return replace(group, image=image_ref or None, positions=(), answers=())


def set_chart_type(group: DiagramGroup, chart_type: str) -> DiagramGroup:
    """
    Switch a flow chart between image and text mode.

    The data of the mode being left is discarded.
    """
    if chart_type == group.chart_type:
        return group
    if group.question_type != QuestionType.FLOW_CHART_COMPLETION:
        raise ValueError(f"{group.question_type.value} has no chart type")
    if chart_type == CHART_TEXT:
        return replace(group, chart_type=CHART_TEXT, image=None, positions=(), answers=())
    if chart_type == CHART_IMAGE:
        return replace(group, chart_type=CHART_IMAGE, text_steps=(), answers=())
    raise ValueError(f"Unknown chart type: {chart_type!r}")


# ─────────────────────────────────────────────────────────────────────────────
# Text-mode flow chart steps
# ─────────────────────────────────────────────────────────────────────────────

def sync_step_answers(group: DiagramGroup, steps: Tuple[TextStep, ...]) -> DiagramGroup:
    """
    Renumber ``steps`` and keep exactly one answer per gap step, in step order.
    """
    steps = renumber_sequential(steps, start=1, field="step_number")
    previous = {a.label_id: a for a in group.answers}
    answers = tuple(
        previous.get(step.step_id) or LabelAnswer(step.step_id)
        for step in steps
        if step.is_gap
    )
    return replace(group, text_steps=steps, answers=answers)


def _require_text_mode(group: DiagramGroup) -> None:
    if not group.is_text_mode:
        raise ValueError(f"Group {group.id} is not a text-mode flow chart")


def add_text_step(
    group: DiagramGroup,
    text_before: str = "",
    text_after: str = "",
    is_gap: bool = False,
) -> DiagramGroup:
    _require_text_mode(group)
    step_id = next_label_id(
        [s.step_id for s in group.text_steps] + [a.label_id for a in group.answers],
        _label_prefix(group),
    )
    step = TextStep(step_id, len(group.text_steps) + 1, text_before, text_after, is_gap)
    return sync_step_answers(group, group.text_steps + (step,))


def update_text_step(
    group: DiagramGroup,
    index: int,
    *,
    text_before: Optional[str] = None,
    text_after: Optional[str] = None,
    is_gap: Optional[bool] = None,
) -> DiagramGroup:
    """Edit a step; toggling ``is_gap`` creates or drops its answer entry."""
    _require_text_mode(group)
    if not 0 <= index < len(group.text_steps):
        raise IndexError(f"Step index out of range: {index}")
    changes = {
        k: v for k, v in (
            ("text_before", text_before), ("text_after", text_after), ("is_gap", is_gap),
        ) if v is not None
    }
    steps = list(group.text_steps)
    steps[index] = replace(steps[index], **changes)
    return sync_step_answers(group, tuple(steps))


def remove_text_step(group: DiagramGroup, index: int) -> DiagramGroup:
    _require_text_mode(group)
    if not 0 <= index < len(group.text_steps):
        raise IndexError(f"Step index out of range: {index}")
    return sync_step_answers(group, group.text_steps[:index] + group.text_steps[index + 1:])


def move_text_step(group: DiagramGroup, index: int, new_index: int) -> DiagramGroup:
    _require_text_mode(group)
    if not 0 <= index < len(group.text_steps):
        raise IndexError(f"Step index out of range: {index}")
    steps = list(group.text_steps)
    step = steps.pop(index)
    steps.insert(max(0, min(new_index, len(steps))), step)
    return sync_step_answers(group, tuple(steps))
