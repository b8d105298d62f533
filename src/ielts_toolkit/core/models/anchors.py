"""
Module: anchors

Purpose:
    Provides the answer-key records that are anchored to something other than
    a numbered item: inline text gaps, table cells, image positions and
    text-mode flow-chart steps.

Key Classes:
    - GapAnswer: Answer for an inline text gap
    - CellAnswer: Answer for a table cell flagged as a gap
    - Position: Percentage coordinate on an image
    - LabelAnswer: Answer bound to a Position by label id
    - TextStep: One step of a text-mode flow chart

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.groups
    - authoring.reconcile
    - authoring.positions
"""

from __future__ import annotations

from dataclasses import dataclass

COORDINATE_MIN = 0.0
COORDINATE_MAX = 100.0


@dataclass(frozen=True, slots=True)
class GapAnswer:
    """Answer for one gap marker found in free text."""

    gap_id: str
    correct_answer: str = ""

    def __post_init__(self) -> None:
        if not self.gap_id:
            raise ValueError("gap_id cannot be empty")

    def to_dict(self) -> dict:
        return {"gapId": self.gap_id, "correctAnswer": self.correct_answer}

    @classmethod
    def from_dict(cls, data: dict) -> GapAnswer:
        return cls(gap_id=str(data["gapId"]), correct_answer=data.get("correctAnswer") or "")


@dataclass(frozen=True, slots=True)
class CellAnswer:
    """Answer for a table cell; ``cell_id`` is "<row>-<col>"."""

    cell_id: str
    correct_answer: str = ""

    def __post_init__(self) -> None:
        if not self.cell_id:
            raise ValueError("cell_id cannot be empty")

    @property
    def row(self) -> int:
        return int(self.cell_id.split("-")[0])

    @property
    def col(self) -> int:
        return int(self.cell_id.split("-")[1])

    def to_dict(self) -> dict:
        return {"cellId": self.cell_id, "correctAnswer": self.correct_answer}

    @classmethod
    def from_dict(cls, data: dict) -> CellAnswer:
        return cls(cell_id=str(data["cellId"]), correct_answer=data.get("correctAnswer") or "")


@dataclass(frozen=True, slots=True)
class Position:
    """
    Label placement on an image, in percent of the image's natural size.

    Attributes:
        label_id: Stable handle like "label-3" or "step-1"
        x: Horizontal percentage, 0.0-100.0
        y: Vertical percentage, 0.0-100.0

    Invariants:
        - 0 <= x <= 100 and 0 <= y <= 100

    Example:
        >>> Position("label-1", 10.0, 20.0).x
        10.0
    """

    label_id: str
    x: float
    y: float

    def __post_init__(self) -> None:
        if not self.label_id:
            raise ValueError("label_id cannot be empty")
        for axis, value in (("x", self.x), ("y", self.y)):
            if not (COORDINATE_MIN <= value <= COORDINATE_MAX):
                raise ValueError(f"{axis} must be within 0-100: {value}")

    def to_dict(self) -> dict:
        return {"labelId": self.label_id, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> Position:
        return cls(label_id=str(data["labelId"]), x=float(data["x"]), y=float(data["y"]))


@dataclass(frozen=True, slots=True)
class LabelAnswer:
    """Answer for the position (or text step) carrying the same label id."""

    label_id: str
    correct_answer: str = ""

    def __post_init__(self) -> None:
        if not self.label_id:
            raise ValueError("label_id cannot be empty")

    def to_dict(self) -> dict:
        return {"labelId": self.label_id, "correctAnswer": self.correct_answer}

    @classmethod
    def from_dict(cls, data: dict) -> LabelAnswer:
        return cls(label_id=str(data["labelId"]), correct_answer=data.get("correctAnswer") or "")


@dataclass(frozen=True, slots=True)
class TextStep:
    """One step of a text-mode flow chart; gap steps own an answer."""

    step_id: str
    step_number: int
    text_before: str = ""
    text_after: str = ""
    is_gap: bool = False

    def __post_init__(self) -> None:
        if self.step_number < 1:
            raise ValueError(f"step_number must be positive: {self.step_number}")

    def to_dict(self) -> dict:
        return {
            "stepId": self.step_id,
            "stepNumber": self.step_number,
            "textBefore": self.text_before,
            "textAfter": self.text_after,
            "isGap": self.is_gap,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TextStep:
        return cls(
            step_id=str(data["stepId"]),
            step_number=data["stepNumber"],
            text_before=data.get("textBefore", ""),
            text_after=data.get("textAfter", ""),
            is_gap=bool(data.get("isGap", False)),
        )
