"""
Module: projection

Purpose:
    Read-only projection of a Document into a render-ready tree. The same
    tree backs the live editing preview and the final summary view, so the
    projection is a pure function: equal documents give equal trees, and
    nothing in the document is touched.

    Every group is dispatched on its question type to a projector that
    returns the group body as RenderNodes. Blanks carry the document-wide
    question number from ``numbering.assign_question_numbers``.

Key Classes:
    - NodeKind: Node vocabulary (item, choice, pool, text, blank, ...)
    - RenderNode: Generic frozen tree node
    - GroupNode: One projected question group
    - RenderTree: Stem + groups

Key Functions:
    - project(document, start=1): Document -> RenderTree

Dependencies:
    - .markers: Text/gap segmentation
    - .numbering: Question numbers

Used By:
    - output.answer_key
    - cli: ``preview`` command
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from ..core.models import (
    CompletionGroup,
    DiagramGroup,
    Document,
    GapTextGroup,
    MatchingGroup,
    MultiAnswerGroup,
    MultipleChoiceGroup,
    QuestionGroup,
    QuestionType,
    StatementGroup,
    Stem,
    TableGroup,
)
from .markers import GapSegment, segments
from .numbering import QuestionRange, assign_question_numbers
from .sequencer import option_letters


class NodeKind(str, Enum):
    ITEM = "item"            # Numbered question
    CHOICE = "choice"        # Lettered option (per item or in a pool)
    POOL = "pool"            # Shared label pool listing
    TEXT = "text"            # Plain text run
    BLANK = "blank"          # Numbered gap with its answer
    PASSAGE = "passage"      # Text with inline blanks
    TABLE = "table"
    ROW = "row"
    CELL = "cell"
    IMAGE = "image"          # Image with placed labels
    LABEL = "label"          # Numbered label at x/y percent
    STEP = "step"            # Text-mode flow-chart step
    WORD_BANK = "word_bank"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RenderNode:
    """
    One node of the render tree.

    Attributes:
        kind: Node type
        text: Display text (prompt, option text, cell text, ...)
        number: Question number for items, blanks and labels
        ref: Letter, gap id, cell id or label id the node stands for
        answer: Expected answer (answer annotation)
        x, y: Percent coordinates (labels only)
        children: Nested nodes
    """

    kind: NodeKind
    text: str = ""
    number: Optional[int] = None
    ref: Optional[str] = None
    answer: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    children: Tuple[RenderNode, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"kind": self.kind.value}
        if self.text:
            d["text"] = self.text
        for key in ("number", "ref", "answer", "x", "y"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        if self.children:
            d["children"] = [c.to_dict() for c in self.children]
        return d

    def walk(self):
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class GroupNode:
    group_id: str
    question_type: QuestionType
    title: str
    heading: str
    instruction: str
    numbers: QuestionRange
    word_limit_text: str = ""
    body: Tuple[RenderNode, ...] = ()

    def answers(self) -> Tuple[Tuple[int, str], ...]:
        """(question number, answer) pairs in number order."""
        pairs = {}
        for node in self.body:
            for n in node.walk():
                if n.number is not None and n.kind in (NodeKind.ITEM, NodeKind.BLANK, NodeKind.LABEL):
                    pairs.setdefault(n.number, n.answer or "")
        return tuple(sorted(pairs.items()))

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "groupId": self.group_id,
            "questionType": self.question_type.value,
            "title": self.title,
            "heading": self.heading,
            "instruction": self.instruction,
            "firstNumber": self.numbers.first,
            "lastNumber": self.numbers.last,
            "body": [n.to_dict() for n in self.body],
        }
        if self.word_limit_text:
            d["wordLimitText"] = self.word_limit_text
        return d


@dataclass(frozen=True)
class RenderTree:
    stem: Stem
    groups: Tuple[GroupNode, ...] = ()

    @property
    def total_questions(self) -> int:
        return sum(g.numbers.count for g in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stem": self.stem.to_dict(),
            "totalQuestions": self.total_questions,
            "groups": [g.to_dict() for g in self.groups],
        }


Projector = Callable[[QuestionGroup, QuestionRange], Tuple[RenderNode, ...]]


# ─────────────────────────────────────────────────────────────────────────────
# Shared pieces
# ─────────────────────────────────────────────────────────────────────────────

def _word_bank(group: QuestionGroup) -> Tuple[RenderNode, ...]:
    options = getattr(group, "options", ())
    if not options:
        return ()
    return (RenderNode(
        NodeKind.WORD_BANK,
        children=tuple(
            RenderNode(NodeKind.CHOICE, text=text, ref=letter)
            for letter, text in zip(option_letters(len(options)), options)
        ),
    ),)


def _pool_node(group: QuestionGroup) -> RenderNode:
    return RenderNode(
        NodeKind.POOL,
        children=tuple(RenderNode(NodeKind.CHOICE, text=e.text, ref=e.label) for e in group.pool),
    )


def _blank(number: Optional[int], ref: str, answer: str) -> RenderNode:
    return RenderNode(NodeKind.BLANK, number=number, ref=ref, answer=answer)


# ─────────────────────────────────────────────────────────────────────────────
# Projectors
# ─────────────────────────────────────────────────────────────────────────────

def _project_multiple_choice(group: MultipleChoiceGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    return tuple(
        RenderNode(
            NodeKind.ITEM,
            text=item.question,
            number=number,
            answer=item.answer,
            children=tuple(
                RenderNode(NodeKind.CHOICE, text=text, ref=letter)
                for letter, text in zip(option_letters(len(item.options)), item.options)
            ),
        )
        for number, item in zip(numbers, group.items)
    )


def _project_statements(group: StatementGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    return tuple(
        RenderNode(NodeKind.ITEM, text=item.statement, number=number, answer=item.answer)
        for number, item in zip(numbers, group.items)
    )


def _project_completion(group: CompletionGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    items = tuple(
        RenderNode(
            NodeKind.ITEM,
            text=item.prompt,
            number=number,
            answer=item.correct_answer,
            children=(RenderNode(NodeKind.IMAGE, ref=item.image_url),) if item.image_url else (),
        )
        for number, item in zip(numbers, group.items)
    )
    return items + _word_bank(group)


def _project_multi_answer(group: MultiAnswerGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    items = tuple(
        RenderNode(NodeKind.ITEM, text=item.question, number=number, answer=", ".join(item.answers))
        for number, item in zip(numbers, group.items)
    )
    return (_pool_node(group),) + items


def _project_matching(group: MatchingGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    items = tuple(
        RenderNode(
            NodeKind.ITEM,
            text=item.prompt,
            number=number,
            answer=item.answer,
            children=(RenderNode(NodeKind.IMAGE, ref=item.image_url),) if item.image_url else (),
        )
        for number, item in zip(numbers, group.items)
    )
    return (_pool_node(group),) + items


def _project_gap_text(group: GapTextGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    number_for = {a.gap_id: n for n, a in zip(numbers, group.answers)}
    answer_for = {a.gap_id: a.correct_answer for a in group.answers}
    parts = []
    for segment in segments(group.text, group.marker_grammar):
        if isinstance(segment, GapSegment):
            gap_id = segment.gap_id
            parts.append(_blank(number_for.get(gap_id), gap_id, answer_for.get(gap_id, "")))
        else:
            parts.append(RenderNode(NodeKind.TEXT, text=segment.text))
    return (RenderNode(NodeKind.PASSAGE, children=tuple(parts)),) + _word_bank(group)


def _project_table(group: TableGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    number_for = {a.cell_id: n for n, a in zip(numbers, group.answers)}
    answer_for = {a.cell_id: a.correct_answer for a in group.answers}
    rows = []
    for r, row in enumerate(group.rows):
        cells = []
        for c, text in enumerate(row):
            cell_id = f"{r}-{c}"
            if cell_id in number_for:
                child = (_blank(number_for[cell_id], cell_id, answer_for[cell_id]),)
                cells.append(RenderNode(NodeKind.CELL, text=text, ref=cell_id, children=child))
            else:
                cells.append(RenderNode(NodeKind.CELL, text=text, ref=cell_id))
        rows.append(RenderNode(NodeKind.ROW, number=r, children=tuple(cells)))
    return (RenderNode(NodeKind.TABLE, children=tuple(rows)),) + _word_bank(group)


def _project_diagram(group: DiagramGroup, numbers: QuestionRange) -> Tuple[RenderNode, ...]:
    answer_for = {a.label_id: a.correct_answer for a in group.answers}
    if group.is_text_mode:
        gap_numbers = iter(numbers)
        steps = []
        for step in group.text_steps:
            children = []
            if step.text_before:
                children.append(RenderNode(NodeKind.TEXT, text=step.text_before))
            if step.is_gap:
                children.append(_blank(next(gap_numbers, None), step.step_id, answer_for.get(step.step_id, "")))
            if step.text_after:
                children.append(RenderNode(NodeKind.TEXT, text=step.text_after))
            steps.append(RenderNode(
                NodeKind.STEP, number=step.step_number, ref=step.step_id, children=tuple(children),
            ))
        return tuple(steps) + _word_bank(group)

    labels = tuple(
        RenderNode(
            NodeKind.LABEL,
            number=number,
            ref=position.label_id,
            answer=answer_for.get(position.label_id, ""),
            x=position.x,
            y=position.y,
        )
        for number, position in zip(numbers, group.positions)
    )
    image = RenderNode(NodeKind.IMAGE, text=group.description, ref=group.image, children=labels)
    return (image,) + _word_bank(group)


_PROJECTORS: Dict[QuestionType, Projector] = {
    QuestionType.MULTIPLE_CHOICE: _project_multiple_choice,
    QuestionType.MULTIPLE_CHOICE_MULTIPLE_ANSWERS: _project_multi_answer,
    QuestionType.TRUE_FALSE_NOT_GIVEN: _project_statements,
    QuestionType.YES_NO_NOT_GIVEN: _project_statements,
    QuestionType.MATCHING: _project_matching,
    QuestionType.MATCHING_INFORMATION: _project_matching,
    QuestionType.MATCHING_HEADINGS: _project_matching,
    QuestionType.MATCHING_FEATURES: _project_matching,
    QuestionType.MATCHING_SENTENCE_ENDINGS: _project_matching,
    QuestionType.SENTENCE_COMPLETION: _project_completion,
    QuestionType.FORM_COMPLETION: _project_completion,
    QuestionType.SHORT_ANSWER: _project_completion,
    QuestionType.SUMMARY_COMPLETION: _project_gap_text,
    QuestionType.NOTE_COMPLETION: _project_gap_text,
    QuestionType.TABLE_COMPLETION: _project_table,
    QuestionType.FLOW_CHART_COMPLETION: _project_diagram,
    QuestionType.DIAGRAM_LABEL_COMPLETION: _project_diagram,
}

if set(_PROJECTORS) != set(QuestionType):
    raise RuntimeError("Every QuestionType needs a projector")


def project_group(group: QuestionGroup, numbers: QuestionRange) -> GroupNode:
    return GroupNode(
        group_id=group.id,
        question_type=group.question_type,
        title=group.constraints.title,
        heading=numbers.label,
        instruction=group.instruction,
        numbers=numbers,
        word_limit_text=getattr(group, "word_limit_text", ""),
        body=_PROJECTORS[group.question_type](group, numbers),
    )


def project(document: Document, start: int = 1) -> RenderTree:
    """
    Project ``document`` into a RenderTree.

    Args:
        document: Document to render (not modified)
        start: First question number

    Returns:
        RenderTree; structurally equal for structurally equal documents
    """
    ranges = assign_question_numbers(document, start)
    return RenderTree(
        stem=document.stem,
        groups=tuple(project_group(g, ranges[g.id]) for g in document.groups),
    )
