"""
Module: reconcile

Purpose:
    Keeps free text and its answer list consistent. The text is the source
    of truth for which gaps exist; the answer list only contributes the
    answers already typed for gaps that survive an edit.

    Table completion follows the same rule with the grid as the source of
    truth: answers exist only for gap cells that are still in the grid and
    outside the header row.

Key Functions:
    - reconcile(text, existing, grammar): Derive the answer list from text
    - set_text / set_gap_answer / add_gap / remove_gap / set_marker_grammar:
      GapTextGroup operations
    - toggle_cell_gap / set_cell_text / set_cell_answer / add_row /
      add_column / remove_row / remove_column / reconcile_cells:
      TableGroup operations

Dependencies:
    - .markers

Used By:
    - authoring.editing
    - authoring.registry (default note text)
    - core.utils.serialization (repair)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Tuple

from ..core.models import CellAnswer, GapAnswer, GapTextGroup, MarkerGrammar, TableGroup
from .markers import (
    BRACKETED_PREFIX,
    escape_markers,
    format_marker,
    gap_ids,
    next_numbered_id,
    scan,
    unescape_markers,
)

logger = logging.getLogger(__name__)

REMOVED_GAP_PLACEHOLDER = "___"
MIN_TABLE_ROWS = 2
MIN_TABLE_COLUMNS = 2


# ─────────────────────────────────────────────────────────────────────────────
# Text gaps
# ─────────────────────────────────────────────────────────────────────────────

def reconcile(
    text: str,
    existing: Iterable[GapAnswer],
    grammar: MarkerGrammar,
) -> Tuple[GapAnswer, ...]:
    """
    Derive the answer list for ``text`` from the markers it contains.

    1. Scan ``text`` with ``grammar`` and collect gap ids in first-occurrence order
    2. Carry forward ``correctAnswer`` for ids already in ``existing``
    3. Add an empty answer for new ids
    4. Drop answers whose id no longer occurs

    Idempotent: ``reconcile(t, reconcile(t, a), g) == reconcile(t, a, g)``.

    Args:
        text: Free text with inline markers
        existing: Current answers (any order)
        grammar: Marker grammar of the group

    Returns:
        New answer tuple in text order

    Example:
        >>> reconcile("A (1)___ B (2)___", [GapAnswer("1", "alpha")], MarkerGrammar.NUMBERED)
        (GapAnswer(gap_id='1', correct_answer='alpha'), GapAnswer(gap_id='2', correct_answer=''))
    """
    previous = {}
    for answer in existing:
        previous.setdefault(answer.gap_id, answer)
    ids = gap_ids(text, grammar)

    result = tuple(previous.get(gap_id) or GapAnswer(gap_id) for gap_id in ids)

    added = [g for g in ids if g not in previous]
    dropped = [g for g in previous if g not in set(ids)]
    if added or dropped:
        logger.debug(f"Reconciled gaps: added={added} dropped={dropped}")
    return result


def _rebuild(group: GapTextGroup, text: str, existing: Iterable[GapAnswer]) -> GapTextGroup:
    answers = reconcile(text, existing, group.marker_grammar)
    if text == group.text and answers == group.answers:
        return group
    return replace(group, text=text, answers=answers)


def reconcile_group(group: GapTextGroup) -> GapTextGroup:
    """Re-derive ``group.answers`` from ``group.text``."""
    return _rebuild(group, group.text, group.answers)


def set_text(group: GapTextGroup, text: str) -> GapTextGroup:
    """Replace the text and reconcile answers against it."""
    return _rebuild(group, text, group.answers)


def set_gap_answer(group: GapTextGroup, gap_id: str, answer: str) -> GapTextGroup:
    """Set the answer for ``gap_id``; unknown ids leave the group unchanged."""
    if group.answer_for(gap_id) is None:
        logger.warning(f"Group {group.id}: no gap {gap_id!r} to answer")
        return group
    answers = tuple(
        replace(a, correct_answer=answer) if a.gap_id == gap_id else a
        for a in group.answers
    )
    return replace(group, answers=answers)


def add_gap(group: GapTextGroup) -> GapTextGroup:
    """
    Append a new marker to the end of the text.

    NUMBERED text gets the next free number; BRACKETED text gets ``[gap]``.
    """
    if group.marker_grammar == MarkerGrammar.NUMBERED:
        marker = format_marker(next_numbered_id(group.text), MarkerGrammar.NUMBERED)
    else:
        marker = format_marker("", MarkerGrammar.BRACKETED)
    text = f"{group.text} {marker}" if group.text else marker
    return _rebuild(group, text, group.answers)


def _bracket_index(gap_id: str) -> int:
    if not gap_id.startswith(BRACKETED_PREFIX):
        raise ValueError(f"Not a bracketed gap id: {gap_id!r}")
    return int(gap_id[len(BRACKETED_PREFIX):])


def remove_gap(group: GapTextGroup, gap_id: str) -> GapTextGroup:
    """
    Remove a gap from the text and its answer from the list.

    Every marker for ``gap_id`` is replaced by a plain ``___`` placeholder.
    For BRACKETED text, later gaps move down one occurrence, so their
    answers are re-keyed to keep following the same marker.
    """
    tokens = scan(group.text, group.marker_grammar)
    targets = [t for t in tokens if t.gap_id == gap_id]
    if not targets:
        logger.warning(f"Group {group.id}: no gap {gap_id!r} to remove")
        return group

    text = group.text
    for token in reversed(targets):
        text = text[:token.start] + REMOVED_GAP_PLACEHOLDER + text[token.end:]

    existing = [a for a in group.answers if a.gap_id != gap_id]
    if group.marker_grammar == MarkerGrammar.BRACKETED:
        removed = _bracket_index(gap_id)
        rekeyed = []
        for answer in existing:
            index = _bracket_index(answer.gap_id)
            if index > removed:
                answer = replace(answer, gap_id=f"{BRACKETED_PREFIX}{index - 1}")
            rekeyed.append(answer)
        existing = rekeyed
    return _rebuild(group, text, existing)


def set_marker_grammar(group: GapTextGroup, grammar: MarkerGrammar) -> GapTextGroup:
    """
    Rewrite every marker into ``grammar``, keeping answers with their markers.

    NUMBERED -> BRACKETED: each occurrence becomes its own ``[gap]``; a
    numbered id used twice yields two gaps that both inherit its answer.
    BRACKETED -> NUMBERED: occurrence k becomes ``(k+1)_______``.
    Literal text that would scan as a marker in the new grammar is escaped.
    """
    grammar = MarkerGrammar(grammar)
    source = group.marker_grammar
    if grammar == source:
        return group

    pieces = []
    answers = []
    cursor = 0
    for occurrence, token in enumerate(scan(group.text, source)):
        chunk = unescape_markers(group.text[cursor:token.start], source)
        pieces.append(escape_markers(chunk, grammar))
        if grammar == MarkerGrammar.NUMBERED:
            new_id = str(occurrence + 1)
        else:
            new_id = f"{BRACKETED_PREFIX}{occurrence}"
        pieces.append(format_marker(new_id, grammar))
        previous = group.answer_for(token.gap_id)
        answers.append(GapAnswer(new_id, previous.correct_answer if previous else ""))
        cursor = token.end
    tail = unescape_markers(group.text[cursor:], source)
    pieces.append(escape_markers(tail, grammar))

    text = "".join(pieces)
    logger.debug(f"Group {group.id}: markers rewritten {source.value} -> {grammar.value}")
    return replace(
        group,
        text=text,
        marker_grammar=grammar,
        answers=reconcile(text, answers, grammar),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Table gaps
# ─────────────────────────────────────────────────────────────────────────────

def cell_id(row: int, col: int) -> str:
    return f"{row}-{col}"


def _sorted_cells(answers: Iterable[CellAnswer]) -> Tuple[CellAnswer, ...]:
    return tuple(sorted(answers, key=lambda a: (a.row, a.col)))


def _check_cell(group: TableGroup, row: int, col: int) -> None:
    if not (0 <= row < group.row_count and 0 <= col < group.col_count):
        raise IndexError(f"Cell ({row}, {col}) outside {group.row_count}x{group.col_count} table")


def reconcile_cells(group: TableGroup) -> TableGroup:
    """Drop answers for cells outside the grid or in the header row."""
    kept = [
        a for a in group.answers
        if 1 <= a.row < group.row_count and 0 <= a.col < group.col_count
    ]
    answers = _sorted_cells(kept)
    if answers == group.answers:
        return group
    logger.debug(f"Group {group.id}: dropped {len(group.answers) - len(kept)} stale cell answer(s)")
    return replace(group, answers=answers)


def toggle_cell_gap(group: TableGroup, row: int, col: int) -> TableGroup:
    """Flag or unflag a cell as a gap. Header cells can never be gaps."""
    _check_cell(group, row, col)
    if row == 0:
        logger.warning(f"Group {group.id}: header cell ({row}, {col}) cannot be a gap")
        return group
    target = cell_id(row, col)
    if group.answer_for(target) is not None:
        answers = tuple(a for a in group.answers if a.cell_id != target)
    else:
        answers = _sorted_cells(group.answers + (CellAnswer(target),))
    return replace(group, answers=answers)


def set_cell_text(group: TableGroup, row: int, col: int, text: str) -> TableGroup:
    _check_cell(group, row, col)
    rows = [list(r) for r in group.rows]
    rows[row][col] = text
    return replace(group, rows=tuple(tuple(r) for r in rows))


def set_cell_answer(group: TableGroup, row: int, col: int, answer: str) -> TableGroup:
    """Set the answer of a gap cell; non-gap cells leave the group unchanged."""
    target = cell_id(row, col)
    if group.answer_for(target) is None:
        logger.warning(f"Group {group.id}: cell {target} is not a gap")
        return group
    answers = tuple(
        replace(a, correct_answer=answer) if a.cell_id == target else a
        for a in group.answers
    )
    return replace(group, answers=answers)


def add_row(group: TableGroup) -> TableGroup:
    return replace(group, rows=group.rows + (("",) * group.col_count,))


def add_column(group: TableGroup) -> TableGroup:
    return replace(group, rows=tuple(row + ("",) for row in group.rows))


def remove_row(group: TableGroup, index: int) -> TableGroup:
    """
    Remove a row (never below two rows).

    Gap cells below the removed row move up with their answers; gaps that
    end up in the header row are dropped.
    """
    _check_cell(group, index, 0)
    if group.row_count <= MIN_TABLE_ROWS:
        logger.warning(f"Group {group.id}: table needs at least {MIN_TABLE_ROWS} rows")
        return group
    rows = group.rows[:index] + group.rows[index + 1:]
    answers = []
    for answer in group.answers:
        if answer.row == index:
            continue
        row = answer.row - 1 if answer.row > index else answer.row
        answers.append(replace(answer, cell_id=cell_id(row, answer.col)))
    return reconcile_cells(replace(group, rows=rows, answers=tuple(answers)))


def remove_column(group: TableGroup, index: int) -> TableGroup:
    """Remove a column (never below two columns); later gap cells shift left."""
    _check_cell(group, 0, index)
    if group.col_count <= MIN_TABLE_COLUMNS:
        logger.warning(f"Group {group.id}: table needs at least {MIN_TABLE_COLUMNS} columns")
        return group
    rows = tuple(row[:index] + row[index + 1:] for row in group.rows)
    answers = []
    for answer in group.answers:
        if answer.col == index:
            continue
        col = answer.col - 1 if answer.col > index else answer.col
        answers.append(replace(answer, cell_id=cell_id(answer.row, col)))
    return reconcile_cells(replace(group, rows=rows, answers=tuple(answers)))
