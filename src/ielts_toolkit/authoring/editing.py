"""
Module: editing

Purpose:
    Pure group operations for every variant family. Each takes a group and
    returns a new group (or the same group when the edit is refused or has
    no effect), and each leaves the group invariants intact. Operations are
    meant to be applied through ``Document.update_group``.

    Text gaps, table cells and image labels are handled by the reconcile
    and positions engines; their operations are re-exported here so an
    editor has one module to call into.

Key Functions:
    - Common: set_instruction, set_starting_number, set_word_limit,
      add/set/remove_word_bank_option
    - Enumerated items: add_item, update_item, remove_item, move_item,
      add/set/remove_choice_option
    - Label pools: add_pool_entry, set_pool_entry_text, remove_pool_entry,
      move_pool_entry, set_answers_required
    - repair_group: Re-derive everything derivable and clear dangling refs

Dependencies:
    - .sequencer, .reconcile, .positions, .registry, .config

Used By:
    - core.models.document (via update_group)
    - core.utils.serialization (repair)
    - cli: ``repair`` command
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

from ..core.models import (
    CompletionGroup,
    CompletionItem,
    DiagramGroup,
    GapTextGroup,
    LabelAnswer,
    MatchingGroup,
    MatchingItem,
    MultiAnswerGroup,
    MultiAnswerItem,
    MultipleChoiceGroup,
    MultipleChoiceItem,
    PoolEntry,
    QuestionGroup,
    StatementGroup,
    StatementItem,
    TableGroup,
)
from .config import DEFAULT_CONFIG, AuthoringConfig
from .positions import (  # noqa: F401  (re-exported)
    add_position,
    add_text_step,
    answer_for_index,
    move_position,
    move_text_step,
    remove_position,
    remove_text_step,
    set_chart_type,
    set_image,
    set_label_answer,
    sync_step_answers,
    update_text_step,
)
from .reconcile import (  # noqa: F401  (re-exported)
    add_column,
    add_gap,
    add_row,
    reconcile_cells,
    reconcile_group,
    remove_column,
    remove_gap,
    remove_row,
    set_cell_answer,
    set_cell_text,
    set_gap_answer,
    set_marker_grammar,
    set_text,
    toggle_cell_gap,
)
from .registry import min_pool_size
from .sequencer import (
    append_pool_entry,
    cascade_reference_shift,
    next_letter,
    option_letters,
    relabel_pool,
    remove_pool_entry as _remove_letter_entry,
    renumber_sequential,
    rewrite_references,
)

logger = logging.getLogger(__name__)

ItemGroup = (MultipleChoiceGroup, StatementGroup, CompletionGroup, MultiAnswerGroup, MatchingGroup)
PoolGroup = (MultiAnswerGroup, MatchingGroup)

_ITEM_CLASSES: Dict[type, type] = {
    MultipleChoiceGroup: MultipleChoiceItem,
    StatementGroup: StatementItem,
    CompletionGroup: CompletionItem,
    MultiAnswerGroup: MultiAnswerItem,
    MatchingGroup: MatchingItem,
}


def _require(group: QuestionGroup, kinds: tuple, action: str) -> None:
    if not isinstance(group, kinds):
        raise TypeError(f"{group.question_type.value} groups do not support {action}")


def _check_index(index: int, size: int, what: str) -> None:
    if not 0 <= index < size:
        raise IndexError(f"{what} index out of range: {index}")


# ─────────────────────────────────────────────────────────────────────────────
# Common fields
# ─────────────────────────────────────────────────────────────────────────────

def set_instruction(group: QuestionGroup, instruction: str) -> QuestionGroup:
    return replace(group, instruction=instruction)


def set_starting_number(group: QuestionGroup, start: int) -> QuestionGroup:
    """Change the numbering offset and renumber items from it."""
    if start < 1:
        raise ValueError(f"Starting number must be positive: {start}")
    if isinstance(group, ItemGroup):
        return replace(group, starting_number=start, items=renumber_sequential(group.items, start))
    return replace(group, starting_number=start)


def set_word_limit(
    group: QuestionGroup,
    limit: Optional[int],
    config: Optional[AuthoringConfig] = None,
) -> QuestionGroup:
    """Set (or clear with None) the word limit and its instruction text."""
    if not group.constraints.word_limit:
        raise TypeError(f"{group.question_type.value} groups have no word limit")
    if limit is not None and limit < 1:
        raise ValueError(f"Word limit must be positive: {limit}")
    config = config or DEFAULT_CONFIG
    return replace(group, word_limit=limit, word_limit_text=config.word_limit_text(limit))


def _require_word_bank(group: QuestionGroup) -> None:
    if not group.constraints.word_bank:
        raise TypeError(f"{group.question_type.value} groups have no word bank")


def add_word_bank_option(group: QuestionGroup, text: str = "") -> QuestionGroup:
    _require_word_bank(group)
    return replace(group, options=group.options + (text,))


def set_word_bank_option(group: QuestionGroup, index: int, text: str) -> QuestionGroup:
    _require_word_bank(group)
    _check_index(index, len(group.options), "Word bank option")
    options = list(group.options)
    options[index] = text
    return replace(group, options=tuple(options))


def remove_word_bank_option(group: QuestionGroup, index: int) -> QuestionGroup:
    _require_word_bank(group)
    _check_index(index, len(group.options), "Word bank option")
    options = list(group.options)
    del options[index]
    return replace(group, options=tuple(options))


# ─────────────────────────────────────────────────────────────────────────────
# Enumerated items
# ─────────────────────────────────────────────────────────────────────────────

def _answer_is_valid(group: QuestionGroup, item: Any) -> bool:
    if isinstance(group, MultipleChoiceGroup):
        return not item.answer or item.answer in option_letters(len(item.options))
    if isinstance(group, StatementGroup):
        return not item.answer or item.answer in group.allowed_answers
    if isinstance(group, MatchingGroup):
        return not item.answer or item.answer in group.pool_references
    if isinstance(group, MultiAnswerGroup):
        return (
            set(item.answers) <= set(group.pool_references)
            and len(item.answers) <= group.answers_required
        )
    return True


def _with_items(group: QuestionGroup, items: Sequence[Any]) -> QuestionGroup:
    return replace(group, items=renumber_sequential(items, group.starting_number))


def add_item(
    group: QuestionGroup,
    config: Optional[AuthoringConfig] = None,
    **fields: Any,
) -> QuestionGroup:
    """
    Append a new item (numbered after the last one).

    Multiple-choice items start with ``config.default_option_count`` empty
    options unless ``options`` is given.
    """
    _require(group, ItemGroup, "items")
    config = config or DEFAULT_CONFIG
    if isinstance(group, MultipleChoiceGroup):
        fields.setdefault("options", ("",) * config.default_option_count)
    if "options" in fields:
        fields["options"] = tuple(fields["options"])
    if "answers" in fields:
        fields["answers"] = tuple(fields["answers"])
    item = _ITEM_CLASSES[type(group)](number=group.starting_number + len(group.items), **fields)
    if not _answer_is_valid(group, item):
        logger.warning(f"Group {group.id}: refused new item with invalid answer")
        return group
    return _with_items(group, group.items + (item,))


def update_item(group: QuestionGroup, index: int, **changes: Any) -> QuestionGroup:
    """
    Change fields of the item at ``index``.

    ``number`` cannot be changed. An answer that does not refer to a
    current option / pool entry is refused (logged, group unchanged).
    """
    _require(group, ItemGroup, "items")
    if "number" in changes:
        raise ValueError("Item numbers are assigned automatically")
    _check_index(index, len(group.items), "Item")
    for key in ("options", "answers"):
        if key in changes:
            changes[key] = tuple(changes[key])
    if isinstance(group, MultiAnswerGroup) and "answers" in changes:
        order = {ref: i for i, ref in enumerate(group.pool_references)}
        changes["answers"] = tuple(sorted(set(changes["answers"]), key=lambda a: order.get(a, len(order))))
    items = list(group.items)
    updated = replace(items[index], **changes)
    if not _answer_is_valid(group, updated):
        logger.warning(f"Group {group.id}: refused invalid answer for item {updated.number}")
        return group
    items[index] = updated
    return replace(group, items=tuple(items))


def remove_item(group: QuestionGroup, index: int) -> QuestionGroup:
    _require(group, ItemGroup, "items")
    _check_index(index, len(group.items), "Item")
    return _with_items(group, group.items[:index] + group.items[index + 1:])


def move_item(group: QuestionGroup, index: int, new_index: int) -> QuestionGroup:
    _require(group, ItemGroup, "items")
    _check_index(index, len(group.items), "Item")
    items = list(group.items)
    item = items.pop(index)
    items.insert(max(0, min(new_index, len(items))), item)
    return _with_items(group, items)


# Per-item options (multiple choice)

def add_choice_option(group: MultipleChoiceGroup, item_index: int, text: str = "") -> MultipleChoiceGroup:
    _require(group, (MultipleChoiceGroup,), "per-item options")
    _check_index(item_index, len(group.items), "Item")
    item = group.items[item_index]
    return update_item(group, item_index, options=item.options + (text,))


def set_choice_option(
    group: MultipleChoiceGroup,
    item_index: int,
    option_index: int,
    text: str,
) -> MultipleChoiceGroup:
    _require(group, (MultipleChoiceGroup,), "per-item options")
    _check_index(item_index, len(group.items), "Item")
    _check_index(option_index, len(group.items[item_index].options), "Option")
    options = list(group.items[item_index].options)
    options[option_index] = text
    return update_item(group, item_index, options=options)


def remove_choice_option(
    group: MultipleChoiceGroup,
    item_index: int,
    option_index: int,
) -> MultipleChoiceGroup:
    """Remove an option; the item's answer letter is cleared or shifted to match."""
    _require(group, (MultipleChoiceGroup,), "per-item options")
    _check_index(item_index, len(group.items), "Item")
    _check_index(option_index, len(group.items[item_index].options), "Option")
    item = group.items[item_index]
    if len(item.options) <= 2:
        logger.warning(f"Group {group.id}: item {item.number} needs at least two options")
        return group
    removed_letter = option_letters(len(item.options))[option_index]
    options = item.options[:option_index] + item.options[option_index + 1:]
    answer = cascade_reference_shift((item.answer,), removed_letter)[0]
    items = list(group.items)
    items[item_index] = replace(item, options=options, answer=answer)
    return replace(group, items=tuple(items))


# ─────────────────────────────────────────────────────────────────────────────
# Label pools
# ─────────────────────────────────────────────────────────────────────────────

def _normalise_multi(group: QuestionGroup) -> QuestionGroup:
    if not isinstance(group, MultiAnswerGroup):
        return group
    order = {ref: i for i, ref in enumerate(group.pool_references)}
    items = []
    for item in group.items:
        ordered = tuple(sorted(item.answers, key=lambda a: order.get(a, len(order))))
        items.append(item if ordered == item.answers else replace(item, answers=ordered))
    return replace(group, items=tuple(items))


def _reorder_pool(group: QuestionGroup, entries: Sequence[PoolEntry]) -> QuestionGroup:
    """
    Install ``entries`` (old entries, new order, some possibly dropped) as
    the pool, relabel it and rewrite every reference to follow its entry.
    """
    new_pool = relabel_pool(entries)
    refs = [r for r in (group.reference_for(e) for e in new_pool) if r]
    if len(refs) != len(set(refs)):
        logger.warning(f"Group {group.id}: relabeling would give two entries the same reference")
        return group
    mapping = {group.reference_for(e): "" for e in group.pool}
    for old, new in zip(entries, new_pool):
        old_ref = group.reference_for(old)
        if old_ref:
            mapping[old_ref] = group.reference_for(new)
    mapping.pop("", None)
    moved = {k: v for k, v in mapping.items() if k != v}
    updated = replace(group, pool=new_pool, items=rewrite_references(group.items, moved))
    return _normalise_multi(updated)


def _duplicate_reference(group: QuestionGroup, candidate: PoolEntry, skip: Optional[int] = None) -> bool:
    """True when ``candidate`` would answer to the same reference as another entry."""
    if not group.uses_value_references:
        return False
    ref = group.reference_for(candidate)
    return bool(ref) and any(
        group.reference_for(e) == ref for i, e in enumerate(group.pool) if i != skip
    )


def add_pool_entry(group: QuestionGroup, text: str = "") -> QuestionGroup:
    """Append an entry with the next letter."""
    _require(group, PoolGroup, "a label pool")
    if _duplicate_reference(group, PoolEntry(next_letter(group.pool), text)):
        logger.warning(f"Group {group.id}: pool already contains {text!r}")
        return group
    return replace(group, pool=append_pool_entry(group.pool, text))


def set_pool_entry_text(group: QuestionGroup, index: int, text: str) -> QuestionGroup:
    """
    Change an entry's text.

    For value-referencing pools the references follow the rename. A text
    whose reference (including the "Option <letter>" fallback) another
    entry already answers to is refused.
    """
    _require(group, PoolGroup, "a label pool")
    _check_index(index, len(group.pool), "Pool")
    if isinstance(group, MatchingGroup):
        old_entry = group.pool[index]
        new_entry = replace(old_entry, text=text)
        if _duplicate_reference(group, new_entry, skip=index):
            logger.warning(f"Group {group.id}: pool already answers to {group.reference_for(new_entry)!r}")
            return group
        pool = group.pool[:index] + (new_entry,) + group.pool[index + 1:]
        old_ref, new_ref = group.reference_for(old_entry), group.reference_for(new_entry)
        items = group.items
        if old_ref and old_ref != new_ref:
            items = rewrite_references(items, {old_ref: new_ref})
            logger.debug(f"Group {group.id}: references {old_ref!r} -> {new_ref!r}")
        return replace(group, pool=pool, items=items)
    pool = list(group.pool)
    pool[index] = replace(pool[index], text=text)
    return replace(group, pool=tuple(pool))


def remove_pool_entry(
    group: QuestionGroup,
    index: Optional[int] = None,
    config: Optional[AuthoringConfig] = None,
) -> QuestionGroup:
    """
    Remove a pool entry (default: the last one).

    Letter references are cleared or shifted so they keep naming the same
    entry; value references to the removed entry are cleared. Refused when
    the pool is already at its minimum size.
    """
    _require(group, PoolGroup, "a label pool")
    config = config or DEFAULT_CONFIG
    if len(group.pool) <= min_pool_size(group.question_type, config):
        logger.warning(f"Group {group.id}: pool is already at its minimum size")
        return group
    index = len(group.pool) - 1 if index is None else index
    _check_index(index, len(group.pool), "Pool")

    if isinstance(group, MatchingGroup) and group.uses_value_references:
        return _reorder_pool(group, group.pool[:index] + group.pool[index + 1:])
    pool, items = _remove_letter_entry(group.pool, group.items, index)
    return replace(group, pool=pool, items=items)


def move_pool_entry(group: QuestionGroup, index: int, new_index: int) -> QuestionGroup:
    """Move an entry; letters are reassigned and references follow their entry."""
    _require(group, PoolGroup, "a label pool")
    _check_index(index, len(group.pool), "Pool")
    entries = list(group.pool)
    entry = entries.pop(index)
    entries.insert(max(0, min(new_index, len(entries))), entry)
    return _reorder_pool(group, entries)


def set_answers_required(group: MultiAnswerGroup, count: int) -> MultiAnswerGroup:
    """Change how many letters each item takes; longer answer sets are trimmed."""
    _require(group, (MultiAnswerGroup,), "answers_required")
    if not 1 <= count <= len(group.pool):
        raise ValueError(f"answers_required must be 1-{len(group.pool)}: {count}")
    items = tuple(
        item if len(item.answers) <= count else replace(item, answers=item.answers[:count])
        for item in group.items
    )
    return replace(group, answers_required=count, items=items)


# ─────────────────────────────────────────────────────────────────────────────
# Repair
# ─────────────────────────────────────────────────────────────────────────────

def _repair_pool(group: QuestionGroup) -> QuestionGroup:
    relabelled = relabel_pool(group.pool)
    letters = {
        old.label: new.label for old, new in zip(group.pool, relabelled) if old.label != new.label
    }
    items = group.items
    if letters and not group.uses_value_references:
        items = rewrite_references(items, letters)
    group = replace(group, pool=relabelled, items=items)

    allowed = set(group.pool_references)
    repaired = []
    for item in group.items:
        if isinstance(item, MultiAnswerItem):
            kept = tuple(a for a in item.answers if a in allowed)[:group.answers_required]
            item = item if kept == item.answers else replace(item, answers=kept)
        elif item.answer and item.answer not in allowed:
            logger.debug(f"Group {group.id}: cleared dangling reference {item.answer!r}")
            item = replace(item, answer="")
        repaired.append(item)
    return _normalise_multi(replace(group, items=tuple(repaired)))


def _repair_diagram(group: DiagramGroup) -> DiagramGroup:
    if group.is_text_mode:
        return sync_step_answers(replace(group, positions=()), group.text_steps)
    answers = tuple(
        group.answer_for(p.label_id) or LabelAnswer(p.label_id) for p in group.positions
    )
    return replace(group, answers=answers)


def repair_group(group: QuestionGroup) -> QuestionGroup:
    """
    Bring a group back in line with every invariant.

    Numbers, pool letters and gap/label answer lists are re-derived;
    answers that refer to something no longer present are cleared. Used
    when loading documents written by other tools.
    """
    original = group
    if isinstance(group, ItemGroup):
        group = replace(group, items=renumber_sequential(group.items, group.starting_number))
    if isinstance(group, PoolGroup):
        repaired = _repair_pool(group)
    elif isinstance(group, MultipleChoiceGroup):
        items = tuple(
            item if _answer_is_valid(group, item) else replace(item, answer="")
            for item in group.items
        )
        repaired = replace(group, items=items)
    elif isinstance(group, StatementGroup):
        items = tuple(
            item if _answer_is_valid(group, item) else replace(item, answer="")
            for item in group.items
        )
        repaired = replace(group, items=items)
    elif isinstance(group, GapTextGroup):
        repaired = reconcile_group(group)
    elif isinstance(group, TableGroup):
        repaired = reconcile_cells(group)
    elif isinstance(group, DiagramGroup):
        repaired = _repair_diagram(group)
    else:
        repaired = group
    return original if repaired == original else repaired


__all__ = [
    "set_instruction",
    "set_starting_number",
    "set_word_limit",
    "add_word_bank_option",
    "set_word_bank_option",
    "remove_word_bank_option",
    "add_item",
    "update_item",
    "remove_item",
    "move_item",
    "add_choice_option",
    "set_choice_option",
    "remove_choice_option",
    "add_pool_entry",
    "set_pool_entry_text",
    "remove_pool_entry",
    "move_pool_entry",
    "set_answers_required",
    "repair_group",
    # text gaps
    "set_text",
    "set_gap_answer",
    "add_gap",
    "remove_gap",
    "set_marker_grammar",
    "reconcile_group",
    # table gaps
    "toggle_cell_gap",
    "set_cell_text",
    "set_cell_answer",
    "add_row",
    "add_column",
    "remove_row",
    "remove_column",
    "reconcile_cells",
    # positions
    "add_position",
    "remove_position",
    "move_position",
    "set_label_answer",
    "answer_for_index",
    "set_image",
    "set_chart_type",
    "add_text_step",
    "update_text_step",
    "remove_text_step",
    "move_text_step",
    "sync_step_answers",
]
