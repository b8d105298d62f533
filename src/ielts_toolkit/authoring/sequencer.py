"""
Module: sequencer

Purpose:
    Assigns and renumbers sequential identifiers: integer question numbers
    for enumerated items and letters (A, B, ..., Z, AA, AB, ...) for label
    pools. Whenever a pool is relabelled, references held by items are
    cascaded in the same step so they keep denoting the same entry.

Key Functions:
    - index_to_letter(i) / letter_to_index(letter): Letter arithmetic
    - renumber_sequential(items, start): Contiguous item numbers
    - relabel_pool(pool): Contiguous pool letters
    - cascade_reference_shift(refs, removed): Clear/shift single references
    - cascade_multi_reference_shift(refs, removed): Same for letter sets
    - remove_pool_entry(pool, items, index): Remove + relabel + cascade
    - rewrite_references(items, mapping): Value-reference rewrite

Dependencies:
    - dataclasses (std)
    - ielts_toolkit.core.models

Used By:
    - authoring.editing
    - authoring.positions (text-mode flow chart steps)
    - core.utils.serialization (repair)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Sequence, Tuple, TypeVar

from ..core.models import MultiAnswerItem, PoolEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


# ─────────────────────────────────────────────────────────────────────────────
# Letter arithmetic
# ─────────────────────────────────────────────────────────────────────────────

def index_to_letter(index: int) -> str:
    """
    Convert a 0-based index to a pool letter.

    Example:
        >>> index_to_letter(0), index_to_letter(25), index_to_letter(26)
        ('A', 'Z', 'AA')
    """
    if index < 0:
        raise ValueError(f"Letter index must be non-negative: {index}")
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = _ALPHABET[rem] + letters
    return letters


def letter_to_index(letter: str) -> int:
    """Inverse of index_to_letter (raises ValueError for non-letters)."""
    if not letter or not all(ch in _ALPHABET for ch in letter):
        raise ValueError(f"Not a pool letter: {letter!r}")
    n = 0
    for ch in letter:
        n = n * 26 + (_ALPHABET.index(ch) + 1)
    return n - 1


def is_letter(value: str) -> bool:
    return bool(value) and all(ch in _ALPHABET for ch in value)


def next_letter(pool: Sequence[PoolEntry]) -> str:
    """Letter the next appended pool entry will receive."""
    return index_to_letter(len(pool))


def option_letters(count: int) -> Tuple[str, ...]:
    return tuple(index_to_letter(i) for i in range(count))


# ─────────────────────────────────────────────────────────────────────────────
# Renumbering / relabelling
# ─────────────────────────────────────────────────────────────────────────────

def renumber_sequential(items: Iterable[T], start: int = 1, field: str = "number") -> Tuple[T, ...]:
    """
    Reassign ``field`` to start, start+1, ... in list order.

    Items that already carry the right number are returned unchanged, so
    running this on a correctly numbered list is a no-op.

    Args:
        items: Frozen dataclass instances with an int ``field``
        start: First number (the group's starting offset)
        field: Name of the number attribute ("number" or "step_number")
    """
    out = []
    for offset, item in enumerate(items):
        wanted = start + offset
        out.append(item if getattr(item, field) == wanted else replace(item, **{field: wanted}))
    return tuple(out)


def relabel_pool(pool: Iterable[PoolEntry]) -> Tuple[PoolEntry, ...]:
    """Reassign letters A.. in pool order."""
    out = []
    for i, entry in enumerate(pool):
        label = index_to_letter(i)
        out.append(entry if entry.label == label else replace(entry, label=label))
    return tuple(out)


def append_pool_entry(pool: Sequence[PoolEntry], text: str = "") -> Tuple[PoolEntry, ...]:
    return tuple(pool) + (PoolEntry(next_letter(pool), text),)


# ─────────────────────────────────────────────────────────────────────────────
# Reference cascades
# ─────────────────────────────────────────────────────────────────────────────

def _shift(ref: str, removed_index: int) -> str:
    if not is_letter(ref):
        return ref
    idx = letter_to_index(ref)
    if idx == removed_index:
        return ""
    if idx > removed_index:
        return index_to_letter(idx - 1)
    return ref


def cascade_reference_shift(refs: Iterable[str], removed_label: str) -> Tuple[str, ...]:
    """
    Update single letter references after ``removed_label`` left the pool.

    References equal to the removed letter are cleared; later letters move
    one letter earlier; earlier letters and non-letters are untouched.

    Example:
        >>> cascade_reference_shift(["A", "B", "C", ""], "B")
        ('A', '', 'B', '')
    """
    removed_index = letter_to_index(removed_label)
    return tuple(_shift(ref, removed_index) for ref in refs)


def cascade_multi_reference_shift(refs: Iterable[str], removed_label: str) -> Tuple[str, ...]:
    """Letter-set version: the removed letter is dropped rather than cleared."""
    removed_index = letter_to_index(removed_label)
    return tuple(s for s in (_shift(ref, removed_index) for ref in refs) if s)


def _with_refs(item, single, multi):
    if isinstance(item, MultiAnswerItem):
        answers = multi(item.answers)
        return item if answers == item.answers else replace(item, answers=answers)
    answer = single(item.answer)
    return item if answer == item.answer else replace(item, answer=answer)


def remove_pool_entry(
    pool: Sequence[PoolEntry],
    items: Sequence[T],
    index: int,
) -> Tuple[Tuple[PoolEntry, ...], Tuple[T, ...]]:
    """
    Remove the pool entry at ``index`` for a letter-referencing pool.

    Relabelling and the reference cascade happen together so every item
    keeps pointing at the same entry text.

    Args:
        pool: Current pool (letters A.. contiguous)
        items: MatchingItem / MultiAnswerItem / MultipleChoiceItem-like
            items whose ``answer`` (or ``answers``) hold pool letters
        index: Position of the entry to remove

    Returns:
        (new_pool, new_items)

    Example:
        >>> pool = (PoolEntry("A", "x"), PoolEntry("B", "y"), PoolEntry("C", "z"))
        >>> new_pool, new_items = remove_pool_entry(pool, (MatchingItem(1, answer="B"),), 0)
        >>> [(e.label, e.text) for e in new_pool], new_items[0].answer
        ([('A', 'y'), ('B', 'z')], 'A')
    """
    if not 0 <= index < len(pool):
        raise IndexError(f"Pool index out of range: {index}")
    removed = pool[index]
    new_pool = relabel_pool(tuple(pool[:index]) + tuple(pool[index + 1:]))
    new_items = tuple(
        _with_refs(
            item,
            lambda ref: cascade_reference_shift((ref,), removed.label)[0],
            lambda refs: cascade_multi_reference_shift(refs, removed.label),
        )
        for item in items
    )
    changed = sum(1 for old, new in zip(items, new_items) if old is not new)
    logger.debug(f"Removed pool entry {removed.label}; {changed} item reference(s) updated")
    return new_pool, new_items


def rewrite_references(items: Iterable[T], mapping: Mapping[str, str]) -> Tuple[T, ...]:
    """
    Rewrite value references through ``mapping`` (old value -> new value).

    Values missing from the mapping are kept; mapping a value to "" clears it.
    """
    return tuple(
        _with_refs(
            item,
            lambda ref: mapping.get(ref, ref) if ref else ref,
            lambda refs: tuple(r for r in (mapping.get(x, x) for x in refs) if r),
        )
        for item in items
    )
