"""
Module: markers

Purpose:
    Recognizer for inline gap markers in free text. Two token grammars are
    supported and a scan only ever uses one of them:

    NUMBERED   ``(N)___``  one or more underscores after a parenthesised
               integer; the gap id is the digits exactly as written, so
               ``(01)__`` and ``(1)______`` are different gaps.
    BRACKETED  ``[gap]``   case-insensitive; the gap id is assigned by
               occurrence order: ``gap-0``, ``gap-1``, ...

    A marker immediately preceded by a backslash is escaped: it stays in
    the text as a literal and produces no gap. Tokens are matched leftmost
    first and never overlap. Anything that does not match (``(1)`` without
    underscores, ``[gap`` unterminated) is plain text.

Key Functions:
    - scan(text, grammar): Ordered GapTokens (duplicates kept)
    - gap_ids(text, grammar): Ordered unique gap ids
    - segments(text, grammar): Alternating TextSegment / GapSegment
    - format_marker(gap_id, grammar): Marker text for a gap
    - escape_markers / unescape_markers: Literal marker handling
    - next_numbered_id(text): Next free NUMBERED id

Dependencies:
    - re (std)

Used By:
    - authoring.reconcile
    - authoring.projection
    - core.schemas.invariants
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

from ..core.models import MarkerGrammar

ESCAPE = "\\"
NUMBERED_UNDERSCORES = 7
BRACKETED_PREFIX = "gap-"

_PATTERNS = {
    MarkerGrammar.NUMBERED: re.compile(r"\((\d+)\)_+"),
    MarkerGrammar.BRACKETED: re.compile(r"\[gap\]", re.IGNORECASE),
}

if set(_PATTERNS) != set(MarkerGrammar):
    raise RuntimeError("Every MarkerGrammar needs a pattern")


@dataclass(frozen=True, slots=True)
class GapToken:
    """A recognised marker: its gap id and [start, end) span in the text."""

    gap_id: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class TextSegment:
    text: str


@dataclass(frozen=True, slots=True)
class GapSegment:
    gap_id: str


Segment = Union[TextSegment, GapSegment]


def _numbered_id(match: re.Match) -> str:
    return match.group(1)


def scan(text: str, grammar: MarkerGrammar) -> Tuple[GapToken, ...]:
    """
    Scan ``text`` left to right and return every unescaped marker.

    Args:
        text: Free text being authored
        grammar: Marker grammar of the owning group

    Returns:
        Tokens in text order; a NUMBERED id may appear more than once

    Example:
        >>> [t.gap_id for t in scan("a (1)___ b (2)__ c", MarkerGrammar.NUMBERED)]
        ['1', '2']
    """
    tokens = []
    occurrence = 0
    for match in _PATTERNS[MarkerGrammar(grammar)].finditer(text or ""):
        if match.start() > 0 and text[match.start() - 1] == ESCAPE:
            continue
        if grammar == MarkerGrammar.NUMBERED:
            gap_id = _numbered_id(match)
        else:
            gap_id = f"{BRACKETED_PREFIX}{occurrence}"
            occurrence += 1
        tokens.append(GapToken(gap_id, match.start(), match.end()))
    return tuple(tokens)


def gap_ids(text: str, grammar: MarkerGrammar) -> Tuple[str, ...]:
    """Unique gap ids in first-occurrence order."""
    seen: dict[str, None] = {}
    for token in scan(text, grammar):
        seen.setdefault(token.gap_id, None)
    return tuple(seen)


def _unescape(chunk: str, pattern: re.Pattern) -> str:
    out = []
    cursor = 0
    for match in pattern.finditer(chunk):
        if match.start() > 0 and chunk[match.start() - 1] == ESCAPE:
            out.append(chunk[cursor:match.start() - 1])
            cursor = match.start()
    out.append(chunk[cursor:])
    return "".join(out)


def segments(text: str, grammar: MarkerGrammar) -> Tuple[Segment, ...]:
    """
    Split ``text`` into text and gap segments for display.

    Escape backslashes in front of literal markers are removed from the
    text segments; empty text segments are omitted.

    Example:
        >>> segments("Pay \\\\[gap] or [gap].", MarkerGrammar.BRACKETED)
        (TextSegment(text='Pay [gap] or '), GapSegment(gap_id='gap-0'), TextSegment(text='.'))
    """
    text = text or ""
    pattern = _PATTERNS[MarkerGrammar(grammar)]
    out: list[Segment] = []
    cursor = 0
    for token in scan(text, grammar):
        chunk = _unescape(text[cursor:token.start], pattern)
        if chunk:
            out.append(TextSegment(chunk))
        out.append(GapSegment(token.gap_id))
        cursor = token.end
    tail = _unescape(text[cursor:], pattern)
    if tail:
        out.append(TextSegment(tail))
    return tuple(out)


def format_marker(gap_id: str, grammar: MarkerGrammar) -> str:
    """
    Marker text that scans back to ``gap_id``.

    BRACKETED markers carry no id of their own; the result is always
    ``[gap]`` and the id follows from where it is inserted.
    """
    if grammar == MarkerGrammar.NUMBERED:
        return f"({gap_id}){'_' * NUMBERED_UNDERSCORES}"
    return "[gap]"


def escape_markers(text: str, grammar: MarkerGrammar) -> str:
    """Escape every live marker in ``text`` so it scans as plain text."""
    text = text or ""
    out = []
    cursor = 0
    for token in scan(text, grammar):
        out.append(text[cursor:token.start])
        out.append(ESCAPE)
        cursor = token.start
    out.append(text[cursor:])
    return "".join(out)


def unescape_markers(text: str, grammar: MarkerGrammar) -> str:
    """Drop the escape backslash in front of literal markers."""
    return _unescape(text or "", _PATTERNS[MarkerGrammar(grammar)])


def next_numbered_id(text: str) -> str:
    """Next free NUMBERED gap id (max existing + 1, or "1")."""
    ids = [int(g) for g in gap_ids(text, MarkerGrammar.NUMBERED)]
    return str(max(ids) + 1 if ids else 1)
