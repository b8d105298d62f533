"""
Module: items

Purpose:
    Provides the enumerated-item dataclasses (one numbered question each) and
    PoolEntry, a single lettered entry in a shared label pool.

Key Classes:
    - PoolEntry: Lettered pool entry ("A" -> "Option text")
    - MultipleChoiceItem: Question with its own lettered options
    - MultiAnswerItem: Question answered by several pool letters
    - StatementItem: TRUE/FALSE/NOT GIVEN or YES/NO/NOT GIVEN statement
    - CompletionItem: Sentence/form completion or short answer
    - MatchingItem: Prompt answered by a pool reference

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.groups
    - authoring.sequencer
    - authoring.editing
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


def _check_number(number: int) -> None:
    if not isinstance(number, int) or number < 1:
        raise ValueError(f"Item number must be a positive integer: {number!r}")


@dataclass(frozen=True, slots=True)
class PoolEntry:
    """
    One lettered entry in a label pool.

    Attributes:
        label: Pool letter ("A", "B", ...)
        text: Entry text (may be empty while authoring)
    """

    label: str
    text: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            raise ValueError("Pool entry label cannot be empty")

    def to_dict(self) -> dict:
        return {"label": self.label, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> PoolEntry:
        return cls(label=data["label"], text=data.get("text", ""))


@dataclass(frozen=True, slots=True)
class MultipleChoiceItem:
    """
    Multiple-choice question with its own options.

    ``answer`` is the letter of the correct option ("" while unset).
    """

    number: int
    question: str = ""
    options: Tuple[str, ...] = ()
    answer: str = ""

    def __post_init__(self) -> None:
        _check_number(self.number)

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "question": self.question,
            "options": list(self.options),
            "answer": self.answer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> MultipleChoiceItem:
        return cls(
            number=data["number"],
            question=data.get("question", ""),
            options=tuple(data.get("options", [])),
            answer=data.get("answer", ""),
        )


@dataclass(frozen=True, slots=True)
class MultiAnswerItem:
    """Question whose answer is a set of pool letters (kept in pool order)."""

    number: int
    question: str = ""
    answers: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_number(self.number)
        if len(set(self.answers)) != len(self.answers):
            raise ValueError(f"Duplicate answers on item {self.number}: {self.answers}")

    def to_dict(self) -> dict:
        return {"number": self.number, "question": self.question, "answers": list(self.answers)}

    @classmethod
    def from_dict(cls, data: dict) -> MultiAnswerItem:
        return cls(
            number=data["number"],
            question=data.get("question", ""),
            answers=tuple(data.get("answers", [])),
        )


@dataclass(frozen=True, slots=True)
class StatementItem:
    """Statement judged TRUE/FALSE/NOT GIVEN (or YES/NO/NOT GIVEN)."""

    number: int
    statement: str = ""
    answer: str = ""

    def __post_init__(self) -> None:
        _check_number(self.number)

    def to_dict(self) -> dict:
        return {"number": self.number, "statement": self.statement, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: dict) -> StatementItem:
        return cls(
            number=data["number"],
            statement=data.get("statement", ""),
            answer=data.get("answer", ""),
        )


@dataclass(frozen=True, slots=True)
class CompletionItem:
    """
    Sentence, form or short-answer item.

    Attributes:
        number: Question number
        prompt: Sentence with blank, or the question for short answers
        correct_answer: Expected answer text
        image_url: Optional opaque image reference (URL or data URI)
    """

    number: int
    prompt: str = ""
    correct_answer: str = ""
    image_url: Optional[str] = None

    def __post_init__(self) -> None:
        _check_number(self.number)

    def to_dict(self, prompt_key: str = "sentenceWithBlank") -> dict:
        d = {
            "number": self.number,
            prompt_key: self.prompt,
            "correctAnswer": self.correct_answer,
        }
        if self.image_url:
            d["imageUrl"] = self.image_url
        return d

    @classmethod
    def from_dict(cls, data: dict, prompt_key: str = "sentenceWithBlank") -> CompletionItem:
        return cls(
            number=data["number"],
            prompt=data.get(prompt_key, ""),
            correct_answer=data.get("correctAnswer", ""),
            image_url=data.get("imageUrl") or None,
        )


@dataclass(frozen=True, slots=True)
class MatchingItem:
    """
    Prompt answered by a reference into the group's label pool.

    ``answer`` holds a pool letter or the entry text depending on the
    variant's ReferenceKind; "" means unanswered.
    """

    number: int
    prompt: str = ""
    answer: str = ""
    image_url: Optional[str] = None

    def __post_init__(self) -> None:
        _check_number(self.number)

    def to_dict(self) -> dict:
        d = {"number": self.number, "prompt": self.prompt, "answer": self.answer}
        if self.image_url:
            d["imageUrl"] = self.image_url
        return d

    @classmethod
    def from_dict(cls, data: dict) -> MatchingItem:
        return cls(
            number=data["number"],
            prompt=data.get("prompt", ""),
            answer=data.get("answer", ""),
            image_url=data.get("imageUrl") or None,
        )
