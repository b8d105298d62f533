"""
Module: authoring

Purpose:
    Engines that create and edit question groups while keeping them
    consistent: the variant registry, the label/number sequencer, the gap
    reconciliation engine, the positional label engine and the read-only
    preview projection.

Key Functions:
    - create_group(): Default-populated group for a variant tag
    - reconcile(): Derive a gap answer list from free text
    - place_label(): Click -> percentage Position
    - project(): Document -> RenderTree

Used By:
    - cli
    - output.answer_key
"""

from .config import AuthoringConfig, load_config
from .registry import create_group, get_constraints, question_type_label, supported_variants
from .reconcile import reconcile
from .positions import ImageRect, place_label, to_pixels
from .numbering import QuestionRange, assign_question_numbers
from .projection import RenderTree, project

__all__ = [
    "AuthoringConfig",
    "load_config",
    "create_group",
    "get_constraints",
    "question_type_label",
    "supported_variants",
    "reconcile",
    "ImageRect",
    "place_label",
    "to_pixels",
    "QuestionRange",
    "assign_question_numbers",
    "RenderTree",
    "project",
]
