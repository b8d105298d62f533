"""
Schemas Package

JSON schema definitions, validation utilities and group invariant checks.
"""

from .validator import (
    validate_document,
    validate_group,
    ValidationError,
    DOCUMENT_SCHEMA_VERSION,
)
from .invariants import check_invariants, collect_problems, DanglingReference

__all__ = [
    "validate_document",
    "validate_group",
    "ValidationError",
    "DOCUMENT_SCHEMA_VERSION",
    "check_invariants",
    "collect_problems",
    "DanglingReference",
]
