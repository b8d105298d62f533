"""
IELTS Toolkit Core Package

Shared data models, schema validation and serialization. Nothing in this
package knows about editing; the engines in ``ielts_toolkit.authoring``
build on these models.

**DESIGN NOTES:**

1. **Immutable Data Models**
   - Frozen dataclasses; every edit produces a new instance

2. **Closed Variant Set**
   - `QuestionType` enumerates every variant; dispatch tables keyed by it
     are checked for completeness at import

3. **Stable Wire Format**
   - camelCase JSON keys (`questionType`, `gapId`, `correctAnswer`, ...)
     round-trip verbatim through `to_dict()` / `from_dict()`
"""

from .models import (
    Document,
    QuestionGroup,
    QuestionType,
    Stem,
    UnsupportedVariant,
)

__all__ = [
    "Document",
    "QuestionGroup",
    "QuestionType",
    "Stem",
    "UnsupportedVariant",
]
