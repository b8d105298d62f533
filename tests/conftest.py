import base64
import pytest
import sys
from io import BytesIO
from pathlib import Path
from PIL import Image

# Add src to sys.path so we can import ielts_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from ielts_toolkit.core.models import (  # noqa: E402
    Document,
    GapAnswer,
    GapTextGroup,
    MarkerGrammar,
    MatchingGroup,
    MatchingItem,
    MultipleChoiceGroup,
    MultipleChoiceItem,
    PoolEntry,
    QuestionType,
    Stem,
)


# Common test fixtures
@pytest.fixture
def sample_png_data_uri():
    """Return a 200x100 PNG encoded as a data URI."""
    img = Image.new("RGB", (200, 100), color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{payload}"


@pytest.fixture
def matching_features_group():
    """Letter-referencing pool A:x, B:y, C:z with one item answered B."""
    return MatchingGroup(
        "g-features",
        QuestionType.MATCHING_FEATURES,
        pool=(PoolEntry("A", "x"), PoolEntry("B", "y"), PoolEntry("C", "z")),
        items=(MatchingItem(1, "first", "B"), MatchingItem(2, "second", "C")),
    )


@pytest.fixture
def note_group():
    """Note completion with two numbered gaps, the first answered."""
    return GapTextGroup(
        "g-note",
        QuestionType.NOTE_COMPLETION,
        text="Intro\n* Point (1)_______ more\n* Point two (2)_______.",
        marker_grammar=MarkerGrammar.NUMBERED,
        answers=(GapAnswer("1", "alpha"), GapAnswer("2", "")),
    )


@pytest.fixture
def sample_document(note_group, matching_features_group):
    """Three-group document: 2 MC items, 2 gaps, 2 matching items."""
    mc = MultipleChoiceGroup(
        "g-mc",
        QuestionType.MULTIPLE_CHOICE,
        items=(
            MultipleChoiceItem(1, "Why?", ("a", "b", "c"), "B"),
            MultipleChoiceItem(2, "How?", ("a", "b"), ""),
        ),
    )
    return Document(
        stem=Stem.passage("Coral reefs", "Reefs are ..."),
        groups=(mc, note_group, matching_features_group),
    )
