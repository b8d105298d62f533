"""
Unit Tests for Gap Marker Recognition

Tests for NUMBERED and BRACKETED scanning, escapes and segmentation.
"""

from ielts_toolkit.authoring.markers import (
    GapSegment,
    TextSegment,
    escape_markers,
    format_marker,
    gap_ids,
    next_numbered_id,
    scan,
    segments,
)
from ielts_toolkit.core.models import MarkerGrammar

N = MarkerGrammar.NUMBERED
B = MarkerGrammar.BRACKETED


class TestNumbered:
    """Tests for the (N)___ grammar."""

    def test_scan_when_markers_then_ids_in_order(self):
        """Ids come from the digits."""
        assert gap_ids("a (2)___ b (1)_ c", N) == ("2", "1")

    def test_scan_when_leading_zeros_then_literal_id(self):
        """Ids keep the digits as written; (01)__ and (1)______ differ."""
        tokens = scan("(01)__ and (1)______", N)

        assert [t.gap_id for t in tokens] == ["01", "1"]
        assert gap_ids("(01)__ and (1)______", N) == ("01", "1")

    def test_next_id_when_leading_zeros_then_numeric_max(self):
        """The next id is numeric, ignoring zero padding."""
        assert next_numbered_id("(07)__ and (2)__") == "8"

    def test_scan_when_no_underscores_then_plain_text(self):
        """A bare (1) is not a marker."""
        assert scan("see (1) above", N) == ()

    def test_scan_when_escaped_then_ignored(self):
        """Backslash-escaped markers are literal."""
        assert gap_ids(r"literal \(1)___ live (2)___", N) == ("2",)

    def test_next_id_when_markers_then_max_plus_one(self):
        """New numbered gaps go past the highest id."""
        assert next_numbered_id("(3)___ (1)___") == "4"
        assert next_numbered_id("") == "1"


class TestBracketed:
    """Tests for the [gap] grammar."""

    def test_scan_when_case_varies_then_matched(self):
        """[gap] is case-insensitive; ids follow occurrence."""
        assert gap_ids("[gap] then [GAP] then [Gap]", B) == ("gap-0", "gap-1", "gap-2")

    def test_scan_when_unterminated_then_plain_text(self):
        """[gap without the bracket is text."""
        assert scan("a [gap b", B) == ()

    def test_scan_when_escaped_then_not_counted(self):
        """Escaped markers do not consume an occurrence index."""
        assert gap_ids(r"\[gap] [gap]", B) == ("gap-0",)


class TestSegments:
    """Tests for text/gap segmentation."""

    def test_segments_when_mixed_then_alternates(self):
        """Text and gaps alternate; empty text is omitted."""
        result = segments("(1)___ middle (2)___", N)

        assert result == (GapSegment("1"), TextSegment(" middle "), GapSegment("2"))

    def test_segments_when_escaped_then_backslash_removed(self):
        """Literal markers display without their escape."""
        result = segments(r"Pay \[gap] or [gap].", B)

        assert result == (TextSegment("Pay [gap] or "), GapSegment("gap-0"), TextSegment("."))

    def test_escape_when_live_markers_then_literal(self):
        """escape_markers turns every live marker into text."""
        escaped = escape_markers("a [gap] b", B)

        assert escaped == r"a \[gap] b"
        assert scan(escaped, B) == ()

    def test_format_when_numbered_then_rescans_to_id(self):
        """Formatted markers scan back to their id."""
        assert gap_ids(format_marker("12", N), N) == ("12",)
        assert format_marker("anything", B) == "[gap]"
