"""
Unit Tests for Answer Key PDF

Tests for render_answer_key output.
"""

import pytest

from ielts_toolkit.authoring import project
from ielts_toolkit.core.models import (
    DiagramGroup,
    Document,
    LabelAnswer,
    Position,
    QuestionType,
    StatementGroup,
    StatementItem,
)
from ielts_toolkit.output import render_answer_key


class TestRenderAnswerKey:
    """Tests for render_answer_key function."""

    def test_render_when_document_then_pdf_written(self, sample_document, tmp_path):
        """A PDF file is produced."""
        output = tmp_path / "out" / "key.pdf"

        pages = render_answer_key(project(sample_document), output)

        assert pages == 1
        assert output.read_bytes().startswith(b"%PDF")

    def test_render_when_unanswered_then_warns(self, sample_document, tmp_path, caplog):
        """Missing answers are counted in a warning."""
        render_answer_key(project(sample_document), tmp_path / "key.pdf")

        assert "2 question(s) without an answer" in caplog.text

    def test_render_when_many_questions_then_paginates(self, tmp_path):
        """Long keys continue onto further pages."""
        items = tuple(StatementItem(n, f"Statement {n}", "TRUE") for n in range(1, 121))
        document = Document(groups=(StatementGroup("g", QuestionType.TRUE_FALSE_NOT_GIVEN, items=items),))

        pages = render_answer_key(project(document), tmp_path / "key.pdf")

        assert pages > 1

    def test_render_when_diagram_data_uri_then_thumbnail_drawn(self, sample_png_data_uri, tmp_path):
        """Embedded diagram images are drawn without error."""
        diagram = DiagramGroup(
            "d", QuestionType.DIAGRAM_LABEL_COMPLETION,
            image=sample_png_data_uri,
            positions=(Position("label-1", 25.0, 50.0),),
            answers=(LabelAnswer("label-1", "pump"),),
        )
        output = tmp_path / "key.pdf"

        pages = render_answer_key(project(Document(groups=(diagram,))), output)

        assert pages == 1
        assert output.stat().st_size > 0

    @pytest.mark.parametrize("image", [None, "https://cdn.example/d.png"])
    def test_render_when_image_not_embedded_then_text_only(self, image, tmp_path):
        """Groups without a decodable image still render."""
        diagram = DiagramGroup("d", QuestionType.DIAGRAM_LABEL_COMPLETION, image=image)

        assert render_answer_key(project(Document(groups=(diagram,))), tmp_path / "key.pdf") == 1
