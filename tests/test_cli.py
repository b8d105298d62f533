"""
Unit Tests for the Command-Line Interface

Tests for the ielts-toolkit subcommands.
"""

import json

import pytest

from ielts_toolkit.cli import EXIT_INVALID, EXIT_OK, EXIT_USAGE, main
from ielts_toolkit.core.utils import load_document_json, save_document_json


class TestCli:
    """Tests for main() dispatch."""

    def test_variants_when_run_then_lists_every_tag(self, capsys):
        """variants prints one line per question type."""
        assert main(["variants"]) == EXIT_OK

        out = capsys.readouterr().out
        assert "note_completion" in out
        assert "Diagram Label Completion" in out
        assert len(out.strip().splitlines()) == 17

    def test_new_when_tags_given_then_document_written(self, tmp_path):
        """new writes a document with one group per tag."""
        path = tmp_path / "doc.json"

        code = main(["new", "note_completion", "matching", "-o", str(path), "--title", "Reefs"])

        document = load_document_json(path, strict=True)
        assert code == EXIT_OK
        assert document.stem.title == "Reefs"
        assert [g.question_type.value for g in document.groups] == ["note_completion", "matching"]

    def test_new_when_unknown_tag_then_usage_error(self, tmp_path):
        """Unknown tags fail without writing."""
        path = tmp_path / "doc.json"

        assert main(["new", "essay", "-o", str(path)]) == EXIT_USAGE
        assert not path.exists()

    def test_validate_when_consistent_then_ok(self, sample_document, tmp_path, caplog):
        """Consistent documents validate."""
        path = tmp_path / "doc.json"
        save_document_json(sample_document, path)
        caplog.set_level("INFO")

        assert main(["validate", str(path), "--strict"]) == EXIT_OK
        assert "6 question(s)" in caplog.text

    def test_validate_when_dangling_then_invalid(self, tmp_path, caplog):
        """Dangling references are reported per group."""
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({
            "questionGroups": [{
                "id": "g1",
                "questionType": "matching_features",
                "labelPool": [{"label": "A", "text": "x"}, {"label": "B", "text": "y"}],
                "questions": [{"number": 1, "prompt": "p", "answer": "C"}],
            }],
        }))

        assert main(["validate", str(path)]) == EXIT_INVALID
        assert "g1: item 1 references 'C'" in caplog.text

    def test_validate_when_not_json_then_invalid(self, tmp_path):
        """Unreadable files are reported, not raised."""
        path = tmp_path / "doc.json"
        path.write_text("{not json")

        assert main(["validate", str(path)]) == EXIT_INVALID

    def test_validate_when_malformed_position_then_invalid(self, tmp_path, caplog):
        """Malformed group fields are reported, not raised."""
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({
            "questionGroups": [{"id": "g", "questionType": "diagram_label_completion", "positions": ["oops"]}],
        }))

        assert main(["validate", str(path)]) == EXIT_INVALID
        assert "Position must be an object" in caplog.text

    def test_preview_when_document_then_numbered_output(self, sample_document, tmp_path, capsys):
        """preview prints headings and blanks with numbers."""
        path = tmp_path / "doc.json"
        save_document_json(sample_document, path)

        assert main(["preview", str(path)]) == EXIT_OK

        out = capsys.readouterr().out
        assert "Questions 3-4 - Note Completion" in out
        assert "(3) ________" in out
        assert "Total questions: 6" in out

    def test_preview_when_json_then_render_tree(self, sample_document, tmp_path, capsys):
        """--json prints the render tree."""
        path = tmp_path / "doc.json"
        save_document_json(sample_document, path)

        main(["preview", str(path), "--json", "--start", "10"])

        tree = json.loads(capsys.readouterr().out)
        assert tree["groups"][0]["firstNumber"] == 10

    def test_repair_when_broken_then_fixed_copy_written(self, tmp_path):
        """repair writes a consistent document."""
        source = tmp_path / "in.json"
        target = tmp_path / "out.json"
        source.write_text(json.dumps({
            "questionGroups": [{
                "id": "g1",
                "questionType": "summary_completion",
                "text": "a [gap] b [gap]",
                "answers": [],
            }],
        }))

        assert main(["repair", str(source), str(target)]) == EXIT_OK

        repaired = load_document_json(target, strict=True)
        assert [a.gap_id for a in repaired.groups[0].answers] == ["gap-0", "gap-1"]

    def test_answer_key_when_document_then_pdf(self, sample_document, tmp_path):
        """answer-key renders a PDF."""
        path = tmp_path / "doc.json"
        pdf = tmp_path / "key.pdf"
        save_document_json(sample_document, path)

        assert main(["answer-key", str(path), str(pdf)]) == EXIT_OK
        assert pdf.read_bytes().startswith(b"%PDF")

    def test_main_when_no_command_then_exits(self):
        """A subcommand is required."""
        with pytest.raises(SystemExit):
            main([])
