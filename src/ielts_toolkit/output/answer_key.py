"""
Module: output.answer_key

Purpose:
    Generate an answer-key PDF from a projected RenderTree: one heading per
    question group followed by every question number and its expected
    answer. Diagram groups whose image is an embedded data URI also get a
    thumbnail with the label numbers drawn at their positions.

Key Functions:
    - render_answer_key(): Create answer-key PDF

Dependencies:
    - reportlab: PDF generation
    - Pillow (via authoring.positions.load_image): Diagram thumbnails
    - ielts_toolkit.authoring.projection: RenderTree
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from ielts_toolkit.authoring.positions import load_image
from ielts_toolkit.authoring.projection import GroupNode, NodeKind, RenderNode, RenderTree

logger = logging.getLogger(__name__)

# Constants
A4_WIDTH, A4_HEIGHT = A4
MARGIN = 50
LINE_HEIGHT = 16
TITLE_FONT_SIZE = 16
HEADING_FONT_SIZE = 12
BODY_FONT_SIZE = 10
FOOTER_FONT_SIZE = 7
THUMBNAIL_WIDTH = 80 * mm
UNANSWERED = "-"


def _get_footer_text() -> str:
    """Get footer text with current version number."""
    from ielts_toolkit import __version__
    return f"Generated with IELTS Toolkit v{__version__}"


class _Writer:
    """Top-down text writer over a reportlab canvas with automatic page breaks."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.y = A4_HEIGHT - MARGIN
        self.pages = 1

    def ensure(self, height: float) -> None:
        if self.y - height < MARGIN:
            self.new_page()

    def new_page(self) -> None:
        _draw_footer(self.c)
        self.c.showPage()
        self.pages += 1
        self.y = A4_HEIGHT - MARGIN

    def line(self, text: str, font: str = "Helvetica", size: int = BODY_FONT_SIZE, indent: float = 0) -> None:
        width = A4_WIDTH - 2 * MARGIN - indent
        for chunk in simpleSplit(text, font, size, width) or [""]:
            self.ensure(LINE_HEIGHT)
            self.c.setFont(font, size)
            self.c.drawString(MARGIN + indent, self.y, chunk)
            self.y -= LINE_HEIGHT

    def gap(self, height: float = LINE_HEIGHT / 2) -> None:
        self.y -= height


def _draw_footer(c: canvas.Canvas) -> None:
    """Draw centered footer with version info, 15pt from page bottom."""
    footer_text = _get_footer_text()
    c.saveState()
    c.setFont("Helvetica", FOOTER_FONT_SIZE)
    c.setFillColorRGB(0.4, 0.4, 0.4)  # Subtle gray color
    text_width = c.stringWidth(footer_text, "Helvetica", FOOTER_FONT_SIZE)
    c.drawString((A4_WIDTH - text_width) / 2, 15, footer_text)
    c.restoreState()


def _find_image(group: GroupNode) -> Optional[RenderNode]:
    for node in group.body:
        if node.kind == NodeKind.IMAGE and node.children:
            return node
    return None


def _draw_thumbnail(writer: _Writer, image_node: RenderNode) -> None:
    img = load_image(image_node.ref)
    if img is None:
        return
    width_px, height_px = img.size
    scale = THUMBNAIL_WIDTH / width_px
    width_pt, height_pt = THUMBNAIL_WIDTH, height_px * scale
    writer.ensure(height_pt + LINE_HEIGHT)

    c = writer.c
    bottom = writer.y - height_pt
    c.drawImage(ImageReader(img), MARGIN, bottom, width=width_pt, height=height_pt)

    c.saveState()
    c.setFont("Helvetica-Bold", BODY_FONT_SIZE)
    c.setFillColorRGB(0.8, 0, 0)
    for label in image_node.children:
        if label.number is None:
            continue
        # Percentages are from the top-left; reportlab's origin is bottom-left
        x = MARGIN + label.x / 100 * width_pt
        y = writer.y - label.y / 100 * height_pt
        c.circle(x, y, 7, stroke=1, fill=0)
        c.drawCentredString(x, y - 3.5, str(label.number))
    c.restoreState()

    writer.y = bottom - LINE_HEIGHT


def render_answer_key(tree: RenderTree, output_path: Path) -> int:
    """
    Write the answer key for ``tree`` to a PDF.

    Args:
        tree: Projected document (see authoring.projection.project)
        output_path: Path to write the PDF

    Returns:
        Number of pages written

    Example:
        >>> render_answer_key(project(document), Path("output/answer_key.pdf"))
        1
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(output_path), pagesize=A4)
    c.setTitle(f"Answer key: {tree.stem.title}" if tree.stem.title else "Answer key")
    writer = _Writer(c)

    writer.line(tree.stem.title or "Answer Key", font="Helvetica-Bold", size=TITLE_FONT_SIZE)
    writer.line(f"{tree.total_questions} questions", size=BODY_FONT_SIZE)
    writer.gap()

    unanswered = 0
    for group in tree.groups:
        writer.gap()
        writer.line(f"{group.heading}: {group.title}", font="Helvetica-Bold", size=HEADING_FONT_SIZE)
        if group.word_limit_text:
            writer.line(group.word_limit_text, font="Helvetica-Oblique")

        image_node = _find_image(group)
        if image_node is not None:
            _draw_thumbnail(writer, image_node)

        for number, answer in group.answers():
            if not answer:
                unanswered += 1
            writer.line(f"{number}.  {answer or UNANSWERED}", indent=12)

    if unanswered:
        logger.warning(f"Answer key has {unanswered} question(s) without an answer")

    _draw_footer(c)
    c.showPage()
    c.save()
    logger.info(f"Wrote answer key ({writer.pages} page(s)) to {output_path}")
    return writer.pages
