"""
Module: output

Purpose:
    PDF output for authored documents.

Key Functions:
    - render_answer_key(): Answer-key PDF from a RenderTree

Dependencies:
    - reportlab: PDF generation
    - PIL: Image handling
"""

from .answer_key import render_answer_key

__all__ = [
    "render_answer_key",
]
