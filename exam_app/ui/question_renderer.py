"""Question rendering utilities for the exam session view."""

from __future__ import annotations

from exam_app.core.markdown_math_renderer import renderer


def render_question(question_number: int, total: int, question_text: str, font_size: int = 14) -> str:
    """Render a question heading and its text as an HTML document for QWebEngineView.

    Options are not part of the document; the session panel shows them as
    selectable buttons.
    """
    markdown = f"**Question {question_number} of {total}**\n\n{question_text.strip() or '(No question text)'}"
    return renderer.render_full_document(markdown, font_size=font_size)
