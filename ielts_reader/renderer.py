"""
Renderer
========
Fills the packaged test-page skeleton with a passage and its questions.

The skeleton has three insertion points, each fully replaced on render:
    #passage-text         passage HTML (trusted, escaped upstream)
    #questions-container  one block per question
    #progress-container   one progress item per question id
"""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path

from jinja2 import Environment, PackageLoader, select_autoescape

from .models import Question

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "test_page.html"

TRUE_FALSE_VALUES = ("TRUE", "FALSE", "NOT GIVEN")

BLANK_MARKER = re.compile(r"\[\[blank\]\]", re.IGNORECASE)

BLOCK_END = re.compile(r"</(?:p|h[1-6]|div|li)>|<br\s*/?>", re.IGNORECASE)
TAG = re.compile(r"<[^>]+>")


def _replace_blank(text: str) -> str:
    return BLANK_MARKER.sub("", text, count=1)


_env = Environment(
    loader=PackageLoader("ielts_reader", "templates"),
    autoescape=select_autoescape(["html"]),
)
_env.filters["replace_blank"] = _replace_blank


def render_page(
    passage_html: str,
    questions: list[Question],
    dark_mode: bool = False,
    title: str = "IELTS Reading Test",
    formatted_time: str = "60:00",
) -> str:
    """Return the complete test page as an HTML string."""
    template = _env.get_template(TEMPLATE_NAME)
    page = template.render(
        title=title,
        passage_html=passage_html,
        questions=questions,
        dark_mode=dark_mode,
        formatted_time=formatted_time,
        true_false_values=TRUE_FALSE_VALUES,
    )
    logger.debug(f"Rendered page with {len(questions)} questions")
    return page


def write_page(path: str | Path, page: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(page, encoding="utf-8")
    logger.info(f"Saved test page: {path}")
    return path


def passage_to_text(passage_html: str, separator: str = "\n\n") -> str:
    """Flatten block HTML into plain paragraphs for terminal display."""
    marked = BLOCK_END.sub("\x00", passage_html.replace("\\n", "\n"))
    blocks = [
        html.unescape(TAG.sub("", block)).strip()
        for block in marked.split("\x00")
    ]
    return separator.join(b for b in blocks if b)
