"""
Passage Formatter
=================
Builds the reading-passage HTML from extracted plain text.

    plain text → strip question section → blocks → <h2>/<p> (escaped)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# "Questions 1-13", "QUESTION 5", "questions" at the start of a line
QUESTION_SECTION_PATTERN = re.compile(
    r"^[ \t]*questions?\b", re.IGNORECASE | re.MULTILINE
)

BLOCK_SPLIT_PATTERN = re.compile(r"\n+")

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
})


def escape_html(text: str) -> str:
    return text.translate(_HTML_ESCAPES)


def split_sections(text: str) -> tuple[str, str]:
    """
    Split text at the first "Questions" marker.

    Returns (passage, question_block). The question block starts at the
    marker line and is empty when there is no marker.
    """
    match = QUESTION_SECTION_PATTERN.search(text)
    if not match:
        return text, ""
    return text[:match.start()], text[match.start():]


def segment_blocks(passage: str) -> list[str]:
    """One trimmed block per newline-separated unit, empties dropped."""
    return [
        piece.strip()
        for piece in BLOCK_SPLIT_PATTERN.split(passage)
        if piece.strip()
    ]


@dataclass(frozen=True)
class HeadingHeuristic:
    """Classifies a block as a heading when it is mostly uppercase or short."""

    upper_ratio: float = 0.6
    max_length: int = 60

    def uppercase_ratio(self, block: str) -> float:
        letters = [c for c in block if c.isascii() and c.isalpha()]
        if not letters:
            return 0.0
        return sum(1 for c in letters if c.isupper()) / len(letters)

    def is_heading(self, block: str) -> bool:
        return (
            self.uppercase_ratio(block) > self.upper_ratio
            or len(block) < self.max_length
        )


class PassageFormatter:
    def __init__(self, heuristic: HeadingHeuristic | None = None):
        self.heuristic = heuristic or HeadingHeuristic()

    def render_block(self, block: str) -> str:
        tag = "h2" if self.heuristic.is_heading(block) else "p"
        return f"<{tag}>{escape_html(block)}</{tag}>"

    def format(self, text: str) -> str:
        """Return the passage (question section removed) as block HTML."""
        passage, questions = split_sections(text)
        if not questions:
            logger.debug("No question section marker; using full text")

        blocks = segment_blocks(passage)
        headings = sum(1 for b in blocks if self.heuristic.is_heading(b))
        logger.info(
            f"Passage formatted: {len(blocks)} blocks "
            f"({headings} headings)"
        )
        return "".join(self.render_block(b) for b in blocks)
