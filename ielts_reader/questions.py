"""
Question Parser
===============
Detects numbered questions in the question section and classifies them.

Classification order (first match wins):
    1. TRUE ... FALSE ... NOT GIVEN anywhere in the text  → true-false
    2. inline option markers "A)" / "B." ... (A–H)        → multiple-choice
    3. anything else                                      → fill-blank

A multiple-choice item whose options happen to contain the three true/false
keywords in order is classified true-false. This is a known limitation of the
keyword rule.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import Question, QuestionOption, QuestionType
from .passage import split_sections

logger = logging.getLogger(__name__)

# ─── Patterns ─────────────────────────────────────────────────────────────────

# "1. Text", "12) Text", "3 Text"
ITEM_START_PATTERN = re.compile(r"^(\d{1,2})[).\s]+(.*)$")

TRUE_FALSE_PATTERN = re.compile(
    r"\btrue\b.*\bfalse\b.*\bnot\s+given\b", re.IGNORECASE | re.DOTALL
)

TRUE_FALSE_KEYWORDS = re.compile(
    r"\b(?:TRUE|FALSE|NOT\s+GIVEN)\b", re.IGNORECASE
)

# "A) Paris", "B. Lyon": a capital letter A-H at the start of the text or after
# whitespace / an opening bracket, followed by ")" or "."
OPTION_MARKER_PATTERN = re.compile(r"(?:^|(?<=[\s(]))([A-H])[).]")

WHITESPACE = re.compile(r"\s+")


def extract_options(text: str) -> list[QuestionOption]:
    """Collect inline options; each option's text runs to the next marker."""
    markers = list(OPTION_MARKER_PATTERN.finditer(text))
    options: list[QuestionOption] = []
    for idx, marker in enumerate(markers):
        end = markers[idx + 1].start() if idx + 1 < len(markers) else len(text)
        option_text = text[marker.end():end].strip().rstrip("(").strip()
        if option_text:
            options.append(QuestionOption(
                value=marker.group(1), text=option_text
            ))
    return options


def strip_true_false_keywords(text: str) -> str:
    return WHITESPACE.sub(" ", TRUE_FALSE_KEYWORDS.sub("", text)).strip()


def classify(text: str) -> tuple[QuestionType, str, Optional[list[QuestionOption]]]:
    """Return (type, display text, options) for an assembled question text."""
    if TRUE_FALSE_PATTERN.search(text):
        return QuestionType.TRUE_FALSE, strip_true_false_keywords(text), None

    options = extract_options(text)
    if options:
        return QuestionType.MULTIPLE_CHOICE, text, options

    return QuestionType.FILL_BLANK, text, None


class QuestionParser:
    """
    Sequential line scanner over the question section.
    Ids are taken verbatim from the source; gaps and duplicates are kept.
    """

    def parse(self, text: str) -> list[Question]:
        _, block = split_sections(text)
        if not block:
            logger.warning("No question section found; no questions produced")
            return []

        lines = [ln.strip() for ln in block.splitlines() if ln.strip()]

        items: list[tuple[int, list[str]]] = []
        for line in lines:
            match = ITEM_START_PATTERN.match(line)
            if match:
                items.append((int(match.group(1)), [match.group(2).strip()]))
            elif items:
                items[-1][1].append(line)

        questions = [self._build(q_id, parts) for q_id, parts in items]

        if not questions:
            logger.warning("Question section has no numbered items")
        else:
            logger.info(f"Detected {len(questions)} questions")
        return questions

    def _build(self, q_id: int, parts: list[str]) -> Question:
        text = " ".join(p for p in parts if p)
        q_type, display, options = classify(text)
        logger.debug(f"Question {q_id}: {q_type.value}")
        return Question(
            id=q_id,
            type=q_type,
            text=display,
            options=options,
            correct_answer="",
            explanation="",
        )
