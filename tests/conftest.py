"""Shared fixtures: sample texts, fake PDF sources, and in-memory PDFs."""

from __future__ import annotations

from pathlib import Path

import fitz
import pytest

from ielts_reader.models import TextFragment


SCENARIO_A = (
    "Intro line.\n\nTITLE\n\nPara one.\n\nQuestions 1-3\n"
    "1. Is the sky blue? TRUE FALSE NOT GIVEN\n"
    "2. The capital is ____.\n"
    "3. Which option? A) Paris B) Lyon"
)


def frag(text: str, x: float, y: float, size: float = 11.0, page: int = 1):
    return TextFragment(text=text, x=x, y=y, scale=(size, 0.0), page=page)


class FakeSource:
    """FragmentSource that replays prepared pages."""

    def __init__(self, pages: list[list[TextFragment]]):
        self.pages = pages
        self.calls = 0

    def iter_pages(self, data: bytes):
        self.calls += 1
        yield from self.pages


def make_pdf(pages: list[list[str]], fontsize: float = 11) -> bytes:
    """Build a PDF where every string is drawn on its own baseline."""
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        y = 72
        for text in lines:
            page.insert_text((72, y), text, fontsize=fontsize)
            y += 20
    data = doc.tobytes()
    doc.close()
    return data


SCENARIO_A_PAGES = [
    ["Intro line.", "TITLE", "Para one."],
    [
        "Questions 1-3",
        "1. Is the sky blue? TRUE FALSE NOT GIVEN",
        "2. The capital is ____.",
        "3. Which option? A) Paris B) Lyon",
    ],
]


@pytest.fixture
def scenario_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "reading_test.pdf"
    path.write_bytes(make_pdf(SCENARIO_A_PAGES))
    return path
