"""
Data Models
===========
Pydantic models shared by the heuristic and model-based paths.
Question-level models use camelCase aliases so that the JSON emitted by the
inference API validates directly and round-trips unchanged.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


# ─── Enums ────────────────────────────────────────────────────────────────────


class QuestionType(str, Enum):
    """Supported question formats."""
    MULTIPLE_CHOICE = "multiple-choice"
    FILL_BLANK = "fill-blank"
    TRUE_FALSE = "true-false"


class TestSource(str, Enum):
    """Which path produced a reading test."""
    __test__ = False

    HEURISTIC = "heuristic"
    LLM = "llm"


# ─── Layout Models ────────────────────────────────────────────────────────────


class TextFragment(BaseModel):
    """
    A single positioned text run emitted by the PDF layer.
    `y` grows upwards (PDF user space), so larger y means higher on the page.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    scale: tuple[float, float] = Field(
        default=(0.0, 0.0),
        description="First two components of the text matrix (a, b)",
    )
    page: int = Field(ge=1)

    @computed_field
    @property
    def font_size(self) -> float:
        """Glyph height approximated as the magnitude of the scale vector."""
        return math.hypot(*self.scale)


class Line(BaseModel):
    """Fragments merged by row proximity into one text line."""
    text: str
    font_size: float = 0.0
    page: int = Field(ge=1)


# ─── Question Models ──────────────────────────────────────────────────────────


class QuestionOption(BaseModel):
    value: str
    text: str


class Question(BaseModel):
    """
    A single test question.
    `options` is present exactly when the question is multiple-choice.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: int
    type: QuestionType
    text: str
    options: Optional[list[QuestionOption]] = None
    correct_answer: str = Field(default="", alias="correctAnswer")
    explanation: str = ""
    relevant_text: Optional[str] = Field(default=None, alias="relevantText")
    placeholder: Optional[str] = None
    instructions: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalise_options(cls, data):
        # Model output often carries options (TRUE/FALSE radios, or []) on
        # non-choice questions
        if not isinstance(data, dict):
            return data
        if data.get("type") != QuestionType.MULTIPLE_CHOICE.value:
            data = {k: v for k, v in data.items() if k != "options"}
        if data.get("explanation") is None:
            data = {**data, "explanation": ""}
        return data

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        if self.type == QuestionType.MULTIPLE_CHOICE and not self.options:
            raise ValueError(
                f"question {self.id}: multiple-choice requires options"
            )
        return self


class LLMResult(BaseModel):
    """Payload returned by the inference API after cleanup."""
    model_config = ConfigDict(populate_by_name=True)

    passage_html: str = Field(alias="passageHtml")
    questions: list[Question] = Field(default_factory=list)


# ─── Session Models ───────────────────────────────────────────────────────────


UserAnswers = dict[int, str]


class TestResult(BaseModel):
    """Read-only scoring snapshot of a sitting."""
    __test__ = False

    model_config = ConfigDict(frozen=True)

    score: int
    total_questions: int
    answers: dict[int, str] = Field(default_factory=dict)
    correct_ids: frozenset[int] = Field(default_factory=frozenset)

    def is_correct(self, question_id: int) -> bool:
        return question_id in self.correct_ids

    @computed_field
    @property
    def percentage(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return round(self.score / self.total_questions * 100, 2)


# ─── Report / Result Models ───────────────────────────────────────────────────


class QuestionReport(BaseModel):
    """Post-parse summary of the detected questions."""
    total_questions: int = 0
    duplicate_ids: list[int] = Field(default_factory=list)
    missing_ids: list[int] = Field(default_factory=list)
    type_breakdown: dict[str, int] = Field(default_factory=dict)


class TestMetadata(BaseModel):
    """Metadata about the source PDF."""
    __test__ = False

    name: str = ""
    source_pdf: str = ""
    total_pages: int = 0
    file_hash: str = ""
    file_size_bytes: int = 0


class ReadingTest(BaseModel):
    """
    Complete output of a build run.
    Both the heuristic and the model path converge on this structure.
    """
    metadata: TestMetadata = Field(default_factory=TestMetadata)
    source: TestSource = TestSource.HEURISTIC
    passage_html: str = ""
    questions: list[Question] = Field(default_factory=list)
    report: QuestionReport = Field(default_factory=QuestionReport)
    generated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
