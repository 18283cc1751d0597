"""
Test Session
============
Owns the questions and answers of one sitting and scores them.

The answers map always holds exactly one entry per current question id right
after questions are (re)generated.
"""

from __future__ import annotations

import logging
from typing import Optional

from .models import Question, QuestionType, TestResult, UserAnswers
from .questions import QuestionParser

logger = logging.getLogger(__name__)


class TestSession:
    __test__ = False

    def __init__(self, parser: Optional[QuestionParser] = None):
        self.parser = parser or QuestionParser()
        self.questions: list[Question] = []
        self.answers: UserAnswers = {}

    # ── Question lifecycle ──────────────────────────────────────────────

    def generate_questions(self, text: str) -> list[Question]:
        """Parse questions from plain text and reset the answers map."""
        return self.load_questions(self.parser.parse(text))

    def load_questions(self, questions: list[Question]) -> list[Question]:
        """Replace the current questions wholesale and re-seed answers."""
        self.questions = list(questions)
        self.answers.clear()
        for q in self.questions:
            self.answers[q.id] = ""
        logger.debug(f"Session loaded {len(self.questions)} questions")
        return self.questions

    def reset_questions(self):
        self.questions = []
        self.answers.clear()

    def get_question(self, question_id: int) -> Optional[Question]:
        # First match wins when ids are duplicated
        return next((q for q in self.questions if q.id == question_id), None)

    # ── Answers ─────────────────────────────────────────────────────────

    def set_answer(self, question_id: int, value: str):
        if question_id not in self.answers:
            raise KeyError(f"Unknown question id: {question_id}")
        self.answers[question_id] = value

    def is_question_answered(self, question_id: int) -> bool:
        answer = self.answers.get(question_id)
        return isinstance(answer, str) and answer.strip() != ""

    @property
    def completed_count(self) -> int:
        return sum(1 for q in self.questions if self.is_question_answered(q.id))

    # ── Scoring ─────────────────────────────────────────────────────────

    def is_answer_correct(self, question_id: int) -> bool:
        """
        Fill-blank answers compare case-insensitively after trimming; choice
        and true/false answers must match the authored value exactly. A
        question without an authored answer is never correct.
        """
        question = self.get_question(question_id)
        if question is None or not question.correct_answer:
            return False

        answer = self.answers.get(question_id)
        if answer is None:
            return False

        if question.type == QuestionType.FILL_BLANK:
            return answer.strip().lower() == question.correct_answer.strip().lower()

        return answer == question.correct_answer

    def calculate_score(self) -> TestResult:
        correct_ids = frozenset(
            q.id for q in self.questions if self.is_answer_correct(q.id)
        )
        score = sum(1 for q in self.questions if q.id in correct_ids)
        result = TestResult(
            score=score,
            total_questions=len(self.questions),
            answers=dict(self.answers),
            correct_ids=correct_ids,
        )
        logger.info(
            f"Score: {result.score}/{result.total_questions} "
            f"({result.percentage}%)"
        )
        return result
