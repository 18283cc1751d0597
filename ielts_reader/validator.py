"""
Question Report
===============
Post-parse summary of detected questions.

Ids come verbatim from the source, so duplicates and gaps are reported here
rather than corrected by the parser.
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import Question, QuestionReport

logger = logging.getLogger(__name__)


class QuestionValidator:
    def validate(self, questions: list[Question]) -> QuestionReport:
        report = QuestionReport()

        if not questions:
            logger.warning("No questions to validate")
            return report

        report.total_questions = len(questions)

        ids = [q.id for q in questions]
        id_counts = Counter(ids)
        report.duplicate_ids = sorted(
            q_id for q_id, count in id_counts.items() if count > 1
        )
        report.missing_ids = sorted(set(range(min(ids), max(ids) + 1)) - set(ids))

        report.type_breakdown = dict(Counter(q.type.value for q in questions))

        logger.info(
            f"Questions: {report.total_questions} | "
            f"duplicates: {len(report.duplicate_ids)} | "
            f"gaps: {len(report.missing_ids)}"
        )
        for q_type, count in sorted(report.type_breakdown.items()):
            logger.info(f"  • {q_type}: {count}")

        return report
