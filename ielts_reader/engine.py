"""
Reader Engine
=============
Main orchestrator that combines fragment extraction, passage formatting,
question parsing (or the LLM bridge) and reporting into one pipeline.

Usage:
    engine = ReaderEngine(config)
    test = engine.build("path/to/reading_test.pdf")
    # test is a ReadingTest with passage HTML and typed questions

Architecture:
    PDF → FragmentExtractor → plain text ─┬→ PassageFormatter + QuestionParser
                                          └→ OpenRouterBridge (--llm)
        → QuestionValidator → ReadingTest (JSON)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

from .config import ReaderConfig, load_llm_settings
from .errors import ReaderError
from .fragment_extractor import FragmentExtractor, FragmentSource, PyMuPdfSource
from .llm_bridge import OpenRouterBridge
from .models import ReadingTest, TestMetadata, TestSource
from .passage import HeadingHeuristic, PassageFormatter
from .questions import QuestionParser
from .validator import QuestionValidator

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ReaderEngine:
    """
    Main reading-test engine.

    Orchestrates the full pipeline:
        1. Text extraction (positioned fragments → lines → text)
        2. Passage + question reconstruction (heuristic or model)
        3. Question report
        4. Optional JSON output
    """

    def __init__(
        self,
        config: Optional[ReaderConfig] = None,
        source: Optional[FragmentSource] = None,
        bridge: Optional[OpenRouterBridge] = None,
    ):
        self.config = config or ReaderConfig()
        self._setup_logging()

        self.source = source or PyMuPdfSource()
        self.extractor = FragmentExtractor(
            source=self.source,
            row_tolerance=self.config.row_tolerance,
        )
        self.formatter = PassageFormatter(HeadingHeuristic(
            upper_ratio=self.config.heading_upper_ratio,
            max_length=self.config.heading_max_length,
        ))
        self.parser = QuestionParser()
        self.validator = QuestionValidator()
        self._bridge = bridge

    @property
    def bridge(self) -> OpenRouterBridge:
        # Settings are only read when the model path is actually used
        if self._bridge is None:
            self._bridge = OpenRouterBridge(load_llm_settings())
        return self._bridge

    def _setup_logging(self):
        """Configure the package logger based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("ielts_reader")
        package_logger.setLevel(log_level)

        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        if self.config.log_file:
            Path(self.config.log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(file_handler)

    # ── Pipeline ────────────────────────────────────────────────────────

    def read_pdf(self, pdf_path: str) -> bytes:
        if not os.path.exists(pdf_path):
            raise FileNotFoundError(f"PDF not found: {pdf_path}")
        with open(pdf_path, "rb") as f:
            return f.read()

    def extract_text(self, pdf_path: str) -> str:
        return self.extractor.extract_text(self.read_pdf(pdf_path))

    def build(self, pdf_path: str, use_llm: Optional[bool] = None) -> ReadingTest:
        """
        Build a reading test from a PDF file.

        Raises:
            FileNotFoundError: If the PDF doesn't exist.
            DecodeError: If the PDF cannot be read.
            ReaderError: If the model path fails.
        """
        pdf_path = os.path.abspath(pdf_path)
        start_time = time.time()
        logger.info(f"Starting build of: {pdf_path}")

        data = self.read_pdf(pdf_path)

        logger.info("Phase 1: Text extraction")
        text = self.extractor.extract_text(data)
        metadata = self._build_metadata(pdf_path, data)

        logger.info("Phase 2: Passage and question reconstruction")
        test = self.build_from_text(text, use_llm=use_llm)
        test.metadata = metadata

        elapsed = time.time() - start_time
        logger.info(
            f"Build complete in {elapsed:.2f}s: "
            f"{len(test.questions)} questions ({test.source.value})"
        )

        if self.config.save_output:
            self.save(test)

        return test

    def build_from_text(
        self, text: str, use_llm: Optional[bool] = None
    ) -> ReadingTest:
        """Run the heuristic or the model path over extracted text."""
        use_llm = self.config.use_llm if use_llm is None else use_llm

        if use_llm:
            result = self.bridge.generate_passage_and_questions(text)
            if result is None:
                raise ReaderError(self.bridge.error or "LLM generation failed")
            test = ReadingTest(
                source=TestSource.LLM,
                passage_html=result.passage_html,
                questions=result.questions,
            )
        else:
            test = ReadingTest(
                source=TestSource.HEURISTIC,
                passage_html=self.formatter.format(text),
                questions=self.parser.parse(text),
            )

        logger.info("Phase 3: Question report")
        test.report = self.validator.validate(test.questions)
        return test

    # ── Metadata / Output ───────────────────────────────────────────────

    def _build_metadata(self, pdf_path: str, data: bytes) -> TestMetadata:
        return TestMetadata(
            name=Path(pdf_path).stem,
            source_pdf=os.path.basename(pdf_path),
            total_pages=self.extractor.page_count,
            file_hash=hashlib.sha256(data).hexdigest(),
            file_size_bytes=len(data),
        )

    def save(self, test: ReadingTest) -> Path:
        """Save a ReadingTest to `<output_dir>/<name>_test.json`."""
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        name = "".join(
            c if c.isalnum() or c in "-_" else "_"
            for c in (test.metadata.name or "reading")
        )[:50]
        filepath = output_dir / f"{name}_test.json"

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(
                test.model_dump(mode="json", by_alias=True),
                f, indent=2, ensure_ascii=False,
            )
        logger.info(f"Saved JSON output: {filepath}")
        return filepath
