"""
Fragment Extractor
==================
Rebuilds reading-order text from positioned PDF text runs.

    PDF bytes → FragmentSource (per-page TextFragments)
              → group_lines (row clustering)  → Lines
              → lines_to_text                 → plain text

The geometry is kept in pure functions so the row tolerance can be tuned and
tested without a PDF. The PDF layer itself is injected into the extractor.
"""

from __future__ import annotations

import functools
import logging
from typing import Iterator, Optional, Protocol

import fitz  # PyMuPDF

from .errors import DecodeError
from .models import Line, TextFragment

logger = logging.getLogger(__name__)

ROW_TOLERANCE = 2.0

PAGE_BREAK_TEXT = "\n"


class FragmentSource(Protocol):
    """The PDF decode boundary: bytes in, per-page fragment lists out."""

    def iter_pages(self, data: bytes) -> Iterator[list[TextFragment]]:
        ...


class PyMuPdfSource:
    """
    FragmentSource backed by PyMuPDF.

    Each text span becomes one fragment. PyMuPDF measures y downwards from the
    top of the page, so it is flipped into PDF user space (upwards) to keep the
    "descending y = top to bottom" ordering of the line grouper.
    """

    def __init__(self, flags: int = fitz.TEXT_PRESERVE_WHITESPACE):
        self.flags = flags

    def iter_pages(self, data: bytes) -> Iterator[list[TextFragment]]:
        with self._open(data) as doc:
            for page_idx in range(doc.page_count):
                page = doc[page_idx]
                yield self._page_fragments(page, page_idx + 1)

    def _open(self, data: bytes) -> fitz.Document:
        try:
            return fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DecodeError(f"Cannot open PDF: {e}") from e

    def _page_fragments(self, page: fitz.Page, page_num: int) -> list[TextFragment]:
        height = page.rect.height
        fragments: list[TextFragment] = []

        page_dict = page.get_text("dict", flags=self.flags)
        for block in page_dict.get("blocks", []):
            if block.get("type") != 0:
                continue
            for line in block.get("lines", []):
                cos, sin = line.get("dir", (1.0, 0.0))
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if not text:
                        continue
                    x, y = span["origin"]
                    size = span.get("size", 0.0)
                    fragments.append(TextFragment(
                        text=text,
                        x=x,
                        y=height - y,
                        scale=(size * cos, size * sin),
                        page=page_num,
                    ))

        logger.debug(f"Page {page_num}: {len(fragments)} fragments")
        return fragments


# ─── Pure Layout Functions ────────────────────────────────────────────────────


def _compare_fragments(tolerance: float):
    def compare(f1: TextFragment, f2: TextFragment) -> int:
        if abs(f2.y - f1.y) > tolerance:
            # Different rows: higher on the page first
            return -1 if f1.y > f2.y else 1
        if f1.x == f2.x:
            return 0
        return -1 if f1.x < f2.x else 1
    return compare


def sort_fragments(
    fragments: list[TextFragment],
    tolerance: float = ROW_TOLERANCE,
) -> list[TextFragment]:
    """Order fragments top→bottom, then left→right within a row."""
    return sorted(
        fragments, key=functools.cmp_to_key(_compare_fragments(tolerance))
    )


def group_lines(
    fragments: list[TextFragment],
    tolerance: float = ROW_TOLERANCE,
) -> list[Line]:
    """
    Fold one page's fragments into lines.

    A new line starts whenever the next fragment's y differs from the running
    line's reference y (its first fragment) by more than `tolerance`. The
    line's font size is the largest fragment font size it contains.
    """
    lines: list[Line] = []
    current: list[TextFragment] = []

    def flush():
        if current:
            lines.append(Line(
                text=" ".join(f.text for f in current),
                font_size=max(f.font_size for f in current),
                page=current[0].page,
            ))

    for frag in sort_fragments(fragments, tolerance):
        if not current or abs(current[0].y - frag.y) > tolerance:
            flush()
            current = [frag]
        else:
            current.append(frag)
    flush()

    return lines


def lines_to_text(lines: list[Line]) -> str:
    return "\n".join(line.text for line in lines)


# ─── Extractor ────────────────────────────────────────────────────────────────


class FragmentExtractor:
    """
    Turns a PDF byte buffer into plain text with page-break sentinels.

    `is_processing` is true only while an extraction runs and `error` holds
    the message of the latest failure. Decode failures are re-raised.
    """

    def __init__(
        self,
        source: Optional[FragmentSource] = None,
        row_tolerance: float = ROW_TOLERANCE,
    ):
        self.source = source or PyMuPdfSource()
        self.row_tolerance = row_tolerance
        self.is_processing = False
        self.error: Optional[str] = None
        self.page_count = 0

    def extract_lines(self, data: bytes) -> list[Line]:
        self.is_processing = True
        self.error = None
        self.page_count = 0
        try:
            lines: list[Line] = []
            page_num = 0
            for page_num, fragments in enumerate(
                self.source.iter_pages(data), start=1
            ):
                lines.extend(group_lines(fragments, self.row_tolerance))
                # Sentinel keeps the gap between pages
                lines.append(Line(
                    text=PAGE_BREAK_TEXT, font_size=0, page=page_num
                ))
            self.page_count = page_num
            logger.info(f"Extracted {len(lines)} lines from {page_num} pages")
            return lines
        except Exception as e:
            self.error = str(e) or "Failed to process PDF"
            logger.error(f"PDF extraction failed: {self.error}")
            raise
        finally:
            self.is_processing = False

    def extract_text(self, data: bytes) -> str:
        """Extract the whole document as newline-joined line texts."""
        return lines_to_text(self.extract_lines(data))
