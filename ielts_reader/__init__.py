"""
IELTS Reader
============
Turns IELTS reading-test PDFs into interactive, scored tests.

Architecture:
    - Fragment Extractor: Groups positioned PDF text runs into ordered lines
    - Passage Formatter: Builds heading/paragraph HTML for the reading passage
    - Question Parser: Detects numbered questions and classifies their type
    - LLM Bridge: Optional model-based reconstruction of passage + questions
    - Session / Renderer: Tracks answers, scores, and fills the page skeleton

Version: 1.0.0
"""

__version__ = "1.0.0"
