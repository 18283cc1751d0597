"""
LLM Bridge
==========
Alternate path that delegates passage and question reconstruction to a
chat-completions model (OpenRouter).

Flow:
    raw text → prompt (system + user) → POST → choices[0].message.content
             → cleanup transforms → json.loads → LLMResult

The model does not reliably honour the output contract, so the content goes
through an ordered list of cleanup transforms before parsing. Every request
carries a timeout.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, Optional

import requests
from pydantic import ValidationError

from .config import LLMSettings
from .errors import ConfigurationError, FormatError, NetworkError, ReaderError
from .models import LLMResult

logger = logging.getLogger(__name__)

# ─── Prompt ───────────────────────────────────────────────────────────────────

SYSTEM_PROMPT = (
    "You are an assistant that converts raw IELTS PDF text into structured "
    "HTML and question JSON."
)

OUTPUT_CONTRACT = (
    "Return ONLY valid JSON matching this exact TypeScript interface:\n"
    "interface Result {\n"
    "  passageHtml: string;            // HTML for the reading passage.\n"
    "  // Requirements:\n"
    "  // 1. First output the italic introductory description line in its own "
    "<p><i>...</i></p>, e.g. \"You should spend about 20 minutes on Questions "
    "1-16, which are based on Reading Passage 1 below.\" If such a line exists "
    "in the RAW TEXT, reuse it; otherwise synthesise the standard sentence.\n"
    "  // 2. Immediately AFTER the intro line, detect the actual passage TITLE "
    "(the next non-empty line) and wrap it in "
    "<h2 style=\"text-align:center\"><b>...</b></h2>. Do NOT invent generic "
    "titles like \"Reading Passage 1\"; use the real title present in the text.\n"
    "  // 3. Treat ANY blank line or multiple new-line sequence in RAW TEXT as a "
    "paragraph break. Wrap each paragraph in its own <p>...</p>.\n"
    "  // 4. NEVER nest paragraphs or merge multiple paragraphs into a single <p>.\n"
    "  // 5. Escape internal newlines inside <p> nodes as \\n.\n"
    "  questions: {\n"
    "    id: number;\n"
    "    text: string;\n"
    "    type: \"multiple-choice\" | \"fill-blank\" | \"true-false\";\n"
    "    options?: { value: string; text: string }[];\n"
    "    correctAnswer: string;\n"
    "    explanation?: string;\n"
    "    relevantText?: string;\n"
    "  }[];\n"
    "}\n"
    "\n"
    "Rules:\n"
    "1. Do NOT wrap the JSON in markdown fences or back-ticks.\n"
    "2. Escape every newline in passageHtml as \\n.\n"
    "3. Output must be compact single-line JSON starting with { and ending "
    "with }. Nothing before or after."
)


def build_messages(raw_text: str) -> list[dict[str, str]]:
    """The fixed two-message prompt: system role, then user role."""
    user = (
        "You are an assistant that converts raw IELTS PDF text into "
        "structured JSON.\n\n"
        f"Input (RAW TEXT):\n{raw_text}\n\n"
        f"{OUTPUT_CONTRACT}"
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


# ─── Cleanup Transforms ───────────────────────────────────────────────────────

CODE_FENCE_PATTERN = re.compile(r"```json|```", re.IGNORECASE)


def strip_code_fences(content: str) -> str:
    return CODE_FENCE_PATTERN.sub("", content).strip()


def replace_backticks(content: str) -> str:
    # Models sometimes wrap long strings in back-ticks instead of quotes
    return content.replace("`", '"')


def slice_outer_braces(content: str) -> str:
    if content.startswith("{"):
        return content
    first = content.find("{")
    last = content.rfind("}")
    if first >= 0 and last > first:
        return content[first:last + 1]
    return content


CLEANUP_STEPS: tuple[Callable[[str], str], ...] = (
    strip_code_fences,
    replace_backticks,
    slice_outer_braces,
)


def clean_model_output(content: str) -> str:
    for step in CLEANUP_STEPS:
        content = step(content)
    return content


def parse_model_output(content: str) -> LLMResult:
    """Clean and parse model output. Raises FormatError."""
    cleaned = clean_model_output(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise FormatError(f"Model returned invalid JSON: {e}") from e

    try:
        return LLMResult.model_validate(data)
    except ValidationError as e:
        raise FormatError(
            f"Model JSON does not match the expected shape: "
            f"{e.error_count()} validation error(s)"
        ) from e


# ─── Client ───────────────────────────────────────────────────────────────────


class OpenRouterBridge:
    """
    Single-shot client for the inference API.

    `is_calling` is true only while a request is in flight; `error` holds the
    latest failure message and is cleared at the start of every attempt.
    """

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or LLMSettings()
        self.session = session or requests.Session()
        self.is_calling = False
        self.error: Optional[str] = None

    def generate_passage_and_questions(
        self,
        raw_text: str,
        timeout: Optional[float] = None,
    ) -> Optional[LLMResult]:
        """
        Ask the model for passage HTML and questions.

        Returns the parsed result, or None with `error` populated.
        """
        self.is_calling = True
        self.error = None
        try:
            content = self._request(raw_text, timeout)
            result = parse_model_output(content)
            logger.info(
                f"Model returned {len(result.questions)} questions "
                f"and {len(result.passage_html)} chars of passage HTML"
            )
            return result
        except ReaderError as e:
            self.error = str(e)
            logger.error(f"LLM generation failed: {self.error}")
            return None
        finally:
            self.is_calling = False

    def _request(self, raw_text: str, timeout: Optional[float]) -> str:
        api_key = self.settings.OPENROUTER_API_KEY
        if not api_key:
            raise ConfigurationError(
                "OpenRouter API key is missing. Add OPENROUTER_API_KEY to "
                "your environment or .env file."
            )

        payload = {
            "model": self.settings.OPENROUTER_MODEL,
            "messages": build_messages(raw_text),
            "temperature": self.settings.TEMPERATURE,
            "stream": False,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        logger.info(
            f"Calling {self.settings.OPENROUTER_MODEL} "
            f"({len(raw_text)} chars of input)"
        )
        try:
            resp = self.session.post(
                self.settings.OPENROUTER_ENDPOINT,
                json=payload,
                headers=headers,
                timeout=timeout or self.settings.REQUEST_TIMEOUT_SECONDS,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"OpenRouter request failed: {e}") from e

        if not resp.ok:
            raise NetworkError(
                f"OpenRouter API error {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise FormatError(f"OpenRouter response is not JSON: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        if content is None:
            return ""
        if not isinstance(content, str):
            raise FormatError("OpenRouter response has no text content")
        return content
