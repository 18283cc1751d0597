"""
Configuration
=============
Two layers:
    - ReaderConfig: per-run engine options (built by the CLI or by callers).
    - LLMSettings: inference API settings read from the environment / .env.

The API key is optional at load time. Its absence is reported by the LLM
bridge as a ConfigurationError when a model call is attempted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_log = logging.getLogger(__name__)

OPENROUTER_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "mistralai/mistral-7b-instruct"


@dataclass
class ReaderConfig:
    """Configuration for the reader engine."""

    # Output settings
    output_dir: str = "output"
    save_output: bool = False

    # Layout heuristics
    row_tolerance: float = 2.0
    heading_upper_ratio: float = 0.6
    heading_max_length: int = 60

    # Processing
    use_llm: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class LLMSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    OPENROUTER_API_KEY: Optional[str] = Field(
        default=None, validation_alias="OPENROUTER_API_KEY"
    )
    OPENROUTER_ENDPOINT: str = Field(
        default=OPENROUTER_ENDPOINT, validation_alias="OPENROUTER_ENDPOINT"
    )
    OPENROUTER_MODEL: str = Field(
        default=DEFAULT_MODEL, validation_alias="OPENROUTER_MODEL"
    )
    TEMPERATURE: float = 0.2
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=60.0, validation_alias="OPENROUTER_TIMEOUT"
    )


def load_llm_settings(env_file: Optional[str] = None) -> LLMSettings:
    """Load `.env` (if any) into the process environment, then read settings."""
    if load_dotenv(env_file):
        _log.debug("Loaded environment from .env")
    return LLMSettings()
