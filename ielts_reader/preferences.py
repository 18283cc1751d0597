"""
Preferences
===========
Dark-mode flag persisted as JSON under a fixed key.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DARK_MODE_KEY = "darkMode"
DEFAULT_PREFERENCES_PATH = Path.home() / ".ielts_reader" / "preferences.json"


class DarkModePreference:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_PREFERENCES_PATH
        self.is_dark_mode = self._load()

    def _read_all(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _load(self) -> bool:
        return bool(self._read_all().get(DARK_MODE_KEY, False))

    def _save(self):
        data = self._read_all()
        data[DARK_MODE_KEY] = self.is_dark_mode
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def set(self, value: bool):
        self.is_dark_mode = bool(value)
        self._save()

    def toggle(self) -> bool:
        self.set(not self.is_dark_mode)
        return self.is_dark_mode
