import json
import logging
import os
import threading
from typing import Any, Dict

from quizwise.config import QUIZ_SETTINGS_PATH
from quizwise.quiz.models import QuizSettings, SettingsUpdate

logger = logging.getLogger(__name__)


def sanitize_partial(partial: Any) -> Dict[str, Any]:
    """
    Keep only well-typed fields of a partial settings update.

    Unknown keys and mistyped values are dropped instead of applied.
    """
    if not isinstance(partial, dict):
        return {}
    return SettingsUpdate.model_validate(partial).to_dict()


class SettingsStore:
    """JSON file holding the single QuizSettings record."""

    def __init__(self, path: str = QUIZ_SETTINGS_PATH):
        self.path = path
        self._lock = threading.Lock()

    def _read_raw(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Quiz settings unreadable, using defaults: %s", e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_raw(self, data: Dict[str, Any]) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def read(self) -> QuizSettings:
        """Stored record merged field-by-field over the defaults."""
        with self._lock:
            return QuizSettings.from_dict(self._read_raw())

    def save(self, partial: Dict[str, Any]) -> bool:
        """
        Merge a partial update onto the persisted record and write it back whole.

        Returns:
            True if the record was written
        """
        updates = sanitize_partial(partial)
        with self._lock:
            current = QuizSettings.from_dict(self._read_raw()).to_dict()
            current.update(updates)
            merged = QuizSettings.from_dict(current)
            try:
                self._write_raw(merged.to_dict())
            except OSError as e:
                logger.error("Failed to write quiz settings: %s", e)
                return False
        logger.info("Quiz settings saved (%s)", ", ".join(sorted(updates)) or "no changes")
        return True
