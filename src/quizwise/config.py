import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

CONFIG_DIR = os.environ.get(
    "QUIZWISE_HOME", os.path.join(os.path.expanduser("~"), ".quizwise")
)
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")
QUIZ_SETTINGS_PATH = os.path.join(CONFIG_DIR, "quiz_settings.json")
LOG_DIR = os.path.join(CONFIG_DIR, "logs")

DEFAULT_CONFIG = {
    "language": "en",   # "en" or "tr"
    "cli_path": ""      # optional override for the gemini executable
}

# Generation limits
GENERATION_TIMEOUT_MS = 300_000
ASSISTANT_TIMEOUT_MS = 120_000
SETTINGS_DEBOUNCE_MS = 1500


def load_config() -> dict:
    cfg = DEFAULT_CONFIG.copy()
    if not os.path.exists(CONFIG_PATH):
        return cfg
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", CONFIG_PATH, e)
        return cfg
    if isinstance(stored, dict):
        cfg.update(stored)
    return cfg


def save_config(cfg: dict):
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, "w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)


def work_dir() -> str:
    """Process-owned directory for staged PDFs and output exchange files."""
    path = os.path.join(tempfile.gettempdir(), "quizwise-work")
    os.makedirs(path, exist_ok=True)
    return path
