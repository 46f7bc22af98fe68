import logging
import os
import shutil
import sys
import threading
from typing import Callable, List, Optional

from quizwise.config import load_config

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"
CLI_NAME = "gemini.cmd" if IS_WINDOWS else "gemini"


def default_cli_path() -> str:
    """Where a project-local install would put the CLI; shown when nothing is found."""
    return os.path.join(os.getcwd(), "node_modules", ".bin", CLI_NAME)


def candidate_paths() -> List[str]:
    """Well-known install locations, in probe order."""
    paths = []
    override = load_config().get("cli_path")
    if isinstance(override, str) and override:
        paths.append(os.path.expanduser(override))

    paths.append(default_cli_path())
    if IS_WINDOWS:
        paths += [
            os.path.join(os.environ.get("APPDATA", ""), "npm", CLI_NAME),
            os.path.join(os.environ.get("ProgramFiles", r"C:\Program Files"), "nodejs", CLI_NAME),
        ]
    else:
        home = os.path.expanduser("~")
        paths += [
            "/usr/local/bin/gemini",
            "/usr/bin/gemini",
            "/opt/homebrew/bin/gemini",
            os.path.join(home, ".npm-global", "bin", "gemini"),
        ]
        node_version = os.environ.get("NODE_VERSION")
        if node_version:
            paths.append(os.path.join(home, ".nvm", "versions", "node", node_version, "bin", "gemini"))
    return paths


class CliLocator:
    """
    Resolves the gemini executable once per process.

    A successful lookup is cached until ``invalidate()`` is called; a failed
    lookup is not cached, so installing the CLI mid-session is picked up on
    the next call.
    """

    def __init__(self, candidates: Callable[[], List[str]] = candidate_paths):
        self._candidates = candidates
        self._path: Optional[str] = None
        self._lock = threading.Lock()

    def resolve(self) -> Optional[str]:
        with self._lock:
            if self._path is None:
                self._path = self._probe()
                if self._path:
                    logger.info("Gemini CLI found at %s", self._path)
            return self._path

    def invalidate(self) -> None:
        with self._lock:
            self._path = None

    def _probe(self) -> Optional[str]:
        for path in self._candidates():
            if path and os.path.isfile(path):
                return path
        return shutil.which(CLI_NAME) or shutil.which("gemini")

    def path_info(self) -> dict:
        """{"path": str, "exists": bool} for the settings screen."""
        path = self.resolve()
        if path:
            return {"path": path, "exists": True}
        return {"path": default_cli_path(), "exists": False}


_locator = CliLocator()


def get_locator() -> CliLocator:
    return _locator


def find_gemini_cli() -> Optional[str]:
    return _locator.resolve()
