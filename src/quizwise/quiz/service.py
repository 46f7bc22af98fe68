"""
Operation surface used by the desktop UI and the command line.

Each call returns plain data; errors come back as ``{"success": False,
"error": code}`` rather than exceptions.
"""
from typing import Any, Dict, Optional

from quizwise.quiz import auth
from quizwise.quiz.cli_locator import CliLocator, get_locator
from quizwise.quiz.models import GenerationRequest, QuizSettings
from quizwise.quiz.orchestrator import QuizOrchestrator
from quizwise.quiz.settings_store import SettingsStore


class QuizService:
    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        orchestrator: Optional[QuizOrchestrator] = None,
        locator: Optional[CliLocator] = None,
        gemini_settings_path: str = auth.GEMINI_SETTINGS_PATH,
    ):
        self.settings_store = settings_store or SettingsStore()
        self.orchestrator = orchestrator or QuizOrchestrator(self.settings_store)
        self.locator = locator or get_locator()
        self.gemini_settings_path = gemini_settings_path

    def generate(self, request: GenerationRequest) -> Dict[str, Any]:
        return self.orchestrator.generate(request)

    def ask_assistant(self, question: str, context: Optional[str] = None) -> Dict[str, Any]:
        return self.orchestrator.ask_assistant(question, context)

    def get_settings(self) -> QuizSettings:
        return self.settings_store.read()

    def save_settings(self, partial: Dict[str, Any]) -> bool:
        return self.settings_store.save(partial)

    def get_cli_path(self, refresh: bool = False) -> Dict[str, Any]:
        if refresh:
            self.locator.invalidate()
        return self.locator.path_info()

    def open_login(self) -> Dict[str, Any]:
        return auth.open_login(self.locator.resolve())

    def check_auth(self) -> Dict[str, Any]:
        return auth.check_auth(self.gemini_settings_path)

    def logout(self) -> Dict[str, Any]:
        return auth.logout(self.gemini_settings_path)
