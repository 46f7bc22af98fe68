"""Tests for CLI account helpers and the service facade."""

import json

import pytest

from quizwise.quiz import auth
from quizwise.quiz.cli_locator import CliLocator
from quizwise.quiz.messages import MESSAGES, translate
from quizwise.quiz.service import QuizService
from quizwise.quiz.settings_store import SettingsStore


@pytest.fixture
def gemini_settings(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    return tmp_path / ".gemini" / "settings.json"


def write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class TestCheckAuth:
    def test_no_file(self, gemini_settings):
        assert auth.check_auth(str(gemini_settings)) == {"authenticated": False, "account": None}

    def test_oauth(self, gemini_settings):
        write(gemini_settings, {"security": {"auth": {"selectedType": "OAuth"}}})
        assert auth.check_auth(str(gemini_settings)) == {"authenticated": True, "account": "Google OAuth"}

    def test_masked_email(self, gemini_settings):
        write(gemini_settings, {"selectedAuthType": "oauth-personal", "email": "student@example.com"})
        result = auth.check_auth(str(gemini_settings))
        assert result == {"authenticated": True, "account": "stu***@example.com"}

    def test_env_api_key(self, gemini_settings, monkeypatch):
        write(gemini_settings, {})
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        assert auth.check_auth(str(gemini_settings))["authenticated"] is True

    def test_corrupt_file(self, gemini_settings):
        gemini_settings.parent.mkdir(parents=True)
        gemini_settings.write_text("{oops")
        assert auth.check_auth(str(gemini_settings))["authenticated"] is False


class TestLogout:
    def test_removes_auth_keys_only(self, gemini_settings):
        write(gemini_settings, {
            "security": {"auth": {"selectedType": "OAuth"}, "other": 1},
            "selectedAuthType": "x",
            "apiKey": "k",
            "theme": "dark",
        })
        assert auth.logout(str(gemini_settings)) == {"success": True}
        data = json.loads(gemini_settings.read_text())
        assert data == {"security": {"other": 1}, "theme": "dark"}
        assert auth.check_auth(str(gemini_settings))["authenticated"] is False

    def test_missing_file_creates_empty(self, gemini_settings):
        assert auth.logout(str(gemini_settings)) == {"success": True}
        assert json.loads(gemini_settings.read_text()) == {}


class TestOpenLogin:
    def test_no_cli(self, monkeypatch):
        monkeypatch.setattr(auth, "find_gemini_cli", lambda: None)
        assert auth.open_login() == {"success": False, "error": "error_terminal_not_found"}

    def test_no_terminal(self, monkeypatch):
        monkeypatch.setattr(auth, "_terminal_command", lambda cli: None)
        assert auth.open_login("/usr/bin/gemini") == {"success": False, "error": "error_terminal_open_failed"}

    def test_launches_terminal(self, monkeypatch):
        launched = []
        monkeypatch.setattr(auth, "_terminal_command", lambda cli: ["term", "-e", cli])
        monkeypatch.setattr(auth.subprocess, "Popen", lambda cmd, **kw: launched.append(cmd))
        assert auth.open_login("/usr/bin/gemini") == {"success": True}
        assert launched == [["term", "-e", "/usr/bin/gemini"]]

    def test_linux_terminal_choice(self, monkeypatch):
        monkeypatch.setattr(auth.sys, "platform", "linux")
        monkeypatch.setattr(auth.shutil, "which", lambda name: "/usr/bin/xterm" if name == "xterm" else None)
        assert auth._terminal_command("/bin/gemini") == ["xterm", "-e", "/bin/gemini"]


class TestService:
    def test_cli_path_refresh_invalidates(self, tmp_path, monkeypatch):
        monkeypatch.setattr("quizwise.quiz.cli_locator.shutil.which", lambda name: None)
        exe = tmp_path / "gemini"
        exe.write_text("")
        locator = CliLocator(candidates=lambda: [str(exe)])
        service = QuizService(settings_store=SettingsStore(str(tmp_path / "s.json")), locator=locator)

        assert service.get_cli_path() == {"path": str(exe), "exists": True}
        exe.unlink()
        assert service.get_cli_path()["exists"] is True
        assert service.get_cli_path(refresh=True)["exists"] is False

    def test_settings_round_trip(self, tmp_path):
        service = QuizService(settings_store=SettingsStore(str(tmp_path / "s.json")))
        assert service.save_settings({"questionCount": 4}) is True
        assert service.get_settings().question_count == 4

    def test_auth_uses_configured_path(self, tmp_path, gemini_settings):
        write(gemini_settings, {"apiKey": "k"})
        service = QuizService(
            settings_store=SettingsStore(str(tmp_path / "s.json")),
            gemini_settings_path=str(gemini_settings),
        )
        assert service.check_auth()["authenticated"] is True
        assert service.logout() == {"success": True}
        assert service.check_auth()["authenticated"] is False


class TestMessages:
    def test_languages_cover_same_codes(self):
        assert set(MESSAGES["en"]) == set(MESSAGES["tr"])

    def test_translate_fallbacks(self):
        assert translate("error_cli_timeout", "tr") == MESSAGES["tr"]["error_cli_timeout"]
        assert translate("error_cli_timeout", "de") == MESSAGES["en"]["error_cli_timeout"]
        assert translate("something_else") == "something_else"
