"""
Gemini CLI account helpers.

The CLI keeps its auth state in ``~/.gemini/settings.json``; these helpers
read and clear it, and open a terminal where the user can sign in.
Account details are never logged.
"""
import json
import logging
import os
import shutil
import subprocess
import sys
from typing import Optional

from quizwise.quiz.cli_locator import find_gemini_cli

logger = logging.getLogger(__name__)

GEMINI_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".gemini", "settings.json")

LINUX_TERMINALS = (
    ("gnome-terminal", ["--"]),
    ("konsole", ["-e"]),
    ("xfce4-terminal", ["-e"]),
    ("xterm", ["-e"]),
)


def _read_settings(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, dict) else {}


def mask_email(email: str) -> str:
    name, _, domain = email.partition("@")
    return f"{name[:3]}***@{domain}"


def check_auth(settings_path: str = GEMINI_SETTINGS_PATH) -> dict:
    """{"authenticated": bool, "account": str | None}"""
    try:
        settings = _read_settings(settings_path)
    except (OSError, ValueError):
        return {"authenticated": False, "account": None}

    security = settings.get("security") if isinstance(settings.get("security"), dict) else {}
    auth = security.get("auth") if isinstance(security.get("auth"), dict) else {}
    selected = auth.get("selectedType")

    authenticated = bool(
        selected
        or settings.get("selectedAuthType")
        or settings.get("apiKey")
        or os.environ.get("GEMINI_API_KEY")
    )

    account: Optional[str] = None
    if selected == "OAuth":
        account = "Google OAuth"
    else:
        email = settings.get("account") or settings.get("email")
        if isinstance(email, str) and "@" in email:
            account = mask_email(email)
        elif email:
            account = "Configured"

    return {"authenticated": authenticated, "account": account}


def logout(settings_path: str = GEMINI_SETTINGS_PATH) -> dict:
    """Remove stored auth keys from the CLI settings, keeping everything else."""
    try:
        try:
            settings = _read_settings(settings_path)
        except FileNotFoundError:
            settings = {}

        security = settings.get("security")
        if isinstance(security, dict):
            security.pop("auth", None)
        settings.pop("selectedAuthType", None)
        settings.pop("apiKey", None)

        os.makedirs(os.path.dirname(settings_path), exist_ok=True)
        with open(settings_path, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)
        return {"success": True}
    except (OSError, ValueError) as e:
        logger.error("Logout failed: %s", type(e).__name__)
        return {"success": False, "error": "error_logout_failed"}


def _terminal_command(cli_path: str) -> Optional[list]:
    if sys.platform == "win32":
        return ["cmd", "/c", "start", "cmd", "/k", cli_path]
    if sys.platform == "darwin":
        escaped = cli_path.replace('"', '\\"')
        return ["osascript", "-e", f'tell application "Terminal" to do script "{escaped}"']
    for name, flags in LINUX_TERMINALS:
        if shutil.which(name):
            return [name, *flags, cli_path]
    return None


def open_login(cli_path: Optional[str] = None) -> dict:
    """Open a terminal running the CLI so the user can complete its sign-in flow."""
    cli_path = cli_path or find_gemini_cli()
    if not cli_path:
        return {"success": False, "error": "error_terminal_not_found"}

    cmd = _terminal_command(cli_path)
    if cmd is None:
        logger.error("No supported terminal emulator found")
        return {"success": False, "error": "error_terminal_open_failed"}

    try:
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=sys.platform != "win32",
        )
    except OSError as e:
        logger.error("Failed to open login terminal: %s", e)
        return {"success": False, "error": "error_terminal_open_failed"}
    return {"success": True}
