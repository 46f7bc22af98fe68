"""
Runs the gemini CLI as a subprocess and collects its answer.

The CLI is told to write its JSON into an output exchange file because its
stdout is unreliable for large structured payloads. The runner polls that
file while the process runs, falls back to stdout once the process exits,
and deletes the file on every exit path.
"""
import atexit
import json
import logging
import os
import re
import secrets
import subprocess
import sys
import threading
import time
from enum import Enum
from typing import Any, Optional

from quizwise.config import GENERATION_TIMEOUT_MS
from quizwise.logging_setup import log_telemetry
from quizwise.quiz.cli_locator import find_gemini_cli
from quizwise.quiz.errors import (
    CliNotFoundError,
    CliTimeoutError,
    InvalidInputError,
    MalformedOutputError,
    ProcessFailedError,
)
from quizwise.quiz.models import normalize_model
from quizwise.quiz.validator import remove_quietly

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 50_000
MAX_OUTPUT_CHARS = 10 * 1024 * 1024
LOG_PREVIEW_CHARS = 200
POLL_INTERVAL = 1.0
EXIT_FLUSH_GRACE = 0.5
READ_RETRIES = 3
READ_BACKOFF = 0.25


class ResponseType(str, Enum):
    JSON_ARRAY = "json-array"
    JSON_OBJECT = "json-object"
    TEXT = "text"


def output_file_path(work_dir: str) -> str:
    return os.path.join(work_dir, f"quiz_output_{secrets.token_hex(8)}.json")


def preview(text: str) -> str:
    """Truncated, single-line view of untrusted output, safe for logs."""
    text = re.sub(r"\s+", " ", str(text))
    if len(text) > LOG_PREVIEW_CHARS:
        return text[:LOG_PREVIEW_CHARS] + "..."
    return text


# -------------------- PARSING --------------------
_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$")


def strip_fences(text: str) -> str:
    text = text.strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def _extract_span(text: str, response_type: ResponseType) -> Optional[str]:
    first_brace, last_brace = text.find("{"), text.rfind("}")
    first_bracket, last_bracket = text.find("["), text.rfind("]")

    if response_type == ResponseType.JSON_ARRAY:
        start, end = first_bracket, last_bracket
    elif response_type == ResponseType.JSON_OBJECT:
        start, end = first_brace, last_brace
    else:
        has_brace = first_brace != -1 and last_brace != -1
        has_bracket = first_bracket != -1 and last_bracket != -1
        if has_brace and (not has_bracket or first_brace < first_bracket):
            start, end = first_brace, last_brace
        elif has_bracket:
            start, end = first_bracket, last_bracket
        else:
            return None

    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def decode_payload(text: str, response_type: ResponseType) -> Any:
    """
    Decode tool output for the requested response type.

    Raises:
        ValueError: if no JSON value can be recovered
    """
    if response_type == ResponseType.TEXT:
        text = text.strip()
        if not text:
            raise ValueError("empty response")
        return text

    body = strip_fences(text)
    try:
        return json.loads(body)
    except ValueError:
        span = _extract_span(body, response_type)
        if span is None:
            raise
        return json.loads(span)


def shape_matches(value: Any, response_type: ResponseType) -> bool:
    if response_type == ResponseType.JSON_ARRAY:
        return isinstance(value, list)
    if response_type == ResponseType.JSON_OBJECT:
        return isinstance(value, dict)
    return isinstance(value, str)


def parse_stdout(stdout: str, response_type: ResponseType) -> Any:
    """Fallback parse of the CLI's stdout, unwrapping its ``{"response": ...}`` envelope."""
    if not stdout or not stdout.strip():
        return None
    target = stdout
    try:
        wrapper = json.loads(stdout.strip())
    except ValueError:
        wrapper = None
    if isinstance(wrapper, dict) and isinstance(wrapper.get("response"), str):
        target = wrapper["response"]
    try:
        return decode_payload(target, response_type)
    except ValueError:
        return None


# -------------------- OUTPUT EXCHANGE --------------------
class OutputExchange:
    """
    Owns the output exchange file for one CLI run.

    Use as a context manager; the file is removed on exit whatever happened.
    """

    def __init__(self, path: str, response_type: ResponseType):
        self.path = path
        self.response_type = response_type

    def __enter__(self):
        remove_quietly(self.path)
        return self

    def __exit__(self, exc_type, exc, tb):
        remove_quietly(self.path)
        return False

    def try_read(self) -> Any:
        """
        Parsed file content, or None if the file is missing or not yet complete.

        Raises:
            MalformedOutputError: content parses but has the wrong shape
        """
        try:
            with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                content = f.read()
        except OSError:
            return None
        if len(content.strip()) < 2:
            return None
        try:
            value = decode_payload(content, self.response_type)
        except ValueError:
            return None
        if not shape_matches(value, self.response_type):
            logger.warning("Output file has wrong shape for %s: %s",
                           self.response_type.value, preview(content))
            raise MalformedOutputError()
        return value

    def read_with_retries(self, retries: int = READ_RETRIES, backoff: float = READ_BACKOFF) -> Any:
        """Bounded re-reads for a file that may still be flushing."""
        delay = backoff
        for attempt in range(retries):
            value = self.try_read()
            if value is not None:
                return value
            if not os.path.exists(self.path):
                return None
            if attempt < retries - 1:
                time.sleep(delay)
                delay *= 2
        if os.path.exists(self.path):
            logger.warning("Output file never became parseable")
            raise MalformedOutputError()
        return None


# -------------------- PROCESS REGISTRY --------------------
_active = set()
_active_lock = threading.Lock()


def _register(proc: subprocess.Popen) -> None:
    with _active_lock:
        _active.add(proc)


def _unregister(proc: subprocess.Popen) -> None:
    with _active_lock:
        _active.discard(proc)


def _kill(proc: subprocess.Popen) -> None:
    if proc.poll() is not None:
        return
    try:
        proc.kill()
    except OSError as e:
        logger.warning("Could not kill CLI process %s: %s", proc.pid, e)


def _stop(proc: subprocess.Popen) -> None:
    """Kill and reap a process owned by the calling thread, closing its pipes."""
    _kill(proc)
    try:
        proc.communicate(timeout=5)
    except (OSError, ValueError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not reap CLI process %s: %s", proc.pid, e)


def terminate_all() -> None:
    """Kill every CLI process still running (application shutdown)."""
    with _active_lock:
        procs = list(_active)
    for proc in procs:
        _kill(proc)


atexit.register(terminate_all)


# -------------------- RUNNER --------------------
def _cli_env() -> dict:
    env = os.environ.copy()
    env.update({
        "NODE_ENV": "production",
        "CI": "true",
        "NO_COLOR": "1",
        "FORCE_COLOR": "0",
        "NO_UPDATE_NOTIFIER": "1",
        "GEMINI_SKIP_SETUP": "true",
        "NODE_OPTIONS": "--no-deprecation",
    })
    return env


def run_cli(
    prompt: str,
    model: str,
    working_dir: str,
    output_target: str,
    response_type: ResponseType = ResponseType.JSON_ARRAY,
    timeout_ms: int = GENERATION_TIMEOUT_MS,
    cli_path: Optional[str] = None,
    poll_interval: float = POLL_INTERVAL,
) -> Any:
    """
    Run the CLI and return its parsed answer.

    Raises:
        InvalidInputError: prompt is not a string or is too long
        CliNotFoundError: no executable could be located
        CliTimeoutError: ``timeout_ms`` elapsed; the process is killed
        ProcessFailedError: the process exited without a usable result
        MalformedOutputError: a result was found but has the wrong shape
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidInputError(detail="prompt must be a non-empty string")
    if len(prompt) > MAX_PROMPT_CHARS:
        raise InvalidInputError(detail=f"prompt too large ({len(prompt)} chars)")

    cli = cli_path or find_gemini_cli()
    if not cli:
        raise CliNotFoundError()

    model = normalize_model(model)
    response_type = ResponseType(response_type)
    started = time.monotonic()
    deadline = started + timeout_ms / 1000
    log_telemetry("START", model, 0)

    try:
        with OutputExchange(output_target, response_type) as exchange:
            result = _run_process(cli, prompt, model, working_dir, exchange, deadline, poll_interval)
    except Exception as e:
        log_telemetry("ERROR", model, (time.monotonic() - started) * 1000, type(e).__name__)
        raise

    log_telemetry("SUCCESS", model, (time.monotonic() - started) * 1000)
    return result


def _run_process(cli, prompt, model, working_dir, exchange, deadline, poll_interval):
    args = [cli, "-m", model, "-p", "Prompt:", "-o", "json", "--yolo"]
    try:
        proc = subprocess.Popen(
            args,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=working_dir or None,
            env=_cli_env(),
            text=True,
            encoding="utf-8",
            errors="replace",
            # .cmd shims need the shell on Windows
            shell=sys.platform == "win32",
            creationflags=subprocess.CREATE_NO_WINDOW if sys.platform == "win32" else 0,
        )
    except OSError as e:
        logger.error("Failed to start CLI: %s", e)
        raise ProcessFailedError(detail=str(e))

    _register(proc)
    try:
        pending_input = prompt
        while True:
            wait = max(0.0, min(poll_interval, deadline - time.monotonic()))
            try:
                stdout, stderr = proc.communicate(input=pending_input, timeout=wait)
                break
            except subprocess.TimeoutExpired:
                pending_input = None

            value = exchange.try_read()
            if value is not None:
                logger.info("Output file ready, stopping CLI")
                return value

            if time.monotonic() >= deadline:
                logger.error("CLI timed out, killing process %s", proc.pid)
                raise CliTimeoutError()
    finally:
        if proc.returncode is None:
            _stop(proc)
        _unregister(proc)

    return _collect_after_exit(proc.returncode, stdout or "", stderr or "", exchange)


def _collect_after_exit(code, stdout, stderr, exchange):
    time.sleep(EXIT_FLUSH_GRACE)
    value = exchange.read_with_retries()
    if value is not None:
        return value

    if code != 0:
        logger.error("CLI exited with code %s: %s", code, preview(stderr))
        raise ProcessFailedError(detail=f"exit code {code}")

    if len(stdout) > MAX_OUTPUT_CHARS:
        logger.error("CLI stdout exceeded %d chars", MAX_OUTPUT_CHARS)
        raise MalformedOutputError()

    value = parse_stdout(stdout, exchange.response_type)
    if value is None:
        logger.error("No usable response from CLI: %s", preview(stdout))
        raise ProcessFailedError(detail="no response received")
    if not shape_matches(value, exchange.response_type):
        logger.warning("Stdout has wrong shape for %s: %s",
                       exchange.response_type.value, preview(stdout))
        raise MalformedOutputError()
    return value
