"""Tests for the CLI runner against a fake gemini executable."""

import json
import os
import time

import pytest

from conftest import SAMPLE_QUESTIONS
from quizwise.quiz import cli_runner
from quizwise.quiz.cli_runner import (
    OutputExchange,
    ResponseType,
    decode_payload,
    output_file_path,
    parse_stdout,
    preview,
    run_cli,
)
from quizwise.quiz.errors import (
    CliNotFoundError,
    CliTimeoutError,
    InvalidInputError,
    MalformedOutputError,
    ProcessFailedError,
)


@pytest.fixture(autouse=True)
def fast_flush(monkeypatch):
    monkeypatch.setattr(cli_runner, "EXIT_FLUSH_GRACE", 0.05)


def prompt_for(target):
    return f"Write the JSON result to file: {os.path.basename(target)}"


def run(fake_cli, work_dir, response_type=ResponseType.JSON_ARRAY, timeout_ms=20_000, model="gemini-2.5-flash"):
    target = output_file_path(work_dir)
    result = run_cli(
        prompt_for(target),
        model=model,
        working_dir=work_dir,
        output_target=target,
        response_type=response_type,
        timeout_ms=timeout_ms,
        cli_path=fake_cli,
        poll_interval=0.1,
    )
    return result, target


class TestParsing:
    def test_fenced_array(self):
        assert decode_payload('```json\n[1, 2]\n```', ResponseType.JSON_ARRAY) == [1, 2]

    def test_array_inside_chatter(self):
        text = 'Sure! Here it is: [{"a": 1}] Hope that helps.'
        assert decode_payload(text, ResponseType.JSON_ARRAY) == [{"a": 1}]

    def test_object_inside_chatter(self):
        text = 'Answer follows {"answer": "x"} done'
        assert decode_payload(text, ResponseType.JSON_OBJECT) == {"answer": "x"}

    def test_nothing_recoverable(self):
        with pytest.raises(ValueError):
            decode_payload("no json here", ResponseType.JSON_ARRAY)

    def test_stdout_wrapper_unwrapped(self):
        stdout = json.dumps({"response": "```json\n[1]\n```", "stats": {}})
        assert parse_stdout(stdout, ResponseType.JSON_ARRAY) == [1]

    def test_empty_stdout(self):
        assert parse_stdout("   ", ResponseType.JSON_ARRAY) is None

    def test_preview_is_single_line_and_short(self):
        text = preview("line\n" * 200)
        assert "\n" not in text
        assert len(text) <= 203

    def test_output_names_are_random(self, work_dir):
        a, b = output_file_path(work_dir), output_file_path(work_dir)
        assert a != b
        assert os.path.basename(a).startswith("quiz_output_")


class TestOutputExchange:
    def test_removes_stale_file_on_enter_and_exit(self, work_dir):
        path = os.path.join(work_dir, "quiz_output_ab.json")
        with open(path, "w") as f:
            f.write("[1]")
        with OutputExchange(path, ResponseType.JSON_ARRAY) as ex:
            assert not os.path.exists(path)
            with open(path, "w") as f:
                f.write("[2]")
            assert ex.try_read() == [2]
        assert not os.path.exists(path)

    def test_incomplete_file_not_ready(self, work_dir):
        path = os.path.join(work_dir, "quiz_output_cd.json")
        with OutputExchange(path, ResponseType.JSON_ARRAY) as ex:
            assert ex.try_read() is None
            with open(path, "w") as f:
                f.write('[{"a": ')
            assert ex.try_read() is None

    def test_wrong_shape_is_malformed(self, work_dir):
        path = os.path.join(work_dir, "quiz_output_ef.json")
        with OutputExchange(path, ResponseType.JSON_ARRAY) as ex:
            with open(path, "w") as f:
                f.write('{"a": 1}')
            with pytest.raises(MalformedOutputError):
                ex.try_read()

    def test_retry_reads_file_completed_during_backoff(self, work_dir, monkeypatch):
        path = os.path.join(work_dir, "quiz_output_gh.json")
        delays = []

        def flush_rest(delay):
            delays.append(delay)
            if len(delays) == 2:
                with open(path, "a") as f:
                    f.write('"b": 2}]')

        monkeypatch.setattr(cli_runner.time, "sleep", flush_rest)
        with OutputExchange(path, ResponseType.JSON_ARRAY) as ex:
            with open(path, "w") as f:
                f.write('[{"a": 1, ')
            assert ex.read_with_retries(retries=5, backoff=0.1) == [{"a": 1, "b": 2}]
        assert delays == [0.1, 0.2]

    def test_retry_gives_up_after_bound(self, work_dir, monkeypatch):
        path = os.path.join(work_dir, "quiz_output_ij.json")
        delays = []
        monkeypatch.setattr(cli_runner.time, "sleep", delays.append)
        with OutputExchange(path, ResponseType.JSON_ARRAY) as ex:
            with open(path, "w") as f:
                f.write("[")
            with pytest.raises(MalformedOutputError):
                ex.read_with_retries(retries=3, backoff=0.1)
        assert delays == [0.1, 0.2]

    def test_retry_without_file(self, work_dir, monkeypatch):
        monkeypatch.setattr(cli_runner.time, "sleep", pytest.fail)
        with OutputExchange(os.path.join(work_dir, "quiz_output_kl.json"), ResponseType.JSON_ARRAY) as ex:
            assert ex.read_with_retries() is None


class TestRunCli:
    def test_reads_output_file(self, fake_cli, work_dir):
        result, target = run(fake_cli, work_dir)
        assert result == SAMPLE_QUESTIONS
        assert not os.path.exists(target)

    def test_passes_model_and_flags(self, fake_cli, work_dir, tmp_path, monkeypatch):
        log = tmp_path / "argv.json"
        monkeypatch.setenv("FAKE_GEMINI_ARGV", str(log))
        run(fake_cli, work_dir, model="not-a-real-model")
        seen = json.loads(log.read_text())
        assert seen["argv"][:2] == ["-m", "gemini-2.5-flash"]
        assert "--yolo" in seen["argv"]
        assert os.path.realpath(seen["cwd"]) == os.path.realpath(work_dir)
        assert "quiz_output_" in seen["prompt"]

    def test_kills_process_once_file_is_ready(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_MODE", "file_then_hang")
        started = time.monotonic()
        result, _ = run(fake_cli, work_dir)
        assert result == SAMPLE_QUESTIONS
        assert time.monotonic() - started < 15
        assert not cli_runner._active

    def test_stdout_fallback(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_MODE", "stdout")
        result, _ = run(fake_cli, work_dir)
        assert result == SAMPLE_QUESTIONS

    def test_json_object_response(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_PAYLOAD", json.dumps({"answer": "42", "suggestions": []}))
        result, _ = run(fake_cli, work_dir, response_type=ResponseType.JSON_OBJECT)
        assert result["answer"] == "42"

    def test_wrong_shape_in_file(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_PAYLOAD", json.dumps({"questions": SAMPLE_QUESTIONS}))
        with pytest.raises(MalformedOutputError) as exc:
            run(fake_cli, work_dir)
        assert exc.value.code == "error_ai_response_malformed"

    def test_unparseable_file(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_MODE", "garbage_file")
        with pytest.raises(MalformedOutputError):
            run(fake_cli, work_dir)
        assert os.listdir(work_dir) == []

    def test_nonzero_exit(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_MODE", "fail")
        with pytest.raises(ProcessFailedError) as exc:
            run(fake_cli, work_dir)
        assert exc.value.code == "error_cli_failed"

    def test_clean_exit_without_output(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_MODE", "silent")
        with pytest.raises(ProcessFailedError):
            run(fake_cli, work_dir)

    def test_timeout_kills_process(self, fake_cli, work_dir, monkeypatch):
        monkeypatch.setenv("FAKE_GEMINI_MODE", "hang")
        started = time.monotonic()
        with pytest.raises(CliTimeoutError) as exc:
            run(fake_cli, work_dir, timeout_ms=1000)
        assert exc.value.code == "error_cli_timeout"
        assert time.monotonic() - started < 15
        assert not cli_runner._active
        assert os.listdir(work_dir) == []

    def test_missing_cli(self, work_dir, monkeypatch):
        monkeypatch.setattr(cli_runner, "find_gemini_cli", lambda: None)
        with pytest.raises(CliNotFoundError):
            run_cli("hello", "gemini-2.5-flash", work_dir, output_file_path(work_dir))

    @pytest.mark.parametrize("prompt", ["", "   ", None, "x" * 50_001])
    def test_rejects_bad_prompt(self, prompt, work_dir, fake_cli):
        with pytest.raises(InvalidInputError):
            run_cli(prompt, "gemini-2.5-flash", work_dir, output_file_path(work_dir), cli_path=fake_cli)
