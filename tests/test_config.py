"""Tests for application config and telemetry logging."""

import logging

import pytest

from quizwise import config, logging_setup


class TestConfig:
    def test_defaults_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "CONFIG_PATH", str(tmp_path / "config.json"))
        assert config.load_config() == {"language": "en", "cli_path": ""}

    def test_round_trip_merges_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "CONFIG_DIR", str(tmp_path / "home"))
        monkeypatch.setattr(config, "CONFIG_PATH", str(tmp_path / "home" / "config.json"))
        config.save_config({"language": "tr"})
        assert config.load_config() == {"language": "tr", "cli_path": ""}

    def test_corrupt_file_ignored(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text("[1, 2", encoding="utf-8")
        monkeypatch.setattr(config, "CONFIG_PATH", str(path))
        assert config.load_config()["language"] == "en"

    def test_work_dir_created(self):
        path = config.work_dir()
        assert path.endswith("quizwise-work")


class TestTelemetry:
    def test_line_format(self, caplog):
        with caplog.at_level(logging.INFO, logger=logging_setup.TELEMETRY_LOGGER):
            logging_setup.log_telemetry("ERROR", "gemini-2.5-flash", 12.5, "CliTimeoutError")
        assert caplog.messages == [
            "[ERROR] [Model: gemini-2.5-flash] [Duration: 12.50ms] | Details: CliTimeoutError"
        ]

    def test_rotating_file(self, tmp_path):
        logger = logging.getLogger(logging_setup.TELEMETRY_LOGGER)
        before = list(logger.handlers)
        try:
            for h in before:
                logger.removeHandler(h)
            logging_setup.setup_telemetry_log(str(tmp_path / "logs"))
            logging_setup.log_telemetry("START", "gemini-2.5-flash", 0)
            for h in logger.handlers:
                h.flush()
            text = (tmp_path / "logs" / "gemini-service.log").read_text(encoding="utf-8")
            assert "[START] [Model: gemini-2.5-flash]" in text
        finally:
            for h in list(logger.handlers):
                logger.removeHandler(h)
                h.close()
            for h in before:
                logger.addHandler(h)


class TestConsoleLogging:
    @pytest.fixture
    def root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield root
        for h in list(root.handlers):
            if h not in handlers:
                root.removeHandler(h)
        root.setLevel(level)

    def test_level_from_environment(self, root, monkeypatch):
        monkeypatch.setenv(logging_setup.LOG_LEVEL_ENV, "debug")
        logging_setup.setup_console_logging()
        assert root.level == logging.DEBUG

    def test_unknown_level_name_uses_info(self, root, monkeypatch):
        monkeypatch.setenv(logging_setup.LOG_LEVEL_ENV, "chatty")
        logging_setup.setup_console_logging()
        assert root.level == logging.INFO

    def test_second_call_adds_no_handler(self, root, monkeypatch):
        monkeypatch.delenv(logging_setup.LOG_LEVEL_ENV, raising=False)
        logging_setup.setup_console_logging()
        count = len(root.handlers)
        logging_setup.setup_console_logging(logging.WARNING)
        assert len(root.handlers) == count
        assert root.level == logging.WARNING
