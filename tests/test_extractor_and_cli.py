"""Tests for PDF summaries, PDF loading in the controller and the command line."""

import json

import fitz
import pytest

from quizwise import main as cli
from quizwise.extractor.pdf_info import read_pdf_info
from quizwise.flow.controller import QuizFlowController
from quizwise.quiz.service import QuizService
from quizwise.quiz.settings_store import SettingsStore


@pytest.fixture
def real_pdf(tmp_path):
    path = tmp_path / "anatomy.pdf"
    doc = fitz.open()
    doc.new_page()
    doc.new_page()
    doc.set_metadata({"title": "Anatomy Notes"})
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture
def service(tmp_path):
    return QuizService(settings_store=SettingsStore(str(tmp_path / "quiz_settings.json")))


class TestPdfInfo:
    def test_reads_pages_and_title(self, real_pdf):
        info = read_pdf_info(real_pdf)
        assert info.pages == 2
        assert info.title == "Anatomy Notes"
        assert info.display_name == "Anatomy Notes (2 pages)"

    def test_unreadable_pdf_keeps_name(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"%PDF-1.4 truncated")
        info = read_pdf_info(str(path))
        assert info.name == "broken.pdf"
        assert info.display_name.startswith("broken.pdf")

    def test_controller_load_pdf_leaves_demo(self, qapp, real_pdf, service):
        c = QuizFlowController(service, dispatcher=lambda rid, req: None)
        c.demo = True
        c.load_pdf(real_pdf)
        assert c.pdf_path == real_pdf
        assert c.pdf_name == "Anatomy Notes (2 pages)"
        assert c.demo is False


class TestCommandLine:
    def test_run_demo(self, service):
        questions = cli.run("DEMO", "en", service=service)
        assert len(questions) == 5
        assert questions[0]["id"] == "demo_en_1"
        assert "correctAnswerIndex" in questions[0]

    def test_run_reports_errors(self, service, tmp_path):
        with pytest.raises(RuntimeError, match="PDF"):
            cli.run(str(tmp_path / "missing.txt"), "en", service=service)

    def test_main_writes_json(self, tmp_path, monkeypatch, service):
        monkeypatch.setattr(cli, "setup_telemetry_log", lambda: None)
        monkeypatch.setattr(cli, "QuizService", lambda: service)
        out = tmp_path / "quiz.json"
        assert cli.main(["DEMO", "--lang", "tr", "--out", str(out)]) == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data[0]["id"] == "demo1"

    def test_main_failure_exit_code(self, tmp_path, monkeypatch, service):
        monkeypatch.setattr(cli, "setup_telemetry_log", lambda: None)
        monkeypatch.setattr(cli, "QuizService", lambda: service)
        assert cli.main([str(tmp_path / "nothing.pdf"), "--out", str(tmp_path / "q.json")]) == 1
        assert not (tmp_path / "q.json").exists()
