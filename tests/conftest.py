"""Shared fixtures: a Qt application, sample PDFs and a fake gemini CLI."""

import json
import stat
import sys

import pytest
from PySide6.QtCore import QCoreApplication

SAMPLE_QUESTIONS = [
    {
        "id": "q1",
        "text": "Which organ pumps blood?",
        "options": ["Lung", "Heart", "Liver", "Kidney"],
        "correctAnswerIndex": 1,
        "explanation": "The heart pumps blood.",
        "sourceQuote": "Chapter 1",
    },
    {
        "id": "q2",
        "text": "What is H2O?",
        "options": ["Water", "Salt"],
        "correctAnswerIndex": 0,
        "explanation": "Two hydrogens, one oxygen.",
    },
]

# Reads the prompt from stdin, finds the output file name in it and behaves
# according to FAKE_GEMINI_MODE.
FAKE_CLI = r'''#!{python}
import json, os, re, sys, time

prompt = sys.stdin.read()
mode = os.environ.get("FAKE_GEMINI_MODE", "file")
payload = os.environ.get("FAKE_GEMINI_PAYLOAD", "[]")

argv_log = os.environ.get("FAKE_GEMINI_ARGV")
if argv_log:
    with open(argv_log, "w") as f:
        json.dump({{"argv": sys.argv[1:], "prompt": prompt, "cwd": os.getcwd()}}, f)

match = re.search(r"quiz_output_[0-9a-f]+\.json", prompt)
target = os.path.join(os.getcwd(), match.group(0)) if match else None

if mode == "file":
    with open(target, "w") as f:
        f.write(payload)
elif mode == "file_then_hang":
    with open(target, "w") as f:
        f.write(payload)
    time.sleep(30)
elif mode == "garbage_file":
    with open(target, "w") as f:
        f.write("this is not json at all")
elif mode == "stdout":
    print(json.dumps({{"response": "```json\n" + payload + "\n```"}}))
elif mode == "hang":
    time.sleep(30)
elif mode == "fail":
    sys.stderr.write("quota exceeded")
    sys.exit(2)
elif mode == "silent":
    pass
'''


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def sample_payload():
    return json.dumps(SAMPLE_QUESTIONS)


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "lecture.pdf"
    path.write_bytes(b"%PDF-1.4\n% sample\n1 0 obj << >> endobj\n%%EOF\n")
    return str(path)


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return str(path)


@pytest.fixture
def fake_cli(tmp_path, monkeypatch, sample_payload):
    """Path to an executable fake CLI; defaults to writing SAMPLE_QUESTIONS to the output file."""
    if sys.platform == "win32":
        pytest.skip("fake CLI relies on a shebang script")
    path = tmp_path / "fake-gemini"
    path.write_text(FAKE_CLI.format(python=sys.executable), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("FAKE_GEMINI_MODE", "file")
    monkeypatch.setenv("FAKE_GEMINI_PAYLOAD", sample_payload)
    return str(path)