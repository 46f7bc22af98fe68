import sys
if sys.stdout:
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
if sys.stderr:
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")
import html
import os

from PySide6.QtWidgets import (
    QApplication, QWidget, QLabel, QPushButton, QTextEdit,
    QVBoxLayout, QHBoxLayout, QFileDialog, QStackedWidget,
    QListWidget, QListWidgetItem, QFrame, QLineEdit, QComboBox,
    QSpinBox, QButtonGroup, QRadioButton
)
from PySide6.QtCore import Qt, QThread
from PySide6.QtGui import QShortcut

from quizwise.config import load_config
from quizwise.flow.controller import QuizFlowController
from quizwise.flow.state import QuizStep
from quizwise.flow.worker import AssistantWorker
from quizwise.logging_setup import setup_console_logging, setup_telemetry_log
from quizwise.quiz.messages import translate
from quizwise.quiz.models import ALLOWED_MODELS, MAX_OPTIONS, Difficulty, QuestionStyle
from quizwise.quiz.service import QuizService
from quizwise.ui.settings_dialog import SettingsDialog


# -------------------- THEME --------------------
ACCENT = "#6C5CE7"
BG = "#0A0E17"
PANEL = "#151B28"
TEXT = "#E8EAED"
MUTED = "#6B7280"
SUCCESS = "#34D399"
ERROR = "#EF4444"

PAGES = [QuizStep.CONFIG, QuizStep.GENERATING, QuizStep.READY, QuizStep.QUIZ, QuizStep.RESULTS]


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


def review_html(state) -> str:
    """Results review as rich text; generated text is escaped."""
    blocks = []
    for n, q in enumerate(state.questions, 1):
        answer = state.user_answers.get(q.id)
        mark = "✔" if state.is_correct(q) else ("–" if answer is None else "✘")
        block = (
            f"<p><b>{mark} {n}.</b> {html.escape(q.text)}"
            f"<br><i>Correct: {option_letter(q.correct_answer_index)}</i>"
            f"<br>{html.escape(q.explanation)}"
        )
        if q.source_quote:
            block += f"<br><small>{html.escape(q.source_quote)}</small>"
        blocks.append(block + "</p>")
    return "".join(blocks)


class QuizWiseApp(QWidget):
    def __init__(self, service: QuizService = None):
        super().__init__()
        self.setWindowTitle("QuizWise - PDF Quiz Generator")
        self.setMinimumSize(1000, 700)

        self.service = service or QuizService()
        cfg = load_config()
        self.controller = QuizFlowController(self.service, language=cfg.get("language", "en"), parent=self)
        self.assistant_thread = None
        self.assistant_worker = None

        # ===== BUILD UI =====
        self.build_ui()
        self.apply_theme()

        self.controller.step_changed.connect(lambda _step: self.refresh())
        self.controller.state_changed.connect(self.refresh)
        self.controller.error_changed.connect(self.show_error)

        # ===== KEYBOARD SHORTCUTS =====
        QShortcut("Ctrl+O", self).activated.connect(self.open_pdf)
        QShortcut("Right", self).activated.connect(self.controller.next_question)
        QShortcut("Left", self).activated.connect(self.controller.previous_question)

        self.load_settings_into_form()
        self.refresh()

    @property
    def language(self) -> str:
        return self.controller.language

    def build_ui(self):
        main_layout = QVBoxLayout(self)

        # ===== HEADER =====
        header = QHBoxLayout()
        title = QLabel("QuizWise")
        title.setObjectName("Title")
        self.settings_btn = QPushButton("Settings")
        self.settings_btn.clicked.connect(self.open_settings)
        header.addWidget(title)
        header.addStretch()
        header.addWidget(self.settings_btn)
        main_layout.addLayout(header)

        self.error_label = QLabel()
        self.error_label.setObjectName("ErrorLabel")
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        main_layout.addWidget(self.error_label)

        self.stack = QStackedWidget()
        self.stack.addWidget(self.create_config_page())
        self.stack.addWidget(self.create_generating_page())
        self.stack.addWidget(self.create_ready_page())
        self.stack.addWidget(self.create_quiz_page())
        self.stack.addWidget(self.create_results_page())
        main_layout.addWidget(self.stack)

    # ---------- PAGES ----------
    def create_config_page(self) -> QFrame:
        page = QFrame()
        layout = QVBoxLayout(page)

        pdf_row = QHBoxLayout()
        self.pdf_label = QLabel("No PDF selected")
        open_btn = QPushButton("Open PDF")
        open_btn.clicked.connect(self.open_pdf)
        pdf_row.addWidget(self.pdf_label)
        pdf_row.addStretch()
        pdf_row.addWidget(open_btn)
        layout.addLayout(pdf_row)

        self.count_spin = QSpinBox()
        self.count_spin.setRange(1, 30)
        self.count_spin.valueChanged.connect(
            lambda v: self.controller.update_settings({"questionCount": v}))

        self.difficulty_combo = QComboBox()
        self.difficulty_combo.addItems([d.value for d in Difficulty])
        self.difficulty_combo.currentTextChanged.connect(
            lambda v: self.controller.update_settings({"difficulty": v}))

        self.model_combo = QComboBox()
        self.model_combo.addItems(list(ALLOWED_MODELS))
        self.model_combo.currentTextChanged.connect(
            lambda v: self.controller.update_settings({"model": v}))

        self.style_list = QListWidget()
        for style in QuestionStyle:
            item = QListWidgetItem(style.value)
            item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Unchecked)
            self.style_list.addItem(item)
        self.style_list.itemChanged.connect(self.on_style_changed)

        self.focus_input = QLineEdit()
        self.focus_input.setPlaceholderText("Focus topic (optional)")
        self.focus_input.textChanged.connect(
            lambda v: self.controller.update_settings({"focusTopic": v}))

        layout.addWidget(QLabel("Questions"))
        layout.addWidget(self.count_spin)
        layout.addWidget(QLabel("Difficulty"))
        layout.addWidget(self.difficulty_combo)
        layout.addWidget(QLabel("Model"))
        layout.addWidget(self.model_combo)
        layout.addWidget(QLabel("Question styles"))
        layout.addWidget(self.style_list)
        layout.addWidget(QLabel("Focus topic"))
        layout.addWidget(self.focus_input)

        btns = QHBoxLayout()
        self.demo_btn = QPushButton("Try Demo")
        self.generate_btn = QPushButton("Generate Quiz")
        self.generate_btn.setObjectName("PrimaryButton")
        self.demo_btn.clicked.connect(lambda: self.controller.start(demo=True))
        self.generate_btn.clicked.connect(lambda: self.controller.start(demo=False))
        btns.addStretch()
        btns.addWidget(self.demo_btn)
        btns.addWidget(self.generate_btn)
        layout.addLayout(btns)
        return page

    def create_generating_page(self) -> QFrame:
        page = QFrame()
        layout = QVBoxLayout(page)
        self.generating_label = QLabel()
        self.generating_label.setAlignment(Qt.AlignCenter)
        layout.addStretch()
        layout.addWidget(self.generating_label)
        layout.addStretch()
        return page

    def create_ready_page(self) -> QFrame:
        page = QFrame()
        layout = QVBoxLayout(page)
        self.ready_label = QLabel()
        self.ready_label.setAlignment(Qt.AlignCenter)
        begin_btn = QPushButton("Start Quiz")
        begin_btn.setObjectName("PrimaryButton")
        begin_btn.clicked.connect(self.controller.begin)
        layout.addStretch()
        layout.addWidget(self.ready_label)
        layout.addWidget(begin_btn, alignment=Qt.AlignCenter)
        layout.addStretch()
        return page

    def create_quiz_page(self) -> QFrame:
        page = QFrame()
        layout = QVBoxLayout(page)

        self.progress_label = QLabel()
        self.question_label = QLabel()
        self.question_label.setWordWrap(True)
        self.question_label.setTextFormat(Qt.RichText)
        layout.addWidget(self.progress_label)
        layout.addWidget(self.question_label)

        self.option_group = QButtonGroup(self)
        self.option_group.setExclusive(False)
        self.option_buttons = []
        for i in range(MAX_OPTIONS):
            btn = QRadioButton()
            self.option_group.addButton(btn, i)
            self.option_buttons.append(btn)
            layout.addWidget(btn)
        self.option_group.idClicked.connect(self.on_option_clicked)

        nav = QHBoxLayout()
        prev_btn = QPushButton("Previous")
        next_btn = QPushButton("Next")
        finish_btn = QPushButton("Finish")
        finish_btn.setObjectName("PrimaryButton")
        prev_btn.clicked.connect(self.controller.previous_question)
        next_btn.clicked.connect(self.controller.next_question)
        finish_btn.clicked.connect(self.controller.finish)
        nav.addWidget(prev_btn)
        nav.addWidget(next_btn)
        nav.addStretch()
        nav.addWidget(finish_btn)
        layout.addLayout(nav)

        # ===== ASSISTANT =====
        ask_row = QHBoxLayout()
        self.ask_input = QLineEdit()
        self.ask_input.setPlaceholderText("Ask the assistant about this question…")
        self.ask_btn = QPushButton("Ask")
        self.ask_btn.clicked.connect(self.ask_assistant)
        ask_row.addWidget(self.ask_input)
        ask_row.addWidget(self.ask_btn)
        layout.addLayout(ask_row)
        self.answer_view = QTextEdit()
        self.answer_view.setReadOnly(True)
        self.answer_view.setMaximumHeight(140)
        layout.addWidget(self.answer_view)
        return page

    def create_results_page(self) -> QFrame:
        page = QFrame()
        layout = QVBoxLayout(page)
        self.score_label = QLabel()
        self.score_label.setObjectName("Score")
        self.review_view = QTextEdit()
        self.review_view.setReadOnly(True)
        layout.addWidget(self.score_label)
        layout.addWidget(self.review_view)

        btns = QHBoxLayout()
        restart_btn = QPushButton("New PDF")
        regen_btn = QPushButton("New Questions")
        self.retry_btn = QPushButton("Retry Mistakes")
        self.retry_btn.setObjectName("PrimaryButton")
        restart_btn.clicked.connect(self.controller.restart)
        regen_btn.clicked.connect(self.controller.regenerate)
        self.retry_btn.clicked.connect(self.controller.retry_mistakes)
        btns.addWidget(restart_btn)
        btns.addWidget(regen_btn)
        btns.addStretch()
        btns.addWidget(self.retry_btn)
        layout.addLayout(btns)
        return page

    # ---------- SETTINGS ----------
    def load_settings_into_form(self):
        s = self.controller.settings
        widgets = (self.count_spin, self.difficulty_combo, self.model_combo,
                   self.style_list, self.focus_input)
        for w in widgets:
            w.blockSignals(True)
        self.count_spin.setValue(s.question_count)
        self.difficulty_combo.setCurrentText(s.difficulty.value)
        if s.model not in ALLOWED_MODELS:
            self.model_combo.addItem(s.model)
        self.model_combo.setCurrentText(s.model)
        for i in range(self.style_list.count()):
            item = self.style_list.item(i)
            checked = QuestionStyle(item.text()) in s.style
            item.setCheckState(Qt.Checked if checked else Qt.Unchecked)
        self.focus_input.setText(s.focus_topic)
        for w in widgets:
            w.blockSignals(False)

    def on_style_changed(self, _item):
        styles = [
            self.style_list.item(i).text()
            for i in range(self.style_list.count())
            if self.style_list.item(i).checkState() == Qt.Checked
        ]
        self.controller.update_settings({"style": styles})

    def open_settings(self):
        if SettingsDialog(self.service, self).exec():
            self.controller.set_language(load_config().get("language", "en"))

    # ---------- ACTIONS ----------
    def open_pdf(self):
        if self.controller.step != QuizStep.CONFIG:
            return
        path, _ = QFileDialog.getOpenFileName(self, "Select PDF", os.getcwd(), "PDF Files (*.pdf)")
        if path:
            self.controller.load_pdf(os.path.abspath(path))

    def on_option_clicked(self, index: int):
        q = self.controller.state.current_question
        if q is not None:
            self.controller.select_answer(q.id, index)

    def ask_assistant(self):
        text = self.ask_input.text().strip()
        q = self.controller.state.current_question
        if not text or self.assistant_thread is not None:
            return
        context = None
        if q is not None:
            context = q.text + "\n" + "\n".join(q.options)

        self.ask_btn.setEnabled(False)
        self.answer_view.setPlainText("Thinking…")
        self.assistant_worker = AssistantWorker(self.service, text, context)
        self.assistant_thread = QThread()
        self.assistant_worker.moveToThread(self.assistant_thread)
        self.assistant_thread.started.connect(self.assistant_worker.run)
        self.assistant_worker.finished.connect(self.on_assistant_done)
        self.assistant_worker.finished.connect(self.assistant_thread.quit)
        self.assistant_thread.finished.connect(self.on_assistant_thread_done)
        self.assistant_thread.start()

    def on_assistant_done(self, result: dict):
        if result["success"]:
            data = result["data"]
            lines = [data["answer"]]
            lines += [f"• {s}" for s in data["suggestions"]]
            self.answer_view.setPlainText("\n".join(lines))
        else:
            self.answer_view.setPlainText(translate(result["error"], self.language))

    def on_assistant_thread_done(self):
        self.assistant_worker.deleteLater()
        self.assistant_thread.deleteLater()
        self.assistant_worker = None
        self.assistant_thread = None
        self.ask_btn.setEnabled(True)

    def show_error(self, code: str):
        if not code:
            self.error_label.hide()
            return
        self.error_label.setText(translate(code, self.language))
        self.error_label.show()

    # ---------- RENDER ----------
    def refresh(self):
        c = self.controller
        self.stack.setCurrentIndex(PAGES.index(c.step))

        self.pdf_label.setText(c.pdf_name or "No PDF selected")
        self.generate_btn.setEnabled(bool(c.pdf_path))
        self.settings_btn.setEnabled(not c.is_generating)

        if c.step == QuizStep.GENERATING:
            self.generating_label.setText("Loading demo questions…" if c.demo else "Generating questions…")
        elif c.step == QuizStep.READY:
            self.ready_label.setText(f"{len(c.state.questions)} questions ready")
        elif c.step == QuizStep.QUIZ:
            self.render_question()
        elif c.step == QuizStep.RESULTS:
            self.render_results()

    def render_question(self):
        state = self.controller.state
        q = state.current_question
        if q is None:
            return
        self.progress_label.setText(f"Question {state.current_question_index + 1} / {len(state.questions)}")
        self.question_label.setText(q.text)
        chosen = state.user_answers.get(q.id)
        for i, btn in enumerate(self.option_buttons):
            if i < len(q.options):
                btn.setText(f"{option_letter(i)}) {q.options[i]}")
                btn.setChecked(i == chosen)
                btn.show()
            else:
                btn.setChecked(False)
                btn.hide()

    def render_results(self):
        state = self.controller.state
        stats = state.stats()
        self.score_label.setText(
            f"Score: {stats.correct}/{stats.total} ({stats.percentage}%) · "
            f"Wrong: {stats.wrong} · Empty: {stats.empty} · Time: {stats.elapsed}"
        )
        self.retry_btn.setEnabled(bool(state.failed_questions()))

        self.review_view.setHtml(review_html(state))

    def closeEvent(self, event):
        self.controller.shutdown()
        super().closeEvent(event)

    def apply_theme(self):
        self.setStyleSheet(f"""
            QWidget {{
                background-color: {BG};
                color: {TEXT};
                font-size: 14px;
            }}
            QLabel#Title {{
                font-size: 22px;
                font-weight: bold;
                color: {ACCENT};
            }}
            QLabel#ErrorLabel {{
                color: {ERROR};
            }}
            QLabel#Score {{
                font-size: 18px;
                color: {SUCCESS};
            }}
            QPushButton {{
                background-color: {PANEL};
                border: 1px solid {MUTED};
                border-radius: 6px;
                padding: 6px 14px;
            }}
            QPushButton#PrimaryButton {{
                background-color: {ACCENT};
                border: none;
            }}
            QPushButton:disabled {{
                color: {MUTED};
            }}
        """)


def main():
    setup_console_logging()
    setup_telemetry_log()
    app = QApplication(sys.argv)
    app.setStyle("Fusion")
    win = QuizWiseApp()
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
