"""
Client flow controller: the state machine behind the quiz screens.

CONFIG -> GENERATING -> READY -> QUIZ -> RESULTS, with restart and
regenerate leading back to CONFIG and retry_mistakes leading back to
GENERATING. Each generation request carries an id from a counter local to
the controller; results for anything but the latest id are dropped.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from PySide6.QtCore import QObject, QThread, QTimer, Signal

from quizwise.config import SETTINGS_DEBOUNCE_MS
from quizwise.extractor.pdf_info import read_pdf_info
from quizwise.flow.state import QuizState, QuizStep
from quizwise.flow.worker import GenerationWorker
from quizwise.quiz.cli_runner import terminate_all
from quizwise.quiz.models import GenerationMode, GenerationRequest, Question, QuizSettings
from quizwise.quiz.settings_store import sanitize_partial

logger = logging.getLogger(__name__)

Dispatcher = Callable[[int, GenerationRequest], None]


class QuizFlowController(QObject):
    step_changed = Signal(str)
    state_changed = Signal()
    error_changed = Signal(str)
    settings_changed = Signal()

    def __init__(
        self,
        service,
        language: str = "en",
        dispatcher: Optional[Dispatcher] = None,
        debounce_ms: int = SETTINGS_DEBOUNCE_MS,
        parent=None,
    ):
        super().__init__(parent)
        self.service = service
        self.language = language
        self.settings: QuizSettings = service.get_settings()

        self.step = QuizStep.CONFIG
        self.state = QuizState()
        self.error: Optional[str] = None
        self.pdf_path: Optional[str] = None
        self.pdf_name = ""
        self.demo = False

        # questions already shown this session, fed back as avoid topics
        self.history: List[Question] = []
        self._pending_history: Optional[List[Question]] = None
        self._active_mode: Optional[GenerationMode] = None

        self._request_id = 0
        self._dispatch = dispatcher or self._run_in_thread
        self._jobs: Dict[int, tuple] = {}

        self._pending_settings: Dict[str, Any] = {}
        self._save_timer = QTimer(self)
        self._save_timer.setSingleShot(True)
        self._save_timer.setInterval(debounce_ms)
        self._save_timer.timeout.connect(self.flush_settings)

    @property
    def request_id(self) -> int:
        return self._request_id

    @property
    def is_generating(self) -> bool:
        return self.step == QuizStep.GENERATING

    # -------------------- internals --------------------
    def _set_step(self, step: QuizStep):
        if step != self.step:
            self.step = step
            self.step_changed.emit(step.value)

    def _set_error(self, error: Optional[str]):
        self.error = error
        self.error_changed.emit(error or "")

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _issue(self, request: GenerationRequest, pending_history=None) -> int:
        request_id = self._next_request_id()
        self._active_mode = request.mode
        self._pending_history = pending_history
        self._set_error(None)
        self._set_step(QuizStep.GENERATING)
        logger.info("Dispatching %s request %d", request.mode.value, request_id)
        self._dispatch(request_id, request)
        return request_id

    def _run_in_thread(self, request_id: int, request: GenerationRequest):
        worker = GenerationWorker(self.service, request_id, request)
        thread = QThread()
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.finished.connect(self._job_done)

        self._jobs[request_id] = (thread, worker)
        thread.start()

    def _job_done(self, request_id: int, result: Dict[str, Any]):
        self._release(request_id)
        self.apply_result(request_id, result)

    def _release(self, request_id: int):
        job = self._jobs.pop(request_id, None)
        if job:
            thread, worker = job
            thread.quit()
            thread.wait()
            worker.deleteLater()
            thread.deleteLater()

    # -------------------- PDF --------------------
    def load_pdf(self, path: str):
        info = read_pdf_info(path)
        self.pdf_path = path
        self.pdf_name = info.display_name
        self.demo = False
        self._set_error(None)
        self.state_changed.emit()
        return info

    # -------------------- generation --------------------
    def start(self, demo: bool = False) -> Optional[int]:
        """
        CONFIG -> GENERATING. A start while generating supersedes the pending request.

        Returns the request id, or None when rejected.
        """
        if self.step not in (QuizStep.CONFIG, QuizStep.GENERATING):
            return None
        if not demo and not self.pdf_path:
            self._set_error("error_no_pdf_selected")
            return None

        self.demo = demo
        mode = GenerationMode.DEMO if demo else GenerationMode.INITIAL
        request = GenerationRequest.build(
            mode,
            self.pdf_path,
            self.settings,
            self.language,
            previous=[] if demo else self.history,
        )
        return self._issue(request)

    def apply_result(self, request_id: int, result: Dict[str, Any]) -> bool:
        """Apply a generation result; stale ids are ignored. Returns True if applied."""
        if request_id != self._request_id:
            logger.debug("Dropping superseded result %d (current %d)", request_id, self._request_id)
            return False

        pending, self._pending_history = self._pending_history, None
        if result.get("success"):
            if pending is not None:
                self.history = pending
            self.state = QuizState(questions=list(result.get("data") or []))
            self._set_error(None)
            self._set_step(QuizStep.READY)
        else:
            self._set_error(result.get("error") or "error_quiz_gen_failed")
            if self._active_mode == GenerationMode.REMEDIAL and self.state.is_finished:
                self._set_step(QuizStep.RESULTS)
            else:
                self._set_step(QuizStep.CONFIG)
        self.state_changed.emit()
        return True

    # -------------------- quiz --------------------
    def begin(self):
        if self.step != QuizStep.READY:
            return
        self.state.begin()
        self._set_step(QuizStep.QUIZ)
        self.state_changed.emit()

    def select_answer(self, question_id: str, option_index: int):
        if self.step != QuizStep.QUIZ:
            return
        if self.state.select_answer(question_id, option_index):
            self.state_changed.emit()

    def go_to(self, index: int):
        self.state.go_to(index)
        self.state_changed.emit()

    def next_question(self):
        self.state.next_question()
        self.state_changed.emit()

    def previous_question(self):
        self.state.previous_question()
        self.state_changed.emit()

    def finish(self):
        if self.step != QuizStep.QUIZ:
            return
        self.state.finish()
        self._set_step(QuizStep.RESULTS)
        self.state_changed.emit()

    # -------------------- results --------------------
    def restart(self):
        if self.step != QuizStep.RESULTS:
            return
        self._next_request_id()
        self._pending_history = None
        self.history = []
        self.state = QuizState()
        self.demo = False
        self._set_error(None)
        self._set_step(QuizStep.CONFIG)
        self.state_changed.emit()

    def regenerate(self):
        if self.step != QuizStep.RESULTS:
            return
        self._next_request_id()
        self._pending_history = None
        self.history = self.history + list(self.state.questions)
        self.state = QuizState()
        self._set_step(QuizStep.CONFIG)
        self.state_changed.emit()

    def retry_mistakes(self) -> Optional[int]:
        """RESULTS -> GENERATING(REMEDIAL) for the failed questions; no-op if none failed."""
        if self.step != QuizStep.RESULTS:
            return None
        failed = self.state.failed_questions()
        if not failed:
            return None

        seen = self.history + list(self.state.questions)
        mode = GenerationMode.DEMO if self.demo else GenerationMode.REMEDIAL
        request = GenerationRequest.build(
            mode,
            self.pdf_path,
            self.settings,
            self.language,
            failed=failed,
            previous=seen,
        )
        return self._issue(request, pending_history=seen)

    # -------------------- settings --------------------
    def update_settings(self, partial: Dict[str, Any]):
        """Apply edits immediately; persist them after the debounce delay."""
        clean = sanitize_partial(partial)
        if not clean:
            return
        self._pending_settings.update(clean)
        merged = self.settings.to_dict()
        merged.update(clean)
        self.settings = QuizSettings.from_dict(merged)
        self.settings_changed.emit()
        self._save_timer.start()

    def flush_settings(self) -> bool:
        self._save_timer.stop()
        if not self._pending_settings:
            return True
        partial, self._pending_settings = self._pending_settings, {}
        ok = self.service.save_settings(partial)
        if not ok:
            logger.error("Failed to persist quiz settings")
        return ok

    def set_language(self, language: str):
        self.language = language
        self.state_changed.emit()

    def shutdown(self, wait_ms: int = 2000):
        self.flush_settings()
        self._next_request_id()
        terminate_all()
        for thread, _worker in list(self._jobs.values()):
            thread.quit()
            thread.wait(wait_ms)
