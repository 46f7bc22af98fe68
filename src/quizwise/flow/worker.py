import logging

from PySide6.QtCore import QObject, Signal

from quizwise.quiz.models import GenerationRequest

logger = logging.getLogger(__name__)


# -------------------- WORKER --------------------
class GenerationWorker(QObject):
    """Runs one generation request off the GUI thread."""
    # (request id, result dict); object keeps Question instances unconverted
    finished = Signal(int, object)

    def __init__(self, service, request_id: int, request: GenerationRequest):
        super().__init__()
        self.service = service
        self.request_id = request_id
        self.request = request

    def run(self):
        try:
            result = self.service.generate(self.request)
        except Exception:
            # service reports failures as dicts; this only guards the thread
            logger.exception("Generation worker crashed (request %d)", self.request_id)
            result = {"success": False, "error": "error_quiz_gen_failed"}
        self.finished.emit(self.request_id, result)


class AssistantWorker(QObject):
    finished = Signal(object)

    def __init__(self, service, question: str, context=None):
        super().__init__()
        self.service = service
        self.question = question
        self.context = context

    def run(self):
        try:
            result = self.service.ask_assistant(self.question, self.context)
        except Exception:
            logger.exception("Assistant worker crashed")
            result = {"success": False, "error": "error_quiz_gen_failed"}
        self.finished.emit(result)
