import logging
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from quizwise.config import ASSISTANT_TIMEOUT_MS, GENERATION_TIMEOUT_MS, work_dir
from quizwise.quiz.cli_runner import ResponseType, output_file_path, run_cli
from quizwise.quiz.demo import demo_questions
from quizwise.quiz.errors import InvalidInputError, InvalidResponseFormatError, QuizError
from quizwise.quiz.models import AssistantReply, GenerationMode, GenerationRequest, parse_questions
from quizwise.quiz.prompt_builder import build_assistant_prompt, build_quiz_prompt
from quizwise.quiz.settings_store import SettingsStore
from quizwise.quiz.validator import staged_pdf

logger = logging.getLogger(__name__)


def failure(error: Exception, fallback: str) -> Dict[str, Any]:
    if isinstance(error, QuizError):
        return {"success": False, "error": error.code}
    return {"success": False, "error": fallback}


class QuizOrchestrator:
    """
    Turns a GenerationRequest into validated questions.

    Composes staging, prompt building and the CLI runner; callers always get
    a result dict back, never an exception.
    """

    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        work_dir_path: Optional[str] = None,
        runner: Callable[..., Any] = run_cli,
        timeout_ms: int = GENERATION_TIMEOUT_MS,
        assistant_timeout_ms: int = ASSISTANT_TIMEOUT_MS,
    ):
        self.settings_store = settings_store or SettingsStore()
        self._work_dir = work_dir_path
        self.runner = runner
        self.timeout_ms = timeout_ms
        self.assistant_timeout_ms = assistant_timeout_ms

    @property
    def work_dir(self) -> str:
        return self._work_dir or work_dir()

    # ---------- GENERATE ----------
    def generate(self, request: GenerationRequest) -> Dict[str, Any]:
        """
        Returns:
            {"success": True, "data": [Question, ...], "count": n}
            or {"success": False, "error": code}
        """
        try:
            if request.mode == GenerationMode.DEMO:
                questions = demo_questions(request.language)
            else:
                questions = self._generate(request)
        except Exception as e:
            if isinstance(e, QuizError):
                logger.error("Generation failed: %s", e.code)
            else:
                logger.exception("Unexpected generation failure")
            return failure(e, "error_quiz_gen_failed")

        logger.info("Generated %d question(s) in %s mode", len(questions), request.mode.value)
        return {"success": True, "data": questions, "count": len(questions)}

    def _generate(self, request: GenerationRequest):
        if request.mode == GenerationMode.REMEDIAL and not request.remedial_topics:
            raise InvalidInputError(detail="remedial request without topics")

        settings = request.settings or self.settings_store.read()
        wd = self.work_dir

        with staged_pdf(request.pdf_path, wd) as staged:
            output = output_file_path(wd)
            prompt = build_quiz_prompt(
                settings,
                request.mode,
                output,
                source_name=staged,
                language=request.language,
                remedial_topics=request.remedial_topics,
                avoid_topics=request.avoid_topics,
            )
            raw = self.runner(
                prompt,
                model=settings.model,
                working_dir=wd,
                output_target=output,
                response_type=ResponseType.JSON_ARRAY,
                timeout_ms=self.timeout_ms,
            )

        try:
            return parse_questions(raw)
        except ValidationError as e:
            logger.warning("Rejected generated questions: %s", e)
            raise InvalidResponseFormatError(detail=str(e))

    # ---------- ASSISTANT ----------
    def ask_assistant(self, question: str, context: Optional[str] = None) -> Dict[str, Any]:
        """
        Returns:
            {"success": True, "data": {"answer": str, "suggestions": [str]}}
            or {"success": False, "error": code}
        """
        try:
            if not isinstance(question, str) or not question.strip():
                raise InvalidInputError()

            settings = self.settings_store.read()
            wd = self.work_dir
            output = output_file_path(wd)
            prompt = build_assistant_prompt(
                question, output, context if isinstance(context, str) else None
            )
            raw = self.runner(
                prompt,
                model=settings.model,
                working_dir=wd,
                output_target=output,
                response_type=ResponseType.JSON_OBJECT,
                timeout_ms=self.assistant_timeout_ms,
            )
            try:
                reply = AssistantReply.model_validate(raw)
            except ValidationError as e:
                raise InvalidResponseFormatError(detail=str(e))
        except Exception as e:
            if isinstance(e, QuizError):
                logger.error("Assistant failed: %s", e.code)
            else:
                logger.exception("Unexpected assistant failure")
            return failure(e, "error_quiz_gen_failed")

        return {"success": True, "data": reply.model_dump()}
