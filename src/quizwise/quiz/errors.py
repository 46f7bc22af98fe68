"""
Error taxonomy for quiz generation.

Every error carries a stable ``code`` that doubles as a localisation key
(see ``quizwise.quiz.messages``).
"""
from typing import Optional


class QuizError(Exception):
    code = "error_quiz_gen_failed"

    def __init__(self, code: Optional[str] = None, detail: str = ""):
        if code:
            self.code = code
        self.detail = detail
        super().__init__(self.code)


# -------------------- INPUT --------------------
class InputError(QuizError):
    """User-caused; recoverable by picking another file."""


class NoFileSelectedError(InputError):
    code = "error_no_pdf_selected"


class PathRejectedError(InputError):
    code = "error_restricted_location"


class NotAPdfError(InputError):
    code = "error_only_pdf_supported"


class FileTooLargeError(InputError):
    code = "error_file_too_large"


class EmptyFileError(InputError):
    code = "error_file_empty"


# -------------------- DISCOVERY --------------------
class CliNotFoundError(QuizError):
    code = "error_cli_not_found"


# -------------------- EXECUTION --------------------
class ExecutionError(QuizError):
    code = "error_cli_failed"


class CliTimeoutError(ExecutionError):
    code = "error_cli_timeout"


class ProcessFailedError(ExecutionError):
    code = "error_cli_failed"


class MalformedOutputError(ExecutionError):
    code = "error_ai_response_malformed"


# -------------------- SHAPE --------------------
class InvalidResponseFormatError(QuizError):
    code = "error_ai_response_invalid"


class InvalidInputError(QuizError):
    code = "error_invalid_input"
