"""
Validation and staging of user-selected PDFs.

The selected path is checked once and then copied under a random name into
the process-owned working directory; only the staged copy travels further.
"""
import logging
import os
import secrets
import shutil
import stat
from contextlib import contextmanager
from typing import Iterator

from quizwise.quiz.errors import (
    EmptyFileError,
    FileTooLargeError,
    InputError,
    NoFileSelectedError,
    NotAPdfError,
    PathRejectedError,
)

logger = logging.getLogger(__name__)

MAX_PDF_SIZE_BYTES = 50 * 1024 * 1024  # 50 MB
ALLOWED_EXTENSIONS = (".pdf",)
PDF_MAGIC = b"%PDF-"


def validate_pdf(path) -> None:
    """
    Check that ``path`` points at a plausible PDF.

    Raises:
        InputError: subclass describing why the file is rejected
    """
    if not path or not isinstance(path, str):
        raise NoFileSelectedError()

    if "\0" in path:
        raise PathRejectedError(detail="null byte in path")

    if not os.path.isabs(path):
        raise PathRejectedError(detail="path is not absolute")

    ext = os.path.splitext(path)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise NotAPdfError()

    try:
        st = os.stat(path)
    except OSError:
        raise InputError("error_file_validation_failed")

    if not stat.S_ISREG(st.st_mode):
        raise InputError("error_not_valid_file")

    if st.st_size > MAX_PDF_SIZE_BYTES:
        raise FileTooLargeError()

    if st.st_size == 0:
        raise EmptyFileError()

    try:
        with open(path, "rb") as f:
            header = f.read(len(PDF_MAGIC))
    except OSError:
        raise InputError("error_file_validation_failed")

    if header != PDF_MAGIC:
        raise NotAPdfError("error_invalid_pdf")


def secure_temp_name(prefix: str, extension: str) -> str:
    return f"{prefix}_{secrets.token_hex(16)}.{extension}"


def stage_pdf(path: str, work_dir: str) -> str:
    """Validate ``path`` and copy it into ``work_dir`` under a random name."""
    validate_pdf(path)
    os.makedirs(work_dir, exist_ok=True)
    staged = os.path.join(work_dir, secure_temp_name("context", "pdf"))
    try:
        shutil.copyfile(path, staged)
    except OSError:
        remove_quietly(staged)
        raise InputError("error_file_validation_failed")
    logger.debug("Staged PDF as %s", os.path.basename(staged))
    return staged


def remove_quietly(path: str) -> None:
    """Delete a temp file; failures are logged, never raised."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temp file %s: %s", os.path.basename(path), e)


@contextmanager
def staged_pdf(path: str, work_dir: str) -> Iterator[str]:
    """Yield a staged copy of ``path`` that is removed however the block exits."""
    staged = stage_pdf(path, work_dir)
    try:
        yield staged
    finally:
        remove_quietly(staged)
