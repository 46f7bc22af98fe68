import argparse
import json
import os
import sys

from quizwise.config import load_config
from quizwise.logging_setup import setup_console_logging, setup_telemetry_log
from quizwise.quiz.messages import translate
from quizwise.quiz.models import (
    DEMO_SENTINEL,
    LANGUAGES,
    GenerationMode,
    GenerationRequest,
    clamp_question_count,
)
from quizwise.quiz.service import QuizService


def run(source: str, language: str = "en", count=None, service: QuizService = None) -> list:
    """Generate a quiz for a PDF (or the demo set) and return it as plain dicts."""
    service = service or QuizService()
    settings = service.get_settings()
    if count is not None:
        settings = settings.with_changes(question_count=clamp_question_count(count))

    if source == DEMO_SENTINEL:
        mode, path = GenerationMode.DEMO, None
    else:
        mode, path = GenerationMode.INITIAL, os.path.abspath(source)

    request = GenerationRequest.build(mode, path, settings, language)
    result = service.generate(request)
    if not result["success"]:
        raise RuntimeError(translate(result["error"], language))
    return [q.to_dict() for q in result["data"]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quizwise", description="Generate a multiple-choice quiz from a PDF.")
    parser.add_argument("source", help=f"path to a PDF, or {DEMO_SENTINEL} for the offline sample set")
    parser.add_argument("--lang", choices=LANGUAGES, default=None)
    parser.add_argument("--count", type=int, default=None)
    parser.add_argument("--out", default="quizwise_quiz.json")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_console_logging()
    setup_telemetry_log()

    language = args.lang or load_config().get("language", "en")
    try:
        questions = run(args.source, language, args.count)
    except RuntimeError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(questions, f, indent=2, ensure_ascii=False)

    print(f"✅ {len(questions)} questions saved to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
