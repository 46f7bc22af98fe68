"""
Quiz session state owned by the flow controller.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from quizwise.quiz.models import Question


class QuizStep(str, Enum):
    CONFIG = "CONFIG"
    GENERATING = "GENERATING"
    READY = "READY"
    QUIZ = "QUIZ"
    RESULTS = "RESULTS"


def format_elapsed(start: Optional[float], end: Optional[float]) -> str:
    if start is None or end is None:
        return "--:--"
    seconds = max(0, int(end - start))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass
class QuizStats:
    total: int
    correct: int
    wrong: int
    empty: int
    percentage: int
    elapsed: str


@dataclass
class QuizState:
    questions: List[Question] = field(default_factory=list)
    user_answers: Dict[str, int] = field(default_factory=dict)
    current_question_index: int = 0
    score: int = 0
    is_finished: bool = False
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_question_index]

    def begin(self, now: Optional[float] = None):
        self.start_time = time.time() if now is None else now

    def select_answer(self, question_id: str, option_index: int) -> bool:
        """Record a choice; picking the already selected option clears it."""
        if self.is_finished:
            return False
        if self.user_answers.get(question_id) == option_index:
            del self.user_answers[question_id]
        else:
            self.user_answers[question_id] = option_index
        return True

    # ---------- navigation ----------
    def go_to(self, index: int) -> int:
        if self.questions:
            self.current_question_index = min(max(index, 0), len(self.questions) - 1)
        return self.current_question_index

    def next_question(self) -> int:
        return self.go_to(self.current_question_index + 1)

    def previous_question(self) -> int:
        return self.go_to(self.current_question_index - 1)

    # ---------- scoring ----------
    def is_correct(self, question: Question) -> bool:
        answer = self.user_answers.get(question.id)
        return answer is not None and answer == question.correct_answer_index

    def finish(self, now: Optional[float] = None):
        # always recomputed from the answers, never kept incrementally
        self.score = sum(1 for q in self.questions if self.is_correct(q))
        self.end_time = time.time() if now is None else now
        self.is_finished = True

    def failed_questions(self) -> List[Question]:
        """Unanswered or incorrectly answered questions, in quiz order."""
        return [q for q in self.questions if not self.is_correct(q)]

    def stats(self) -> QuizStats:
        total = len(self.questions)
        correct = sum(1 for q in self.questions if self.is_correct(q))
        empty = sum(1 for q in self.questions if q.id not in self.user_answers)
        return QuizStats(
            total=total,
            correct=correct,
            wrong=total - correct - empty,
            empty=empty,
            percentage=round(correct / total * 100) if total else 0,
            elapsed=format_elapsed(self.start_time, self.end_time),
        )
