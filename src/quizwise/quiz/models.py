"""
Core data models for quiz generation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from quizwise.cleaner.text_cleaner import clean_excerpt

DEMO_SENTINEL = "DEMO"

MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 30

MIN_OPTIONS = 2
MAX_OPTIONS = 8

REMEDIAL_EXCERPT_CHARS = 100
AVOID_EXCERPT_CHARS = 100
AVOID_HISTORY_LIMIT = 25
AVOID_MIN_CHARS = 10


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class QuestionStyle(str, Enum):
    CLASSIC = "CLASSIC"
    NEGATIVE = "NEGATIVE"
    STATEMENT = "STATEMENT"
    ORDERING = "ORDERING"
    FILL_BLANK = "FILL_BLANK"
    REASONING = "REASONING"
    MATCHING = "MATCHING"
    MIXED = "MIXED"  # wildcard: full exam distribution


class GenerationMode(str, Enum):
    INITIAL = "INITIAL"
    REMEDIAL = "REMEDIAL"
    DEMO = "DEMO"


ALLOWED_MODELS = (
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-3-flash-preview",
    "gemini-3-pro-preview",
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

LANGUAGES = ("tr", "en")


def normalize_model(model: Any) -> str:
    """Map a model identifier onto the whitelist, defaulting to the first entry."""
    if not isinstance(model, str):
        return ALLOWED_MODELS[0]
    clean = model.strip().lower()
    for allowed in ALLOWED_MODELS:
        if allowed == clean:
            return allowed
    return ALLOWED_MODELS[0]


def clamp_question_count(value: Any, default: int = 10) -> int:
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return min(max(count, MIN_QUESTION_COUNT), MAX_QUESTION_COUNT)


def parse_styles(raw: Any) -> tuple:
    """Return the recognised style tags in order, without duplicates."""
    if not isinstance(raw, (list, tuple)):
        return ()
    styles = []
    for item in raw:
        try:
            tag = QuestionStyle(item)
        except (ValueError, TypeError):
            continue
        if tag not in styles:
            styles.append(tag)
    return tuple(styles)


def _as_count(value: Any) -> Any:
    # numbers and numeric strings; booleans are not counts
    if isinstance(value, bool):
        raise ValueError("a boolean is not a question count")
    if isinstance(value, (int, float, str)):
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            raise ValueError(f"not a question count: {value!r}")
    return value


QuestionCount = Annotated[
    int,
    BeforeValidator(_as_count),
    AfterValidator(lambda n: min(max(n, MIN_QUESTION_COUNT), MAX_QUESTION_COUNT)),
]
ModelName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Styles = Annotated[Tuple[QuestionStyle, ...], BeforeValidator(parse_styles), Field(min_length=1)]


class QuizSettings(BaseModel):
    """
    User-tunable generation parameters, persisted as one record.

    Stored records are read field by field: a missing or mistyped field
    takes its default instead of discarding the whole record.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question_count: QuestionCount = Field(10, alias="questionCount")
    difficulty: Difficulty = Difficulty.MEDIUM
    model: ModelName = ALLOWED_MODELS[0]
    style: Styles = (QuestionStyle.MIXED,)
    focus_topic: str = Field("", alias="focusTopic")

    @field_validator("*", mode="wrap")
    @classmethod
    def default_on_error(cls, value, handler, info: ValidationInfo):
        try:
            return handler(value)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Any) -> "QuizSettings":
        return cls.model_validate(data if isinstance(data, dict) else {})

    def with_changes(self, **changes) -> "QuizSettings":
        return self.model_copy(update=changes)


class SettingsUpdate(BaseModel):
    """A partial settings change; fields that fail validation are left out."""
    model_config = ConfigDict(populate_by_name=True)

    question_count: Optional[QuestionCount] = Field(None, alias="questionCount")
    difficulty: Optional[Difficulty] = None
    model: Optional[ModelName] = None
    style: Optional[Styles] = None
    focus_topic: Optional[str] = Field(None, alias="focusTopic")

    @field_validator("*", mode="wrap")
    @classmethod
    def drop_on_error(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Question(BaseModel):
    """A single generated multiple-choice question."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    text: str
    options: Tuple[StrictStr, ...] = Field(min_length=MIN_OPTIONS, max_length=MAX_OPTIONS)
    correct_answer_index: StrictInt = Field(alias="correctAnswerIndex")
    explanation: str = ""
    source_quote: Optional[str] = Field(None, alias="sourceQuote")

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value):
        # anything that is not a usable id gets one assigned by position
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value if isinstance(value, str) else ""

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question has no text")
        return value

    @field_validator("source_quote", mode="wrap")
    @classmethod
    def drop_bad_quote(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None

    @model_validator(mode="after")
    def answer_in_range(self) -> "Question":
        if not 0 <= self.correct_answer_index < len(self.options):
            raise ValueError("correctAnswerIndex out of range")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AssistantReply(BaseModel):
    answer: str
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("answer")
    @classmethod
    def answer_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("empty answer")
        return value

    @field_validator("suggestions", mode="before")
    @classmethod
    def usable_suggestions(cls, value):
        if not isinstance(value, list):
            return []
        return [s for s in value if isinstance(s, str) and s.strip()]


QuestionList = TypeAdapter(Annotated[List[Question], Field(min_length=1)])


def parse_questions(payload: Any) -> List[Question]:
    """
    Turn the generator's JSON array into questions.

    Ids are made unique within the set so answers cannot collide.

    Raises:
        ValidationError: if the payload is not a non-empty array of questions
    """
    questions = QuestionList.validate_python(payload)

    seen = set()
    for i, q in enumerate(questions):
        if not q.id:
            q = q.model_copy(update={"id": f"q{i + 1}"})
        if q.id in seen:
            q = q.model_copy(update={"id": f"{q.id}_{i + 1}"})
        seen.add(q.id)
        questions[i] = q
    return questions


@dataclass
class GenerationRequest:
    mode: GenerationMode
    pdf_path: str
    settings: QuizSettings
    language: str = "en"
    remedial_topics: List[str] = field(default_factory=list)
    avoid_topics: List[str] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        if self.mode == GenerationMode.REMEDIAL:
            return len(self.remedial_topics)
        return self.settings.question_count

    @classmethod
    def build(
        cls,
        mode: GenerationMode,
        pdf_path: Optional[str],
        settings: QuizSettings,
        language: str = "en",
        failed: Optional[List[Question]] = None,
        previous: Optional[List[Question]] = None,
    ) -> "GenerationRequest":
        """Assemble a request, deriving remedial and avoid topics from prior questions."""
        source = DEMO_SENTINEL if mode == GenerationMode.DEMO else (pdf_path or "")

        remedial = []
        if mode == GenerationMode.REMEDIAL and failed:
            remedial = [clean_excerpt(q.text, REMEDIAL_EXCERPT_CHARS) for q in failed]

        avoid = []
        if previous:
            for q in previous[-AVOID_HISTORY_LIMIT:]:
                excerpt = clean_excerpt(q.text, AVOID_EXCERPT_CHARS)
                if len(excerpt) > AVOID_MIN_CHARS:
                    avoid.append(excerpt)

        return cls(
            mode=mode,
            pdf_path=source,
            settings=settings,
            language=language if language in LANGUAGES else "en",
            remedial_topics=remedial,
            avoid_topics=avoid,
        )
