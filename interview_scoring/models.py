"""
Data models for interview scoring.

Every record is built fresh for one scoring run and never mutated afterwards.
"""
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class QuestionType(str, Enum):
    """Answer kinds the engine knows how to score."""
    BEHAVIORAL = "behavioral"
    MCQ = "mcq"
    CODING = "coding"

    @classmethod
    def parse(cls, value: Any) -> Optional["QuestionType"]:
        """Map a stored type string (or alias) to a QuestionType, None if unknown."""
        if isinstance(value, QuestionType):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            return _TYPE_ALIASES.get(key)


_TYPE_ALIASES = {
    "multiple-choice": QuestionType.MCQ,
    "multiple_choice": QuestionType.MCQ,
    "multiplechoice": QuestionType.MCQ,
    "choice": QuestionType.MCQ,
    "code": QuestionType.CODING,
    "programming": QuestionType.CODING,
    "soft": QuestionType.BEHAVIORAL,
    "behaviour": QuestionType.BEHAVIORAL,
    "behavioural": QuestionType.BEHAVIORAL,
}

SECTION_ORDER = (QuestionType.BEHAVIORAL, QuestionType.MCQ, QuestionType.CODING)


class MatchQuality(str, Enum):
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"


class RawShape(str, Enum):
    """Encodings a stored submission can arrive in."""
    SEQUENCE = "sequence"
    INDEXED = "indexed"
    SINGLE = "single"
    UNKNOWN = "unknown"


class PipelineStage(str, Enum):
    RECEIVED = "received"
    NORMALIZED = "normalized"
    SCORED = "scored"
    AGGREGATED = "aggregated"
    FEEDBACK_ATTACHED = "feedback_attached"
    DONE = "done"


@dataclass(frozen=True)
class Question:
    """One question of an interview definition, addressed by position."""
    index: int
    text: str
    type: Optional[QuestionType] = None
    options: Tuple[str, ...] = ()
    correct_answer: Optional[str] = None
    option_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnswerRecord:
    """Canonical form of a single submitted answer."""
    question_index: int
    question_text: str
    type: QuestionType
    raw_answer_value: Any
    time_spent_seconds: float = 0.0
    language: Optional[str] = None
    # MCQ context
    display_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    display_correct_answer: Optional[str] = None
    options: Tuple[str, ...] = ()
    option_ids: Tuple[str, ...] = ()
    # coding verdict recorded upstream
    recorded_score: Optional[float] = None
    solved: Optional[bool] = None

    @property
    def is_answered(self) -> bool:
        return self.raw_answer_value is not None

    @property
    def answer_text(self) -> str:
        if self.raw_answer_value is None:
            return ""
        return str(self.raw_answer_value)


@dataclass(frozen=True)
class ScoredAnswer:
    record: AnswerRecord
    score: int
    match_quality: MatchQuality
    is_correct: Optional[bool] = None
    evidence: Tuple[str, ...] = ()
    category: Optional[str] = None

    @property
    def type(self) -> QuestionType:
        return self.record.type


@dataclass(frozen=True)
class SectionSummary:
    """Totals for one answer kind within an interview."""
    section: QuestionType
    total_questions: int = 0
    answered_questions: int = 0
    average_score: int = 0
    time_spent_seconds: float = 0.0
    correct_answers: int = 0
    average_response_length: int = 0


@dataclass(frozen=True)
class CompositeResult:
    overall_score: int = 0
    section_summaries: Dict[QuestionType, SectionSummary] = field(default_factory=dict)
    completion_rate: int = 0
    accuracy: int = 0
    total_questions: int = 0
    answered_questions: int = 0
    total_time_seconds: float = 0.0
    is_combo: bool = False

    def present_sections(self) -> Tuple[SectionSummary, ...]:
        """Section summaries with at least one question, in canonical order."""
        return tuple(
            self.section_summaries[t] for t in SECTION_ORDER
            if t in self.section_summaries and self.section_summaries[t].total_questions > 0
        )


@dataclass(frozen=True)
class SectionFeedback:
    section: str
    feedback: str
    recommendation: str


@dataclass(frozen=True)
class FeedbackReport:
    overall_performance: str
    strengths: Tuple[str, ...]
    improvements: Tuple[str, ...]
    section_feedback: Tuple[SectionFeedback, ...]
    recommended_role: str = ""
    source: str = "fallback"


@dataclass(frozen=True)
class AnalyticsRecord:
    """Unified analytics for one completed interview."""
    interview_id: str
    candidate_id: str
    candidate_name: str
    interview_type: Optional[str]
    answers: Tuple[ScoredAnswer, ...]
    composite: CompositeResult
    feedback: FeedbackReport
    stages: Tuple[PipelineStage, ...] = ()
    performance_level: str = "needs improvement"
    analytics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


def to_plain(value: Any) -> Any:
    """Recursively turn dataclasses, enums and tuples into JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        out = {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
        if isinstance(value, AnswerRecord):
            out["is_answered"] = value.is_answered
        return out
    if isinstance(value, dict):
        return {to_plain(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value
