"""Normalization and scoring of completed interview submissions."""
from .aggregate import aggregate
from .errors import AuthorizationError, FeedbackParseError, PersistenceError, ScoringError
from .evaluator import score_answer, score_answers
from .feedback import fallback_report, synthesize
from .loaders import detect_shape, normalize
from .models import (AnalyticsRecord, AnswerRecord, CompositeResult, FeedbackReport,
                     MatchQuality, Question, QuestionType, RawShape, ScoredAnswer,
                     SectionFeedback, SectionSummary)
from .questions import QuestionResolver, parse_question_set
from .runner import ResultAssembler, run_full_pass, summarize_batch

__version__ = "0.1.0"
