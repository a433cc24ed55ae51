"""
Question set lookup.

Interviews of both storage generations keep their questions as a JSON list (often
serialized to text). Answers reference them by position only.
"""
import logging
from typing import Any, List, Mapping, Optional, Tuple

from .loaders import OPTION_LETTERS, relax_json_loads
from .models import Question, QuestionType

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("question", "Question", "questionText", "text", "problemDescription")
CORRECT_FIELDS = ("correctAnswer", "correctOption", "correct_answer")


def _text_of(item: Mapping) -> Optional[str]:
    for name in TEXT_FIELDS:
        value = item.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _options_of(item: Mapping) -> Tuple[Tuple[str, ...], Tuple[str, ...], Optional[int]]:
    """Option texts, option ids and the position flagged isCorrect (if any)."""
    raw = item.get("options")
    if not isinstance(raw, (list, tuple)):
        return (), (), None
    texts, ids, correct_at = [], [], None
    for i, opt in enumerate(raw):
        if isinstance(opt, Mapping):
            texts.append(str(opt.get("text", "")))
            ids.append(str(opt.get("id", "")))
            if opt.get("isCorrect") is True and correct_at is None:
                correct_at = i
        else:
            texts.append(str(opt))
            ids.append("")
    return tuple(texts), tuple(ids), correct_at


def _question_from(index: int, item: Any) -> Question:
    if isinstance(item, Question):
        return item if item.index == index else Question(
            index=index, text=item.text, type=item.type, options=item.options,
            correct_answer=item.correct_answer, option_ids=item.option_ids,
        )
    if isinstance(item, str):
        return Question(index=index, text=item.strip() or f"Question {index + 1}")
    if not isinstance(item, Mapping):
        return Question(index=index, text=f"Question {index + 1}")

    options, option_ids, correct_at = _options_of(item)
    qtype = QuestionType.parse(item.get("type"))
    # untyped questions leave the kind to the answer cues and the interview type
    if qtype is None and options:
        qtype = QuestionType.MCQ

    correct = None
    for name in CORRECT_FIELDS:
        value = item.get(name)
        if value is not None and str(value).strip():
            correct = str(value).strip()
            break
    if correct is None and correct_at is not None and correct_at < len(OPTION_LETTERS):
        correct = OPTION_LETTERS[correct_at]

    return Question(
        index=index,
        text=_text_of(item) or f"Question {index + 1}",
        type=qtype,
        options=options,
        correct_answer=correct,
        option_ids=option_ids,
    )


def parse_question_set(raw: Any) -> List[Question]:
    """
    Parse a stored question set into positional Questions.

    Accepts a list, its JSON text, or a mapping with a top-level `questions` list.
    Anything unusable gives an empty list.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = relax_json_loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("Unparseable question set: %s", e)
            return []
    if isinstance(raw, Mapping):
        raw = raw.get("questions")
    if not isinstance(raw, (list, tuple)):
        return []
    return [_question_from(i, item) for i, item in enumerate(raw)]


class QuestionResolver:
    """Looks up and parses the question set of an interview."""

    def __init__(self, store):
        self.store = store

    def resolve(self, interview_id: str) -> List[Question]:
        try:
            raw = self.store.get_questions(interview_id)
        except Exception as e:
            logger.warning("Question lookup failed for %s: %s", interview_id, e)
            return []
        questions = parse_question_set(raw)
        if not questions:
            logger.info("No question set for interview %s; using synthesized question text", interview_id)
        return questions
