"""
Answer normalization.

Stored submissions come in several encodings (a list of answers, a mapping keyed by
stringified index, a lone answer object, or the storage wrapper holding either).
`normalize` turns all of them into an ordered list of AnswerRecord, one per entry,
backfilling question context from the interview's question set by position.
"""
import json
import logging
import re
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from .models import AnswerRecord, Question, QuestionType, RawShape

logger = logging.getLogger(__name__)

ANSWER_FIELDS = ("answer", "userAnswer", "selectedOption", "response", "code")
QUESTION_TEXT_FIELDS = ("question", "questionText", "problemDescription")
CORRECT_ANSWER_FIELDS = ("correctAnswer", "correctOption")
TIME_FIELDS = ("timeSpent", "timeTaken")
LANGUAGE_FIELDS = ("language", "programmingLanguage")
SCORE_FIELDS = ("score", "rawScore")
SOLVED_FIELDS = ("solved", "passed", "isCorrect")

OPTION_LETTERS = "abcde"
_TOKEN_PREFIX = re.compile(r"^\s*(\d+|[a-eA-E])\.\s+")
_TRAILING_COMMA = re.compile(r",\s*([\]\}])")


def relax_json_loads(text: Any) -> Any:
    """json.loads that tolerates trailing commas before a closing bracket."""
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return json.loads(_TRAILING_COMMA.sub(r"\1", text))


# -----------------------------------------------------------------------------
# shape detection
# -----------------------------------------------------------------------------

def _int_key(key: Any) -> Optional[int]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and re.fullmatch(r"\s*-?\d+\s*", key):
        return int(key)
    return None


def _looks_like_single_answer(data: Mapping) -> bool:
    return any(f in data for f in ANSWER_FIELDS)


def _decode(raw: Any) -> Any:
    """Parse serialized text and unwrap the `{"answers": ...}` storage wrapper."""
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = relax_json_loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("Unparseable submission payload: %s", e)
            return None
    if isinstance(raw, Mapping) and isinstance(raw.get("answers"), (list, tuple, Mapping)):
        return raw["answers"]
    return raw


def detect_shape(raw: Any) -> RawShape:
    """Classify a submission payload before any field is read."""
    return _shape_of(_decode(raw))


def _shape_of(data: Any) -> RawShape:
    if isinstance(data, (list, tuple)):
        return RawShape.SEQUENCE
    if isinstance(data, Mapping):
        if _looks_like_single_answer(data):
            return RawShape.SINGLE
        if any(_int_key(k) is not None for k in data):
            return RawShape.INDEXED
    return RawShape.UNKNOWN


def _entries(data: Any, shape: RawShape) -> List[Tuple[int, Any]]:
    if shape is RawShape.SEQUENCE:
        return list(enumerate(data))
    if shape is RawShape.INDEXED:
        keyed = [(_int_key(k), v) for k, v in data.items()]
        return sorted(((i, v) for i, v in keyed if i is not None), key=lambda kv: kv[0])
    if shape is RawShape.SINGLE:
        return [(0, data)]
    return []


# -----------------------------------------------------------------------------
# field resolution
# -----------------------------------------------------------------------------

def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _first_field(entry: Mapping, names: Sequence[str]) -> Any:
    for name in names:
        value = entry.get(name)
        if _present(value):
            return value
    return None


def _first_of(resolvers: Sequence[Callable[[], Any]]) -> Any:
    """Return the first resolver result that is present."""
    for resolve in resolvers:
        value = resolve()
        if _present(value):
            return value
    return None


def _question_at(questions: Sequence[Question], index: int) -> Optional[Question]:
    if 0 <= index < len(questions):
        return questions[index]
    return None


def _cue_type(entry: Mapping) -> Optional[QuestionType]:
    if _present(entry.get("code")):
        return QuestionType.CODING
    if _present(entry.get("selectedOption")):
        return QuestionType.MCQ
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false", "yes", "no"):
        return value.strip().lower() in ("true", "yes")
    if isinstance(value, (int, float)):
        return bool(value)
    return None


# -----------------------------------------------------------------------------
# multiple-choice rendering
# -----------------------------------------------------------------------------

def answer_token(value: Any) -> str:
    """Strip a rendered `"<token>. <text>"` value back to its token, lowercased."""
    text = str(value).strip()
    match = _TOKEN_PREFIX.match(text)
    if match:
        return match.group(1).lower()
    return text.lower()


def resolve_option_index(value: Any, options: Sequence[str],
                         option_ids: Sequence[str] = ()) -> Optional[int]:
    """Position of the option a stored token refers to, None if it can't be resolved."""
    if value is None or not options:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value - 1 if 1 <= value <= len(options) else None
    text = str(value).strip()
    token = answer_token(text)
    if token.isdigit():
        n = int(token)
        return n - 1 if 1 <= n <= len(options) else None
    if len(token) == 1 and token in OPTION_LETTERS:
        i = OPTION_LETTERS.index(token)
        return i if i < len(options) else None
    lowered = text.lower()
    for i, option_id in enumerate(option_ids):
        if option_id and option_id.lower() == lowered:
            return i
    for i, option in enumerate(options):
        if option.strip().lower() == lowered:
            return i
    return None


def render_choice(value: Any, options: Sequence[str]) -> Optional[str]:
    """Render a 1-based number or a letter a-e as `"<token>. <option text>"`.

    Anything that does not resolve is returned as the raw token.
    """
    if value is None:
        return None
    token = str(value).strip()
    if not options or _TOKEN_PREFIX.match(token):
        return token
    index = None
    if isinstance(value, int) and not isinstance(value, bool):
        index = value - 1
    elif token.isdigit():
        index = int(token) - 1
    elif len(token) == 1 and token.lower() in OPTION_LETTERS:
        index = OPTION_LETTERS.index(token.lower())
    if index is None or not 0 <= index < len(options):
        return token
    return f"{token}. {options[index]}"


# -----------------------------------------------------------------------------
# normalization
# -----------------------------------------------------------------------------

def _normalize_entry(position: int, entry: Any, questions: Sequence[Question],
                     default_type: Optional[QuestionType]) -> AnswerRecord:
    if not isinstance(entry, Mapping):
        # bare string / number entries are the answer itself
        entry = {"answer": entry}

    explicit = _int_key(entry.get("questionIndex"))
    index = explicit if explicit is not None and explicit >= 0 else position
    question = _question_at(questions, index)

    value = _first_field(entry, ANSWER_FIELDS)
    text = _first_of([
        lambda: _first_field(entry, QUESTION_TEXT_FIELDS),
        lambda: question.text if question else None,
        lambda: f"Question {index + 1}",
    ])
    qtype = _first_of([
        lambda: QuestionType.parse(entry.get("type")),
        lambda: question.type if question else None,
        lambda: _cue_type(entry),
        lambda: default_type,
        lambda: QuestionType.BEHAVIORAL,
    ])

    time_spent = _as_number(_first_field(entry, TIME_FIELDS)) or 0.0
    language = _first_field(entry, LANGUAGE_FIELDS)

    options: Tuple[str, ...] = question.options if question else ()
    option_ids: Tuple[str, ...] = question.option_ids if question else ()
    correct = _first_of([
        lambda: _first_field(entry, CORRECT_ANSWER_FIELDS),
        lambda: question.correct_answer if question else None,
    ])

    display_answer = display_correct = None
    if qtype is QuestionType.MCQ:
        display_answer = render_choice(value, options)
        display_correct = render_choice(correct, options)

    recorded_score = solved = None
    if qtype is QuestionType.CODING:
        recorded_score = _as_number(_first_field(entry, SCORE_FIELDS))
        solved = _as_bool(_first_field(entry, SOLVED_FIELDS))

    return AnswerRecord(
        question_index=index,
        question_text=str(text),
        type=qtype,
        raw_answer_value=value,
        time_spent_seconds=max(0.0, time_spent),
        language=str(language) if language is not None else None,
        display_answer=display_answer,
        correct_answer=str(correct) if correct is not None else None,
        display_correct_answer=display_correct,
        options=options,
        option_ids=option_ids,
        recorded_score=recorded_score,
        solved=solved,
    )


def normalize(raw: Any, questions: Optional[Sequence[Question]] = None,
              default_type: Any = None) -> List[AnswerRecord]:
    """
    Normalize a stored submission into AnswerRecords ordered by question index.

    Args:
        raw: Submission payload in any supported shape, or its JSON text
        questions: Interview question set, looked up by position
        default_type: Type used when neither the entry nor its question carries one

    Returns:
        One AnswerRecord per entry; empty when the payload is unusable
    """
    questions = list(questions or [])
    data = _decode(raw)
    shape = _shape_of(data)
    if shape is RawShape.UNKNOWN:
        if data is not None:
            logger.warning("Unrecognized submission shape: %s", type(data).__name__)
        return []

    fallback_type = QuestionType.parse(default_type)
    records = [_normalize_entry(i, entry, questions, fallback_type)
               for i, entry in _entries(data, shape)]
    logger.debug("Normalized %d %s entries", len(records), shape.value)
    return records
