"""
Per-kind answer scoring.

Each scorer is a pure function AnswerRecord -> ScoredAnswer on a 0-100 scale.
Coding answers are not judged here; the verdict recorded upstream is consumed as is.
"""
import math
import re
from typing import Callable, Dict, List, Optional, Sequence

from .loaders import answer_token, resolve_option_index
from .models import AnswerRecord, MatchQuality, QuestionType, ScoredAnswer
from .rubrics import BEHAVIORAL_RUBRIC, CODING_RUBRIC, MATCH_QUALITY_THRESHOLDS


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def match_quality(score: float) -> MatchQuality:
    for threshold, label in MATCH_QUALITY_THRESHOLDS:
        if score >= threshold:
            return MatchQuality(label)
    return MatchQuality.POOR


def categorize_question(question: str) -> str:
    lowered = (question or "").lower()
    for category, cues in BEHAVIORAL_RUBRIC["categories"]:
        if any(cue in lowered for cue in cues):
            return category
    return "general"


def extract_keywords(answer: str) -> List[str]:
    lowered = (answer or "").lower()
    return [k for k in BEHAVIORAL_RUBRIC["keywords"] if k in lowered]


def detect_approach(code: str) -> str:
    lowered = (code or "").lower()
    for label, cues in CODING_RUBRIC["approaches"]:
        if any(re.search(rf"\b{re.escape(cue)}\b", lowered) for cue in cues):
            return label
    return "Standard"


def _unanswered(record: AnswerRecord) -> ScoredAnswer:
    is_correct = None if record.type is QuestionType.BEHAVIORAL else False
    return ScoredAnswer(
        record=record,
        score=0,
        match_quality=MatchQuality.POOR,
        is_correct=is_correct,
        evidence=("unanswered",),
        category=categorize_question(record.question_text)
        if record.type is QuestionType.BEHAVIORAL else None,
    )


def score_behavioral(record: AnswerRecord) -> ScoredAnswer:
    """Length, example and structure heuristics rewarding STAR-style answers."""
    if not record.is_answered:
        return _unanswered(record)
    text = record.answer_text
    rubric = BEHAVIORAL_RUBRIC

    examples = sorted({m.group(1).lower() for m in rubric["example_markers"].finditer(text)})
    structure = sorted({m.group(1).lower() for m in rubric["structure_markers"].finditer(text)})

    score = min(rubric["length_cap"], len(text) / 10)
    if examples:
        score += rubric["example_bonus"]
    if structure:
        score += rubric["structure_bonus"]
    score = min(100, round_half_up(score))

    evidence = [f"length: {len(text)} chars"]
    evidence += [f"example marker: {m}" for m in examples]
    evidence += [f"structure marker: {m}" for m in structure]
    evidence += [f"keyword: {k}" for k in extract_keywords(text)]

    return ScoredAnswer(
        record=record,
        score=score,
        match_quality=match_quality(score),
        evidence=tuple(evidence),
        category=categorize_question(record.question_text),
    )


def _tokens_match(answer, correct, options: Sequence[str], option_ids: Sequence[str]) -> bool:
    if answer_token(answer) == answer_token(correct):
        return True
    left = resolve_option_index(answer, options, option_ids)
    right = resolve_option_index(correct, options, option_ids)
    return left is not None and left == right


def score_mcq(record: AnswerRecord) -> ScoredAnswer:
    """All-or-nothing match of the selected token against the correct one."""
    if not record.is_answered:
        return _unanswered(record)
    selected = record.display_answer or record.answer_text
    evidence = [f"selected: {selected}"]

    correct = record.correct_answer
    if correct is None:
        evidence.append("no correct answer on record")
        is_correct = False
    else:
        evidence.append(f"correct: {record.display_correct_answer or correct}")
        is_correct = _tokens_match(record.raw_answer_value, correct, record.options, record.option_ids)

    score = 100 if is_correct else 0
    evidence.append("correct" if is_correct else "incorrect")
    return ScoredAnswer(
        record=record,
        score=score,
        match_quality=match_quality(score),
        is_correct=is_correct,
        evidence=tuple(evidence),
    )


def score_coding(record: AnswerRecord) -> ScoredAnswer:
    """Use the recorded judge score, else 100/0 from the solved flag."""
    if not record.is_answered:
        return _unanswered(record)
    evidence: List[str] = []
    if record.recorded_score is not None:
        score = max(0, min(100, round_half_up(record.recorded_score)))
        evidence.append(f"recorded score: {score}")
    else:
        score = 100 if record.solved else 0
        evidence.append("marked solved" if record.solved else "no recorded score")

    if record.language:
        evidence.append(f"language: {record.language}")
    evidence.append(f"approach: {detect_approach(record.answer_text)}")

    return ScoredAnswer(
        record=record,
        score=score,
        match_quality=match_quality(score),
        is_correct=score >= CODING_RUBRIC["pass_score"],
        evidence=tuple(evidence),
    )


SCORERS: Dict[QuestionType, Callable[[AnswerRecord], ScoredAnswer]] = {
    QuestionType.BEHAVIORAL: score_behavioral,
    QuestionType.MCQ: score_mcq,
    QuestionType.CODING: score_coding,
}


def score_answer(record: AnswerRecord) -> ScoredAnswer:
    return SCORERS[record.type](record)


def score_answers(records: Sequence[AnswerRecord]) -> List[ScoredAnswer]:
    return [score_answer(r) for r in records]


def passes(scored: ScoredAnswer) -> Optional[bool]:
    """Accuracy verdict per kind; None for kinds excluded from accuracy."""
    if scored.type is QuestionType.BEHAVIORAL:
        return None
    return bool(scored.is_correct)
