"""
Composite scoring across sections.
"""
from typing import Dict, List, Optional, Sequence

from .evaluator import passes, round_half_up
from .models import SECTION_ORDER, CompositeResult, QuestionType, ScoredAnswer, SectionSummary
from .rubrics import COMBO_RUBRIC


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def _mean(values: Sequence[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def summarize_section(section: QuestionType, scored: Sequence[ScoredAnswer]) -> SectionSummary:
    answered = [s for s in scored if s.record.is_answered]
    return SectionSummary(
        section=section,
        total_questions=len(scored),
        answered_questions=len(answered),
        average_score=_mean([s.score for s in scored]),
        time_spent_seconds=sum(s.record.time_spent_seconds for s in scored),
        correct_answers=sum(1 for s in scored if passes(s)),
        average_response_length=_mean([len(s.record.answer_text) for s in scored]),
    )


def weighted_overall(summaries: Dict[QuestionType, SectionSummary]) -> int:
    """Fixed combo weights; a section without questions contributes 0."""
    total = 0.0
    for section, weight in COMBO_RUBRIC["weights"].items():
        summary = summaries.get(section)
        total += weight * (summary.average_score if summary else 0)
    return round_half_up(total)


def aggregate(scored_answers: Sequence[ScoredAnswer],
              interview_type: Optional[str] = None) -> CompositeResult:
    """
    Combine scored answers into section summaries and an overall score.

    Args:
        scored_answers: One ScoredAnswer per normalized record
        interview_type: "combo" forces the weighted formula; when omitted it is used
            whenever more than one section is present

    Returns:
        CompositeResult; all zero for an empty input
    """
    by_section: Dict[QuestionType, List[ScoredAnswer]] = {t: [] for t in SECTION_ORDER}
    for s in scored_answers:
        by_section[s.type].append(s)
    summaries = {t: summarize_section(t, by_section[t]) for t in SECTION_ORDER}
    present = [t for t in SECTION_ORDER if summaries[t].total_questions > 0]

    total = len(scored_answers)
    answered = sum(1 for s in scored_answers if s.record.is_answered)
    verdicts = [v for v in (passes(s) for s in scored_answers) if v is not None]

    if interview_type is not None:
        is_combo = str(interview_type).strip().lower() == "combo"
    else:
        is_combo = len(present) > 1

    if is_combo:
        overall = weighted_overall(summaries)
    elif len(present) == 1:
        overall = summaries[present[0]].average_score
    else:
        overall = _mean([s.score for s in scored_answers])

    return CompositeResult(
        overall_score=overall,
        section_summaries=summaries,
        completion_rate=_percent(answered, total),
        accuracy=_percent(sum(verdicts), len(verdicts)),
        total_questions=total,
        answered_questions=answered,
        total_time_seconds=sum(s.record.time_spent_seconds for s in scored_answers),
        is_combo=is_combo,
    )
