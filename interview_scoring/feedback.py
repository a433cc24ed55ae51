"""
Narrative feedback for a scored interview.

The generator is untrusted: whatever it returns (or raises) is turned into a
complete FeedbackReport here, falling back to text derived from the metrics alone.
"""
import logging
import re
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .errors import FeedbackParseError
from .loaders import relax_json_loads
from .models import CompositeResult, FeedbackReport, QuestionType, ScoredAnswer, SectionFeedback
from .rubrics import performance_tier, recommended_role

logger = logging.getLogger(__name__)

SECTION_LABELS = {
    QuestionType.BEHAVIORAL: "Behavioral",
    QuestionType.MCQ: "MCQ",
    QuestionType.CODING: "Coding",
}

REFUSAL_PHRASES = ("i'm sorry", "i am sorry", "i cannot", "i can't", "unable to", "as an ai")

_FENCE = re.compile(r"```[a-zA-Z]*")

TIER_STRENGTHS = {
    "good": (
        "Well-rounded candidate with strong overall performance",
        "Clear communication and relevant examples",
        "Good problem-solving approach",
    ),
    "average": (
        "Shows potential across multiple areas",
        "Completed the assessment",
        "Basic understanding of core concepts",
    ),
    "needs improvement": (
        "Interview participation",
        "Engagement with the questions",
        "Willingness to attempt every section",
    ),
}

TIER_IMPROVEMENTS = {
    "good": (
        "Maintain current level",
        "Explore advanced topics",
        "Continue developing advanced skills",
    ),
    "average": (
        "Deepen technical knowledge",
        "Practice advanced scenarios",
        "Focus on strengthening weaker areas",
    ),
    "needs improvement": (
        "Focus on fundamental concepts",
        "Practice more examples",
        "Improve preparation",
    ),
}

# section -> (feedback when score >= 70, feedback otherwise, recommendation)
SECTION_FALLBACK = {
    QuestionType.BEHAVIORAL: (
        "Excellent communication and behavioral responses",
        "Needs more structured responses with specific examples",
        "Practice STAR method for behavioral questions",
    ),
    QuestionType.MCQ: (
        "Good technical knowledge base",
        "Review fundamental concepts and practice more",
        "Focus on areas with lower accuracy",
    ),
    QuestionType.CODING: (
        "Strong problem-solving and implementation skills",
        "Practice algorithm design and implementation",
        "Solve more coding problems and focus on test case coverage",
    ),
}
SECTION_PASS_SCORE = 70

FEEDBACK_FORMAT = """{
  "overallPerformance": "Brief overall assessment",
  "strengths": ["strength1", "strength2", "strength3"],
  "improvements": ["improvement1", "improvement2", "improvement3"],
  "recommendedRole": "Recommended role based on performance",
  "sectionFeedback": [
    {"section": "Behavioral", "feedback": "...", "recommendation": "..."}
  ]
}"""


# -----------------------------------------------------------------------------
# prompt
# -----------------------------------------------------------------------------

def _clip(text: str, limit: int = 300) -> str:
    text = " ".join(str(text).split())
    return text if len(text) <= limit else text[:limit] + "..."


def build_feedback_prompt(composite: CompositeResult, scored: Sequence[ScoredAnswer],
                          candidate_name: str, max_answers: int = 10) -> str:
    lines = [
        "Analyze this interview performance and provide detailed feedback.",
        "",
        f"Candidate: {candidate_name}",
        f"Overall Score: {composite.overall_score}%",
        f"Completion Rate: {composite.completion_rate}%",
        f"Accuracy: {composite.accuracy}%",
        f"Questions: {composite.total_questions} (answered {composite.answered_questions})",
    ]
    for summary in composite.present_sections():
        label = SECTION_LABELS[summary.section]
        lines += [
            "",
            f"{label} Section:",
            f"- Questions: {summary.total_questions}",
            f"- Answered: {summary.answered_questions}",
            f"- Score: {summary.average_score}%",
        ]
        if summary.section is QuestionType.BEHAVIORAL:
            lines.append(f"- Avg Response Length: {summary.average_response_length} chars")
        else:
            lines.append(f"- Correct: {summary.correct_answers}")

    if scored and max_answers > 0:
        lines += ["", "Question Results:"]
        for s in list(scored)[:max_answers]:
            r = s.record
            answer = r.display_answer or r.answer_text or "(no answer)"
            lines.append(
                f"{r.question_index + 1}. [{SECTION_LABELS[r.type]}] {_clip(r.question_text, 200)} "
                f"| answer: {_clip(answer)} | score: {s.score} ({s.match_quality.value})"
            )

    lines += ["", "Provide feedback in this JSON format:", FEEDBACK_FORMAT]
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# generator call
# -----------------------------------------------------------------------------

def call_with_timeout(generator: Callable[[str], str], prompt: str, timeout: float) -> str:
    """Run the generator in a daemon thread; raises TimeoutError when it overruns.

    The overrunning call is abandoned, not awaited, and does not hold up interpreter exit.
    """
    outcome: Dict[str, Any] = {}

    def run():
        try:
            outcome["value"] = generator(prompt)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=run, name="feedback", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise TimeoutError(f"feedback generation exceeded {timeout}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


# -----------------------------------------------------------------------------
# parsing
# -----------------------------------------------------------------------------

def _has_refusal(text: str) -> bool:
    lowered = text.lower().replace("’", "'")
    return any(p in lowered for p in REFUSAL_PHRASES)


def _object_span(text: str):
    """(start, end) of the first balanced top-level {...}, None if there is none."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return start, i + 1
    return None


def parse_feedback_json(text: Any) -> Dict[str, Any]:
    """Extract the JSON object from generated text.

    Raises:
        FeedbackParseError: empty, refused, or no parseable object
    """
    if not isinstance(text, str) or not text.strip():
        raise FeedbackParseError("empty feedback response")
    cleaned = _FENCE.sub("", text).strip()

    span = _object_span(cleaned)
    if span is None:
        if _has_refusal(cleaned):
            raise FeedbackParseError("generator refused")
        raise FeedbackParseError("no JSON object in feedback response")
    start, end = span
    if _has_refusal(cleaned[:start] + " " + cleaned[end:]):
        raise FeedbackParseError("generator refused")

    try:
        data = relax_json_loads(cleaned[start:end])
    except ValueError as e:
        raise FeedbackParseError(f"invalid feedback JSON: {e}") from e
    if not isinstance(data, dict):
        raise FeedbackParseError("feedback JSON is not an object")
    return data


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _section_entries(value: Any) -> List[SectionFeedback]:
    if not isinstance(value, (list, tuple)):
        return []
    out = []
    for item in value:
        if not isinstance(item, Mapping):
            return []
        parts = [item.get(k) for k in ("section", "feedback", "recommendation")]
        if not all(isinstance(p, str) and p.strip() for p in parts):
            return []
        out.append(SectionFeedback(*(p.strip() for p in parts)))
    return out


def _report_from_payload(payload: Mapping, fallback: FeedbackReport) -> FeedbackReport:
    overall = payload.get("overallPerformance")
    if not isinstance(overall, str) or not overall.strip():
        raise FeedbackParseError("missing overallPerformance")
    if _has_refusal(overall):
        raise FeedbackParseError("generator refused")
    strengths = _string_list(payload.get("strengths"))
    improvements = _string_list(payload.get("improvements"))
    if not strengths or not improvements:
        raise FeedbackParseError("missing strengths or improvements")
    if any(_has_refusal(item) for item in strengths + improvements):
        raise FeedbackParseError("generator refused")

    sections = _section_entries(payload.get("sectionFeedback", payload.get("sectionWiseFeedback")))
    role = payload.get("recommendedRole")
    return FeedbackReport(
        overall_performance=overall.strip(),
        strengths=tuple(strengths),
        improvements=tuple(improvements),
        section_feedback=tuple(sections) if sections else fallback.section_feedback,
        recommended_role=role.strip() if isinstance(role, str) and role.strip() else fallback.recommended_role,
        source="ai",
    )


# -----------------------------------------------------------------------------
# fallback + entry point
# -----------------------------------------------------------------------------

def fallback_report(composite: CompositeResult, candidate_name: str = "Candidate") -> FeedbackReport:
    """Deterministic report built from the composite metrics only."""
    score = composite.overall_score
    tier = performance_tier(score)
    present = composite.present_sections()

    if present:
        covered = ", ".join(SECTION_LABELS[s.section] for s in present)
        overall = (f"{candidate_name} completed {composite.answered_questions} of "
                   f"{composite.total_questions} questions ({covered}) with {score}% overall "
                   f"performance, rated {tier}.")
    else:
        overall = f"No answers were recorded for {candidate_name}; overall performance is {score}%."

    sections = []
    for summary in present:
        good, weak, recommendation = SECTION_FALLBACK[summary.section]
        # MCQ sections are judged on accuracy, which equals their average score
        passed = summary.average_score >= SECTION_PASS_SCORE
        sections.append(SectionFeedback(
            section=SECTION_LABELS[summary.section],
            feedback=good if passed else weak,
            recommendation=recommendation,
        ))

    return FeedbackReport(
        overall_performance=overall,
        strengths=TIER_STRENGTHS[tier],
        improvements=TIER_IMPROVEMENTS[tier],
        section_feedback=tuple(sections),
        recommended_role=recommended_role(score),
        source="fallback",
    )


def synthesize(composite: CompositeResult, scored: Sequence[ScoredAnswer],
               candidate_name: str = "Candidate",
               generator: Optional[Callable[[str], str]] = None,
               timeout: Optional[float] = None,
               max_answers: Optional[int] = None) -> FeedbackReport:
    """
    Produce the feedback report for a scored interview. Never raises.

    Args:
        composite: Aggregated metrics
        scored: Per-question results, summarized into the prompt
        candidate_name: Name used in the prompt and fallback text
        generator: prompt -> text callable; None goes straight to the fallback
        timeout: Seconds to wait for the generator (default 30)
        max_answers: Per-question summaries included in the prompt (default 10)
    """
    fallback = fallback_report(composite, candidate_name)
    if generator is None:
        logger.info("No feedback generator configured; using fallback feedback")
        return fallback

    prompt = build_feedback_prompt(composite, scored, candidate_name,
                                   10 if max_answers is None else max_answers)
    try:
        text = call_with_timeout(generator, prompt, 30.0 if timeout is None else timeout)
        return _report_from_payload(parse_feedback_json(text), fallback)
    except Exception as e:
        logger.warning("Feedback generation failed (%s: %s); using fallback feedback",
                       type(e).__name__, e)
        return fallback
