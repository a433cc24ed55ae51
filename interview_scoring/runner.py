import json
import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .aggregate import aggregate
from .config import Settings, get_settings
from .errors import AuthorizationError, PersistenceError
from .evaluator import passes, score_answers
from .feedback import synthesize
from .generator import OpenAIFeedbackGenerator
from .loaders import normalize, relax_json_loads
from .models import AnalyticsRecord, PipelineStage, QuestionType, ScoredAnswer
from .questions import QuestionResolver
from .rubrics import performance_tier
from .stores import InMemoryQuestionStore, InMemoryResultStore, InMemorySubmissionStore

logger = logging.getLogger(__name__)


def build_analytics(scored: Sequence[ScoredAnswer]) -> Dict[str, Any]:
    """Per-interview breakdown stored next to the scores."""
    verdicts = [v for v in (passes(s) for s in scored) if v is not None]
    languages = sorted({s.record.language for s in scored
                        if s.type is QuestionType.CODING and s.record.language})
    total_time = sum(s.record.time_spent_seconds for s in scored)
    return {
        "question_types": {t.value: sum(1 for s in scored if s.type is t) for t in QuestionType},
        "languages": languages,
        "correct_answers": sum(1 for v in verdicts if v),
        "incorrect_answers": sum(1 for v in verdicts if not v),
        "categories": dict(Counter(s.category for s in scored if s.category)),
        "average_time_per_question": round(total_time / len(scored), 2) if scored else 0,
    }


class ResultAssembler:
    """
    Runs the scoring pipeline for one submission and hands the result to the store.

    Stages: received -> normalized -> scored -> aggregated -> feedback_attached -> done.
    """

    def __init__(self, question_store, submission_store, result_store=None,
                 generator: Optional[Callable[[str], str]] = None,
                 settings: Optional[Settings] = None,
                 access_gate: Optional[Callable[[str, str], bool]] = None):
        self.questions = QuestionResolver(question_store)
        self.submission_store = submission_store
        self.result_store = result_store
        self.generator = generator
        self.settings = settings or get_settings()
        self.access_gate = access_gate

    def _read_submission(self, interview_id: str, candidate_id: str) -> Any:
        try:
            return self.submission_store.get_raw_feedback(interview_id, candidate_id)
        except Exception as e:
            logger.warning("Submission lookup failed for %s/%s: %s", interview_id, candidate_id, e)
            return None

    def assemble(self, interview_id: str, candidate_id: str,
                 candidate_name: str = "Candidate",
                 interview_type: Optional[str] = None,
                 company_id: Optional[str] = None,
                 raw: Any = None,
                 persist: bool = True) -> AnalyticsRecord:
        """
        Score one candidate's submission.

        Args:
            interview_id: Interview whose question set applies
            candidate_id: Candidate whose submission is scored
            candidate_name: Used in feedback text
            interview_type: behavioral / mcq / coding / combo; None infers it
            company_id: Checked against the access gate when both are set
            raw: Submission payload; read from the submission store when None
            persist: Write the result to the result store

        Returns:
            AnalyticsRecord with the stages visited

        Raises:
            AuthorizationError: access gate denied the company
            PersistenceError: result store rejected the write
        """
        if self.access_gate is not None and company_id is not None:
            if not self.access_gate(company_id, candidate_id):
                raise AuthorizationError(
                    f"company {company_id} may not read results of candidate {candidate_id}")

        stages = [PipelineStage.RECEIVED]
        if raw is None:
            raw = self._read_submission(interview_id, candidate_id)

        questions = self.questions.resolve(interview_id)
        combo = str(interview_type or "").strip().lower() == "combo"
        records = normalize(raw, questions, default_type=None if combo else interview_type)
        stages.append(PipelineStage.NORMALIZED)
        if not records:
            logger.info("No answers for interview=%s candidate=%s", interview_id, candidate_id)

        scored = score_answers(records)
        stages.append(PipelineStage.SCORED)

        composite = aggregate(scored, interview_type)
        stages.append(PipelineStage.AGGREGATED)

        feedback = synthesize(
            composite, scored, candidate_name,
            generator=self.generator,
            timeout=self.settings.feedback_timeout_seconds,
            max_answers=self.settings.max_prompt_answers,
        )
        stages.append(PipelineStage.FEEDBACK_ATTACHED)

        if persist and self.result_store is not None:
            try:
                stored = self.result_store.upsert(interview_id, candidate_id, composite, feedback)
            except Exception as e:
                raise PersistenceError(interview_id, candidate_id, str(e)) from e
            if not stored:
                raise PersistenceError(interview_id, candidate_id, "result store rejected the write")
        stages.append(PipelineStage.DONE)

        logger.info("Scored interview=%s candidate=%s overall=%d feedback=%s",
                    interview_id, candidate_id, composite.overall_score, feedback.source)
        return AnalyticsRecord(
            interview_id=interview_id,
            candidate_id=candidate_id,
            candidate_name=candidate_name,
            interview_type=interview_type,
            answers=tuple(scored),
            composite=composite,
            feedback=feedback,
            stages=tuple(stages),
            performance_level=performance_tier(composite.overall_score),
            analytics=build_analytics(scored),
        )

    def score_batch(self, requests: Iterable[Mapping[str, Any]],
                    max_workers: Optional[int] = None,
                    persist: bool = False) -> List[AnalyticsRecord]:
        """Assemble many submissions concurrently; results keep request order.

        Each request is a mapping of `assemble` keyword arguments.
        """
        requests = [dict(r) for r in requests]
        if not requests:
            return []
        workers = max(1, min(max_workers or self.settings.max_workers, len(requests)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scoring") as pool:
            futures = [pool.submit(self.assemble, persist=persist, **r) for r in requests]
            return [f.result() for f in futures]


def summarize_batch(records: Sequence[AnalyticsRecord]) -> Dict[str, Any]:
    """Dashboard totals over a set of scored interviews."""
    n = len(records)
    return {
        "totalInterviews": n,
        "averageScore": round(sum(r.composite.overall_score for r in records) / n, 2) if n else 0,
        "completionRate": round(sum(r.composite.completion_rate for r in records) / n, 2) if n else 0,
        "totalCandidates": len({r.candidate_id for r in records}),
    }


# -----------------------------------------------------------------------------
# file runner
# -----------------------------------------------------------------------------

def _first(item: Mapping, *names, default=None):
    for name in names:
        if item.get(name) is not None:
            return item[name]
    return default


def _load_export(in_path: str) -> List[Mapping]:
    with open(in_path, "r", encoding="utf-8") as f:
        data = relax_json_loads(f.read())
    if isinstance(data, Mapping):
        data = data.get("interviews", [])
    if not isinstance(data, list):
        raise ValueError("Expected a list of interviews or a top-level 'interviews' list.")
    return [d for d in data if isinstance(d, Mapping)]


def run_full_pass(in_path: str, out_path: str,
                  settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Score every submission of an exported interview file.

    Input: `{"interviews": [{"interviewId", "interviewType", "questions",
    "submissions": [{"candidateId", "candidateName", "answers"}]}]}`.
    Output (also written to out_path): `{"meta", "results", "stats"}`.
    """
    settings = settings or get_settings()
    interviews = _load_export(in_path)

    questions, submissions, requests = {}, InMemorySubmissionStore(), []
    for i, item in enumerate(interviews, 1):
        interview_id = str(_first(item, "interviewId", "id", default=f"interview-{i}"))
        questions[interview_id] = item.get("questions")
        for j, sub in enumerate(item.get("submissions") or [], 1):
            if not isinstance(sub, Mapping):
                continue
            candidate_id = str(_first(sub, "candidateId", "id", default=f"candidate-{j}"))
            submissions.add(interview_id, candidate_id, _first(sub, "answers", "feedback"))
            requests.append({
                "interview_id": interview_id,
                "candidate_id": candidate_id,
                "candidate_name": _first(sub, "candidateName", "name", default="Candidate"),
                "interview_type": _first(item, "interviewType", "type"),
            })

    generator = None
    if settings.mock_mode or settings.openai_api_key:
        generator = OpenAIFeedbackGenerator(settings)
    assembler = ResultAssembler(InMemoryQuestionStore(questions), submissions,
                                InMemoryResultStore(), generator=generator, settings=settings)

    t0 = time.time()
    records = assembler.score_batch(requests, persist=True)
    for idx, r in enumerate(records, 1):
        logger.info("Processed %d/%d (%s/%s)", idx, len(records), r.interview_id, r.candidate_id)

    out = {
        "meta": {
            "model": settings.feedback_model,
            "mock_mode": settings.mock_mode,
            "elapsed_sec": round(time.time() - t0, 2),
            "interviews": len(interviews),
            "scored_submissions": len(records),
            "ai_feedback": sum(1 for r in records if r.feedback.source == "ai"),
        },
        "results": [r.to_dict() for r in records],
        "stats": summarize_batch(records),
    }
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(out, f, indent=2, ensure_ascii=False)
    return out
