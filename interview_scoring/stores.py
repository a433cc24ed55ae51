"""
Collaborator contracts for the scoring pipeline, plus simple reference stores.

The engine never talks to a database directly: questions and raw submissions are
read through these interfaces and the final result is handed back to a ResultStore.
"""
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from .models import CompositeResult, FeedbackReport, to_plain

logger = logging.getLogger(__name__)


class QuestionStore(ABC):
    """Source of interview question sets."""

    @abstractmethod
    def get_questions(self, interview_id: str) -> Any:
        """Stored question list (or its JSON text) for the interview, None if absent."""


class SubmissionStore(ABC):
    """Source of raw candidate submissions."""

    @abstractmethod
    def get_raw_feedback(self, interview_id: str, candidate_id: str) -> Any:
        """Stored answer payload in whatever shape it was saved, None if absent."""


class ResultStore(ABC):
    """Destination of computed results."""

    @abstractmethod
    def upsert(self, interview_id: str, candidate_id: str,
               composite: CompositeResult, feedback: FeedbackReport) -> bool:
        """Insert or replace the result for (interview, candidate). False on failure."""


class FeedbackGenerator(ABC):
    """Text generator used for narrative feedback."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        ...

    def __call__(self, prompt: str) -> str:
        return self.generate(prompt)


# -----------------------------------------------------------------------------
# reference implementations
# -----------------------------------------------------------------------------

class InMemoryQuestionStore(QuestionStore):
    def __init__(self, questions: Optional[Dict[str, Any]] = None):
        self.questions = dict(questions or {})

    def get_questions(self, interview_id: str) -> Any:
        return self.questions.get(interview_id)


class InMemorySubmissionStore(SubmissionStore):
    def __init__(self, submissions: Optional[Dict[Tuple[str, str], Any]] = None):
        self.submissions = dict(submissions or {})

    def add(self, interview_id: str, candidate_id: str, raw: Any) -> None:
        self.submissions[(interview_id, candidate_id)] = raw

    def get_raw_feedback(self, interview_id: str, candidate_id: str) -> Any:
        return self.submissions.get((interview_id, candidate_id))


class InMemoryResultStore(ResultStore):
    """Keeps the latest result per (interview, candidate); last write wins."""

    def __init__(self):
        self.results: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def upsert(self, interview_id, candidate_id, composite, feedback) -> bool:
        with self._lock:
            self.results[(interview_id, candidate_id)] = {
                "composite": composite,
                "feedback": feedback,
            }
        return True

    def get(self, interview_id: str, candidate_id: str) -> Optional[Dict[str, Any]]:
        return self.results.get((interview_id, candidate_id))


class JsonFileResultStore(ResultStore):
    """
    Results kept in one JSON file keyed by "<interview_id>:<candidate_id>".

    Each write goes to a temporary file that replaces the original, so a failed
    write leaves the previous contents intact.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    @staticmethod
    def key(interview_id: str, candidate_id: str) -> str:
        return f"{interview_id}:{candidate_id}"

    def load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def upsert(self, interview_id, candidate_id, composite, feedback) -> bool:
        with self._lock:
            try:
                data = self.load()
                data[self.key(interview_id, candidate_id)] = {
                    "composite": to_plain(composite),
                    "feedback": to_plain(feedback),
                }
                folder = os.path.dirname(os.path.abspath(self.path))
                os.makedirs(folder, exist_ok=True)
                fd, tmp = tempfile.mkstemp(dir=folder, suffix=".tmp")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(data, f, indent=2, ensure_ascii=False)
                    os.replace(tmp, self.path)
                except BaseException:
                    if os.path.exists(tmp):
                        os.remove(tmp)
                    raise
            except (OSError, ValueError, TypeError) as e:
                logger.error("Could not write %s: %s", self.path, e)
                return False
        return True
