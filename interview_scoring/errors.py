"""Exceptions raised by the scoring engine."""


class ScoringError(Exception):
    """Base class for engine errors."""


class PersistenceError(ScoringError):
    """The computed result could not be written to the result store."""

    def __init__(self, interview_id: str, candidate_id: str, reason: str = ""):
        self.interview_id = interview_id
        self.candidate_id = candidate_id
        self.reason = reason
        msg = f"Failed to store result for interview={interview_id} candidate={candidate_id}"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class AuthorizationError(ScoringError):
    """Caller is not allowed to read results for this candidate."""


class FeedbackParseError(ScoringError):
    """Generated feedback text could not be turned into a report."""
