import json
import logging
from typing import Optional

from openai import OpenAI

from .config import Settings, get_settings
from .stores import FeedbackGenerator

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = ("You are an interview assessment expert. "
                 "Reply with a single JSON object and nothing else.")

MOCK_FEEDBACK = {
    "overallPerformance": "Consistent performance with clear answers in most sections.",
    "strengths": ["Structured answers", "Solid fundamentals", "Completed the assessment"],
    "improvements": ["Add concrete metrics to examples", "Review missed concepts",
                     "Practice under time pressure"],
}


class OpenAIFeedbackGenerator(FeedbackGenerator):
    """prompt -> feedback text via chat completions; deterministic output in MOCK_MODE."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = None

    def _client_openai(self) -> OpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise RuntimeError("OPENAI_API_KEY not set; use .env or set MOCK_MODE=1")
            self._client = OpenAI(api_key=self.settings.openai_api_key,
                                  timeout=self.settings.feedback_timeout_seconds)
        return self._client

    def generate(self, prompt: str) -> str:
        if self.settings.mock_mode:
            # deterministic mock output
            return json.dumps(MOCK_FEEDBACK)
        client = self._client_openai()
        logger.debug("Requesting feedback from %s", self.settings.feedback_model)
        resp = client.chat.completions.create(
            model=self.settings.feedback_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.settings.feedback_temperature,
        )
        return resp.choices[0].message.content or ""
