# ai_providers/groq_provider.py
import logging
from typing import Optional

import groq
from groq import Groq

from errors import ProviderUnavailable, TransientProviderError
from .base import AIProvider

logger = logging.getLogger(__name__)

SYSTEM_QUIZ = (
  "You are a quiz generator. Use ONLY the provided content. "
  "Language: detect the content language and write questions in that language. "
  "Output STRICT JSON exactly in the shape requested by the user message. "
  "No extra text."
)

_TRANSIENT = (groq.RateLimitError, groq.APITimeoutError, groq.APIConnectionError)


class GroqProvider(AIProvider):
    default_models = ["llama-3.1-8b-instant", "llama-3.3-70b-versatile"]

    def __init__(self, api_key: Optional[str] = None, client: Optional[Groq] = None,
                 temperature: float = 0.2):
        # retries are driven by QuizGenerator, not the SDK
        self.client = client or Groq(api_key=api_key, max_retries=0)
        self.temperature = temperature

    def generate(self, prompt: str, model: str, timeout: Optional[float] = None) -> str:
        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "system", "content": SYSTEM_QUIZ},
                          {"role": "user", "content": prompt}],
                temperature=self.temperature,
                **kwargs,
            )
        except _TRANSIENT as e:
            raise TransientProviderError(f"groq {model}: {e.__class__.__name__}", details=str(e)) from e
        except groq.APIError as e:
            raise ProviderUnavailable(f"groq {model}: {e.__class__.__name__}", details=str(e)) from e
        return resp.choices[0].message.content or ""
