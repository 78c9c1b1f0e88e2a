# services/quizzer.py
"""
Quiz generation against a chain of models.

For every model in the chain, in order, up to `attempts_per_model` attempts
are made; attempt i (1-based) is followed by a wait of i * backoff seconds
before the next attempt on the same model. A failed attempt is any exception
from the provider call (timeouts included) or a response that does not
validate. When the chain is exhausted GenerationFailed is raised with the
last error attached, after exactly len(models) * attempts_per_model calls.
"""
import logging
import time
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import config
from ai_providers.base import AIProvider
from errors import GenerationFailed
from services.quiz_parser import parse_quiz_response

logger = logging.getLogger(__name__)

DIFFICULTY_GUIDE = {
    "easy": "Basic recall and understanding",
    "medium": "Application and analysis",
    "hard": "Synthesis and evaluation",
}

QUIZ_PROMPT = """You are an expert quiz creator. Generate {n} multiple-choice questions based on the following text content.

DIFFICULTY LEVEL: {level}

CONTENT:
{content}

INSTRUCTIONS:
1. Generate exactly {n} questions that test comprehension and key concepts
2. Each question must have exactly 4 options labeled A, B, C, D
3. Only one option should be correct
4. Include a brief explanation for why the correct answer is right
5. Questions should be {difficulty} difficulty: {guide}
6. Ensure questions are clear, unambiguous, and directly related to the content
7. Avoid trick questions or overly obscure details

REQUIRED JSON FORMAT (respond with ONLY valid JSON, no additional text):
{{
  "questions": [
    {{
      "question": "Your question here?",
      "options": ["A) First option", "B) Second option", "C) Third option", "D) Fourth option"],
      "correctAnswer": "A",
      "explanation": "Brief explanation of why this is correct"
    }}
  ]
}}"""


def build_prompt(content: str, number_of_questions: int, difficulty: str) -> str:
    return QUIZ_PROMPT.format(
        n=number_of_questions,
        level=difficulty.upper(),
        content=content,
        difficulty=difficulty,
        guide=DIFFICULTY_GUIDE.get(difficulty, DIFFICULTY_GUIDE["medium"]),
    )


class QuizGenerator:
    def __init__(self, provider: AIProvider, models: Optional[Sequence[str]] = None,
                 attempts_per_model: int = config.QUIZ_ATTEMPTS_PER_MODEL,
                 backoff: float = config.QUIZ_BACKOFF_SECONDS,
                 timeout: Optional[float] = config.QUIZ_ATTEMPT_TIMEOUT,
                 sleep: Callable[[float], None] = time.sleep):
        self.provider = provider
        self.models = list(models or provider.default_models)
        if not self.models:
            raise ValueError("QuizGenerator needs at least one model")
        self.attempts_per_model = max(1, int(attempts_per_model))
        self.backoff = backoff
        self.timeout = timeout
        self.sleep = sleep

    def plan(self) -> Iterator[Tuple[str, int]]:
        """(model, attempt) pairs in the order they are tried."""
        for model in self.models:
            for attempt in range(1, self.attempts_per_model + 1):
                yield model, attempt

    def backoff_for(self, attempt: int) -> float:
        return attempt * self.backoff

    def generate(self, content: str, number_of_questions: int, difficulty: str) -> List[dict]:
        prompt = build_prompt(content, number_of_questions, difficulty)
        last_error: Optional[Exception] = None

        for model, attempt in self.plan():
            try:
                raw = self.provider.generate(prompt, model, timeout=self.timeout)
                questions = parse_quiz_response(raw)
            except Exception as e:
                # any failure of an attempt is retried, then falls through the chain
                last_error = e
                logger.warning("Attempt %s/%s with %s failed: %s",
                               attempt, self.attempts_per_model, model, e)
                if attempt < self.attempts_per_model:
                    self.sleep(self.backoff_for(attempt))
                else:
                    logger.warning("Model %s failed after %s attempts", model, attempt)
                continue
            logger.info("Generated %s questions using %s", len(questions), model)
            return questions

        raise GenerationFailed(
            f"Failed to generate quiz with all models. Last error: {last_error}",
            last_error=last_error,
        )
