# ai_providers/factory.py
import logging

import config
from .base import AIProvider
from .groq_provider import GroqProvider
from .local_stub import LocalStub
from .ollama_provider import OllamaProvider

logger = logging.getLogger(__name__)


def get_provider() -> AIProvider:
    """Groq when a key is configured, then a local Ollama model, then the offline stub."""
    if config.GROQ_API_KEY:
        try:
            return GroqProvider(api_key=config.GROQ_API_KEY)
        except Exception as e:
            logger.warning("Groq init failed, falling back: %s", e)
    if config.OLLAMA_MODEL:
        return OllamaProvider(model=config.OLLAMA_MODEL)
    return LocalStub()


def model_chain(provider: AIProvider) -> list:
    return list(config.QUIZ_MODELS or provider.default_models)


def ping(provider: AIProvider, model: str) -> bool:
    try:
        return len(provider.generate('Say "Hello"', model, timeout=10)) > 0
    except Exception as e:
        logger.error("Provider connection test failed (%s/%s): %s", provider.name, model, e)
        return False
