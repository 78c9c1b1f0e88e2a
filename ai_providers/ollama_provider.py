import requests
from typing import Optional

import config
from errors import ProviderUnavailable, TransientProviderError
from .base import AIProvider
from .groq_provider import SYSTEM_QUIZ


class OllamaProvider(AIProvider):
    def __init__(self, model: str = "llama3", url: str = None):
        self.url = url or config.OLLAMA_URL
        self.default_models = [model]

    def generate(self, prompt: str, model: str, timeout: Optional[float] = None) -> str:
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_QUIZ},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "format": "json",
            "options": {"temperature": 0.2}
        }
        try:
            r = requests.post(self.url, json=payload, timeout=timeout or 120)
            r.raise_for_status()
            data = r.json()
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientProviderError(f"ollama {model}: {e.__class__.__name__}", details=str(e)) from e
        except (requests.RequestException, ValueError) as e:
            raise ProviderUnavailable(f"ollama {model}: {e.__class__.__name__}", details=str(e)) from e
        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise ProviderUnavailable(f"ollama {model}: unexpected response shape", details=str(data)[:500])
        return message.get("content") or ""
