from abc import ABC, abstractmethod
from typing import List, Optional


class AIProvider(ABC):
    # lanac modela, najbrzi/najjeftiniji prvi
    default_models: List[str] = []

    @property
    def name(self) -> str:
        return self.__class__.__name__.replace("Provider", "").lower()

    @abstractmethod
    def generate(self, prompt: str, model: str, timeout: Optional[float] = None) -> str:
        """
        Send one prompt to `model`, return the raw response text.

        Raises TransientProviderError (rate limit, timeout, connection) or
        ProviderUnavailable (anything else the backend rejects).
        """
