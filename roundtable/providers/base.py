"""Abstract base for text-completion clients."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class LLMClientError(Exception):
    """Raised when a completion call fails."""

    def __init__(self, model: str, message: str) -> None:
        self.model = model
        super().__init__(f"[{model}] {message}")


class CompletionClient(ABC):
    """A client bound to exactly one model identifier."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Return the model identifier this client is bound to."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int = 500, temperature: float = 0.7) -> str:
        """Return the full completion for the prompt.

        Raises:
            LLMClientError: On API failure or after exhausting retries.
        """
        ...

    @abstractmethod
    def generate_stream(
        self, prompt: str, max_tokens: int = 500, temperature: float = 0.7
    ) -> AsyncIterator[str]:
        """Yield text fragments as they arrive. Each call opens a fresh stream.

        Raises:
            LLMClientError: On failure, before or during the stream.
        """
        ...
