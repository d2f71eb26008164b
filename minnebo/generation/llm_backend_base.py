"""Abstract LLM backend interface.

All LLM providers (Gemini, Groq) implement this interface so the rest of
the system never sees provider-specific details.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class BackendError(RuntimeError):
    """The provider failed or returned something unusable.

    The message is meant for logs only and never reaches API clients.
    """


@dataclass
class GenerationConfig:
    """Knobs for LLM generation."""

    max_tokens: int = 1024
    temperature: float = 0.9


@dataclass
class GenerationResult:
    """LLM response with metadata."""

    answer: str
    model: str
    usage: dict = field(default_factory=dict)


class LLMBackend(ABC):
    """Abstract interface for LLM generation backends."""

    model: str

    @abstractmethod
    def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.9,
    ) -> GenerationResult:
        """Generate a response from the LLM.

        Args:
            prompt: The fully decorated prompt.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.

        Returns:
            GenerationResult with answer text and metadata.

        Raises:
            BackendError: on transport failure, non-2xx status, or a
                response without generated text.
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is reachable and ready."""
        ...

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier (e.g., 'gemini', 'groq')."""
        ...
