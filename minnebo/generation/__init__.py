"""Generation module: LLM backends, personas and the oracle."""

from minnebo.generation.gemini_backend import GeminiBackend
from minnebo.generation.groq_backend import GroqBackend
from minnebo.generation.llm_backend_base import (
    BackendError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
)
from minnebo.generation.oracle import Oracle, OracleResponse

__all__ = [
    "BackendError",
    "GeminiBackend",
    "GenerationConfig",
    "GenerationResult",
    "GroqBackend",
    "LLMBackend",
    "Oracle",
    "OracleResponse",
]
