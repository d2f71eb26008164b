"""Groq cloud LLM backend.

Alternative to Gemini for deployments that prefer Groq-hosted Llama models.
Requires a GROQ_API_KEY.
"""

import logging

from groq import Groq, GroqError

from minnebo.generation.llm_backend_base import BackendError, GenerationResult, LLMBackend

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama-3.3-70b-versatile"


class GroqBackend(LLMBackend):
    """LLM backend using the Groq cloud API."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL):
        if not api_key:
            raise ValueError("Groq API key is required")
        self.model = model
        self._client = Groq(api_key=api_key)

    @property
    def backend_name(self) -> str:
        return "groq"

    def is_available(self) -> bool:
        try:
            self._client.models.list()
            return True
        except GroqError:
            return False

    def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.9,
    ) -> GenerationResult:
        """Generate via the Groq chat completions API."""
        logger.info("Groq request: model=%s, tokens=%d", self.model, max_tokens)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except GroqError as exc:
            logger.error("Groq request failed: %s", type(exc).__name__)
            raise BackendError("Groq request failed") from exc

        if not response.choices:
            raise BackendError("Groq response had no choices")
        answer = response.choices[0].message.content or ""
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.info("Groq response: %d chars, usage=%s", len(answer), usage)

        return GenerationResult(answer=answer, model=self.model, usage=usage)
