"""The oracle: decorates a sanitized question with a persona and asks the LLM.

This is the only place that calls the LLM backend. Any backend failure is
turned into ``UpstreamUnavailable`` so provider error detail never reaches
the caller.
"""

import logging
import random
from dataclasses import dataclass, field

from minnebo.errors import UpstreamUnavailable
from minnebo.generation.llm_backend_base import BackendError, GenerationConfig, LLMBackend
from minnebo.generation.personas import choose_persona

logger = logging.getLogger(__name__)

EMPTY_ANSWER = "No response generated."


@dataclass
class OracleResponse:
    answer: str
    persona: str
    model: str
    usage: dict = field(default_factory=dict)


class Oracle:
    """Answers questions in a mystic voice.

    Usage:
        oracle = Oracle(GeminiBackend(api_key=...))
        response = oracle.ask("What is stillness?")
        print(response.answer)
    """

    def __init__(
        self,
        llm_backend: LLMBackend,
        config: GenerationConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.llm = llm_backend
        self.config = config or GenerationConfig()
        self._rng = rng or random.Random()

    def ask(self, question: str) -> OracleResponse:
        """Answer an already-sanitized question.

        Raises:
            UpstreamUnavailable: if the backend fails for any reason.
        """
        persona = choose_persona(self._rng)
        prompt = persona.decorate(question)
        try:
            result = self.llm.generate(
                prompt=prompt,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except BackendError as exc:
            logger.error("LLM backend %s failed: %s", self.llm.backend_name, type(exc).__name__)
            raise UpstreamUnavailable() from exc

        return OracleResponse(
            answer=result.answer.strip() or EMPTY_ANSWER,
            persona=persona.name,
            model=result.model,
            usage=result.usage,
        )
