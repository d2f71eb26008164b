"""Google Gemini LLM backend.

Calls the Generative Language REST API (``generateContent``). Requires a
GEMINI_API_KEY.
"""

import logging

import requests

from minnebo.generation.llm_backend_base import BackendError, GenerationResult, LLMBackend

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
API_BASE = "https://generativelanguage.googleapis.com/v1beta"


def extract_text(data) -> str | None:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GeminiBackend(LLMBackend):
    """LLM backend using the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        api_base: str = API_BASE,
        timeout: float = 60,
    ):
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key

    @property
    def backend_name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        """Check if the model endpoint answers with our key."""
        try:
            resp = requests.get(
                f"{self.api_base}/models/{self.model}",
                params={"key": self._api_key},
                timeout=5,
            )
            return resp.status_code == 200
        except requests.RequestException:
            return False

    def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.9,
    ) -> GenerationResult:
        """Generate via the Gemini generateContent endpoint."""
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": temperature,
            },
        }

        logger.info("Gemini request: model=%s, tokens=%d", self.model, max_tokens)

        try:
            resp = requests.post(
                f"{self.api_base}/models/{self.model}:generateContent",
                params={"key": self._api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Gemini request failed: %s", type(exc).__name__)
            raise BackendError("Gemini request failed") from exc

        if not resp.ok:
            logger.error("Gemini API error - Status: %d", resp.status_code)
            raise BackendError(f"Gemini returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Gemini returned a non-JSON body")
            raise BackendError("Gemini returned malformed JSON") from exc

        answer = extract_text(data)
        if answer is None:
            logger.error("Gemini response missing generated text")
            raise BackendError("Gemini response missing generated text")

        usage = {}
        meta = data.get("usageMetadata") or {}
        if "promptTokenCount" in meta:
            usage["prompt_tokens"] = meta["promptTokenCount"]
        if "candidatesTokenCount" in meta:
            usage["completion_tokens"] = meta["candidatesTokenCount"]

        logger.info("Gemini response: %d chars, usage=%s", len(answer), usage)

        return GenerationResult(answer=answer, model=self.model, usage=usage)
