"""Smoke test for the LLM backend and the oracle.

Usage:
    python scripts/smoke_test_llm.py                            # Gemini (default)
    python scripts/smoke_test_llm.py --backend groq              # Groq cloud
    python scripts/smoke_test_llm.py --query "What is patience?" # Custom query
    python scripts/smoke_test_llm.py --backend-only              # Skip oracle test
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from minnebo.config import Config
from minnebo.generation.gemini_backend import GeminiBackend
from minnebo.generation.groq_backend import GroqBackend
from minnebo.generation.llm_backend_base import LLMBackend
from minnebo.generation.oracle import Oracle
from minnebo.generation.personas import PERSONAS
from minnebo.security.sanitize import clean_message


def create_backend(backend_name: str) -> LLMBackend:
    """Create the appropriate LLM backend."""
    config = Config()
    if backend_name == "groq":
        if not config.groq_api_key:
            print("ERROR: GROQ_API_KEY not set in .env")
            sys.exit(1)
        return GroqBackend(api_key=config.groq_api_key)
    if not config.gemini_api_key:
        print("ERROR: GEMINI_API_KEY not set in .env")
        sys.exit(1)
    return GeminiBackend(api_key=config.gemini_api_key, model=config.gemini_model)


def test_backend(backend: LLMBackend) -> bool:
    """Test the backend with a plain prompt."""
    print("=" * 60)
    print(f"1. BACKEND TEST: {backend.backend_name}")
    print("=" * 60)

    available = backend.is_available()
    print(f"Available: {available}")
    if not available:
        print(f"ERROR: {backend.backend_name} backend not reachable.")
        return False

    result = backend.generate("Describe a quiet lake in one sentence.", max_tokens=100)
    print(f"Model:  {result.model}")
    print(f"Answer: {result.answer}")
    print(f"Usage:  {result.usage}")
    return True


def test_personas(query: str):
    """Show the decorated prompts without calling the LLM."""
    print("\n" + "=" * 60)
    print("2. PERSONA DECORATION TEST")
    print("=" * 60)

    cleaned = clean_message(query)
    for persona in PERSONAS:
        prompt = persona.decorate(cleaned)
        print(f"[{persona.name}] prompt length: {len(prompt)} chars")


def test_oracle(backend: LLMBackend, query: str):
    """Ask the oracle end to end."""
    print("\n" + "=" * 60)
    print(f"3. ORACLE TEST ({backend.backend_name})")
    print("=" * 60)

    response = Oracle(backend).ask(clean_message(query))
    print(f"Question: {query}")
    print(f"Persona:  {response.persona}")
    print(f"Answer:\n{response.answer}")


def main():
    parser = argparse.ArgumentParser(description="Smoke test for the LLM backend")
    parser.add_argument("--backend", choices=["gemini", "groq"], default="gemini", help="LLM backend")
    parser.add_argument("--backend-only", action="store_true", help="Only test the LLM backend")
    parser.add_argument("--query", type=str, help="Custom query")
    args = parser.parse_args()

    backend = create_backend(args.backend)

    if not test_backend(backend):
        sys.exit(1)

    if args.backend_only:
        return

    query = args.query or "What is the meaning of patience?"
    test_personas(query)
    test_oracle(backend, query)

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    main()
