"""Shared pytest fixtures for Minnebo tests."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from minnebo.config import Config
from minnebo.generation.llm_backend_base import GenerationResult, LLMBackend
from minnebo.security.identity import RequestContext

CHALLENGE_SECRET = "9f2c7a1e5b8d3064af71c2e9b5d8306f4a1c7e2b9d5f8036ca4e1b7f2d9c5a08"
SHARE_SECRET = "c41e9a7f03b65d2e8f1a4c7b90e3d56a2b8f4e1c7d09a3b6e5f21c8d4a7b0e93"

BROWSER_HEADERS = {
    "host": "localhost:3000",
    "user-agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/126.0 Safari/537.36",
    "accept": "application/json",
    "accept-language": "nl-NL,nl;q=0.9,en;q=0.8",
    "sec-fetch-site": "same-origin",
}

TOR_BROWSER_HEADERS = {
    "host": "localhost:3000",
    "user-agent": "Mozilla/5.0 (Windows NT 10.0; rv:128.0) Gecko/20100101 Firefox/128.0",
    "accept": "*/*",
    "accept-language": "en-US,en;q=0.5",
}


class FakeClock:
    """Manually advanced clock for time-dependent services."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_ctx(headers=None, method="POST", path="/api/chat", client_host="198.51.100.7"):
    return RequestContext(
        method=method,
        path=path,
        headers=dict(BROWSER_HEADERS if headers is None else headers),
        client_host=client_host,
    )


@pytest.fixture
def make_ctx():
    """Factory for RequestContext objects with ordinary browser headers."""
    return _make_ctx


@pytest.fixture
def tor_browser_headers() -> dict:
    return dict(TOR_BROWSER_HEADERS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_config() -> Config:
    """A valid configuration that never touches the network."""
    return Config(
        llm_backend="gemini",
        gemini_api_key="test-key",
        challenge_secret=CHALLENGE_SECRET,
        share_secret=SHARE_SECRET,
        allowed_hosts=["testserver", "localhost:3000"],
        allowed_origins=["http://localhost:3000"],
        public_base_url="https://minnebo.ai",
        maintenance_enabled=False,
        entropy_check_enabled=True,
    )


@pytest.fixture
def mock_llm():
    """A mock LLM backend that returns a canned answer."""
    llm = MagicMock(spec=LLMBackend)
    llm.backend_name = "mock"
    llm.model = "mock-model"
    llm.generate.return_value = GenerationResult(
        answer="The still lake reflects the whole sky.",
        model="mock-model",
        usage={"prompt_tokens": 120, "completion_tokens": 12},
    )
    return llm


@pytest.fixture
def client(test_config, mock_llm):
    """TestClient with real security services and a mocked LLM."""
    from minnebo.api import deps
    from minnebo.api.app import create_app

    deps.init_components(test_config, llm=mock_llm)
    # An installed (empty) list is fresh, so no lookup triggers a fetch
    deps._tor.install(set())

    app = create_app(test_config)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    deps.reset_components()
