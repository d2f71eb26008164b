"""FastAPI dependency injection: shared component singletons.

Initializes the stateful security services, the share store and the LLM
backend once at startup, then provides them via FastAPI Depends().
"""

import logging

from fastapi import Depends, Request

from minnebo.config import Config, get_config
from minnebo.errors import ConfigurationError
from minnebo.generation.gemini_backend import GeminiBackend
from minnebo.generation.groq_backend import GroqBackend
from minnebo.generation.llm_backend_base import LLMBackend
from minnebo.generation.oracle import Oracle
from minnebo.security.challenge import ChallengeEngine
from minnebo.security.gatekeeper import EntropyPolicy, Gatekeeper
from minnebo.security.identity import RequestContext
from minnebo.security.maintenance import MaintenanceScheduler, PeriodicJob
from minnebo.security.rate_limit import ClientRateLimiter, RateLimiter
from minnebo.security.tor import TorExitDetector
from minnebo.sharing.feedback import FeedbackStore
from minnebo.sharing.store import SecureShareStore

logger = logging.getLogger(__name__)

# ── Singletons (populated by init_components) ───────────────────────

_config: Config | None = None
_tor: TorExitDetector | None = None
_gatekeeper: Gatekeeper | None = None
_share_store: SecureShareStore | None = None
_feedback_store: FeedbackStore | None = None
_feedback_limiter: ClientRateLimiter | None = None
_oracle: Oracle | None = None
_scheduler: MaintenanceScheduler | None = None


def create_backend(config: Config) -> LLMBackend:
    """Build the configured LLM backend."""
    if config.llm_backend == "groq":
        if not config.groq_api_key:
            raise ConfigurationError("LLM_BACKEND=groq but GROQ_API_KEY is empty")
        llm = GroqBackend(api_key=config.groq_api_key)
        logger.info("LLM backend: Groq (model=%s)", llm.model)
        return llm
    if not config.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY must be set")
    llm = GeminiBackend(api_key=config.gemini_api_key, model=config.gemini_model)
    logger.info("LLM backend: Gemini (model=%s)", llm.model)
    return llm


def init_components(config: Config | None = None, llm: LLMBackend | None = None) -> None:
    """Initialize all components. Call once at startup.

    Raises:
        ConfigurationError: if a signing secret or the LLM key is unusable.
    """
    global _config, _tor, _gatekeeper, _share_store, _feedback_store
    global _feedback_limiter, _oracle, _scheduler

    if config is None:
        config = get_config()
    else:
        config.validate()

    _tor = TorExitDetector(
        url=config.tor_exit_list_url,
        refresh_interval=config.tor_refresh_interval,
        cache_ttl=config.tor_cache_ttl,
    )
    limiter = RateLimiter(
        global_limit=config.global_limit,
        global_window=config.global_window,
        fingerprint_limit=config.fingerprint_limit,
        fingerprint_window=config.fingerprint_window,
        max_challenges_per_window=config.max_challenges_per_window,
    )
    challenges = ChallengeEngine(
        secret=config.challenge_secret,
        ttl=config.challenge_ttl,
        max_attempts=config.challenge_max_attempts,
    )
    _gatekeeper = Gatekeeper(
        allowed_hosts=config.allowed_hosts,
        tor_detector=_tor,
        limiter=limiter,
        challenges=challenges,
        suspicious_limit=config.suspicious_limit,
        max_message_chars=config.max_message_chars,
        max_message_bytes=config.max_message_bytes,
        entropy_policy=EntropyPolicy(
            enabled=config.entropy_check_enabled,
            min_bits=config.entropy_min_bits,
            max_bits=config.entropy_max_bits,
        ),
    )
    _share_store = SecureShareStore(
        secret=config.share_secret,
        max_age=config.share_max_age,
        max_question_length=config.max_question_length,
        max_answer_length=config.max_answer_length,
    )
    _feedback_store = FeedbackStore()
    _feedback_limiter = ClientRateLimiter(max_requests=config.feedback_limit, window_seconds=60)
    _oracle = Oracle(llm or create_backend(config))

    _scheduler = MaintenanceScheduler([
        PeriodicJob("tor-refresh", config.tor_refresh_interval, _tor.refresh, run_at_start=True),
        PeriodicJob("rate-limit-sweep", config.limiter_sweep_interval, limiter.sweep),
        PeriodicJob("challenge-sweep", config.limiter_sweep_interval, challenges.sweep),
        PeriodicJob("feedback-limit-sweep", config.limiter_sweep_interval, _feedback_limiter.sweep),
        PeriodicJob("share-sweep", config.store_sweep_interval, _share_store.sweep),
    ])
    _config = config
    logger.info("All components initialized")


def reset_components() -> None:
    """Drop all singletons (used on shutdown and by tests)."""
    global _config, _tor, _gatekeeper, _share_store, _feedback_store
    global _feedback_limiter, _oracle, _scheduler
    if _tor is not None:
        _tor.shutdown()
    _config = _tor = _gatekeeper = _share_store = _feedback_store = None
    _feedback_limiter = _oracle = _scheduler = None


def is_initialized() -> bool:
    """Check if components have been initialized (or injected for testing)."""
    return _gatekeeper is not None and _oracle is not None


def get_app_config() -> Config:
    assert _config is not None, "Components not initialized, call init_components()"
    return _config


def get_gatekeeper() -> Gatekeeper:
    assert _gatekeeper is not None, "Components not initialized, call init_components()"
    return _gatekeeper


def get_share_store() -> SecureShareStore:
    assert _share_store is not None, "Components not initialized, call init_components()"
    return _share_store


def get_feedback_store() -> FeedbackStore:
    assert _feedback_store is not None, "Components not initialized, call init_components()"
    return _feedback_store


def get_feedback_limiter() -> ClientRateLimiter:
    assert _feedback_limiter is not None, "Components not initialized, call init_components()"
    return _feedback_limiter


def get_oracle() -> Oracle:
    assert _oracle is not None, "Components not initialized, call init_components()"
    return _oracle


def get_scheduler() -> MaintenanceScheduler:
    assert _scheduler is not None, "Components not initialized, call init_components()"
    return _scheduler


# ── Request-scoped helpers ───────────────────────────────────────────


def request_context(request: Request) -> RequestContext:
    """Snapshot the parts of a request the security layer needs."""
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return RequestContext(
        method=request.method,
        path=path,
        headers=dict(request.headers),
        client_host=request.client.host if request.client else None,
    )


def require_allowed_host(
    request: Request,
    gatekeeper: Gatekeeper = Depends(get_gatekeeper),
) -> None:
    """Router dependency enforcing the Host allow-list."""
    gatekeeper.check_host(request_context(request))
