"""Central configuration for Minnebo."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from minnebo.errors import ConfigurationError

load_dotenv()

MIN_SECRET_LENGTH = 64


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, "").strip() or default
    return [item.strip() for item in raw.split(",") if item.strip()]


def looks_repetitive(secret: str) -> bool:
    """Return True if the secret is built from short repeated substrings.

    Catches both fully periodic secrets ("abcabcabc...") and secrets where a
    single short fragment covers at least half of the text.
    """
    n = len(secret)
    for period in range(1, 17):
        if period < n and all(secret[i] == secret[i % period] for i in range(n)):
            return True

    for size in range(2, 9):
        counts: dict[str, int] = {}
        for i in range(n - size + 1):
            gram = secret[i:i + size]
            counts[gram] = counts.get(gram, 0) + 1
        if counts and max(counts.values()) * size >= n // 2:
            return True
    return False


def check_signing_secret(name: str, secret: str) -> None:
    """Raise ConfigurationError unless ``secret`` is long and non-repetitive."""
    if not secret:
        raise ConfigurationError(f"{name} must be set")
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"{name} must be at least {MIN_SECRET_LENGTH} characters long"
        )
    if looks_repetitive(secret):
        raise ConfigurationError(f"{name} appears to contain repeated patterns")


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # LLM
    llm_backend: str = field(default_factory=lambda: os.getenv("LLM_BACKEND", "gemini"))
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    )
    groq_api_key: str = field(default_factory=lambda: os.getenv("GROQ_API_KEY", ""))

    # Signing secrets
    challenge_secret: str = field(
        default_factory=lambda: os.getenv("CHALLENGE_SECRET", "")
    )
    share_secret: str = field(default_factory=lambda: os.getenv("SHARE_SECRET", ""))

    # Public surface
    allowed_hosts: list[str] = field(
        default_factory=lambda: [
            h.lower()
            for h in _env_list(
                "ALLOWED_HOSTS",
                "minnebo.ai,www.minnebo.ai,minnebo-ai.vercel.app,localhost:3000",
            )
        ]
    )
    allowed_origins: list[str] = field(
        default_factory=lambda: _env_list(
            "ALLOWED_ORIGINS",
            "https://minnebo.ai,https://minnebo-ai.vercel.app,http://localhost:3000",
        )
    )
    public_base_url: str = field(
        default_factory=lambda: os.getenv("PUBLIC_BASE_URL", "https://minnebo.ai")
    )

    # Rate limiting
    global_limit: int = field(default_factory=lambda: _env_int("GLOBAL_RATE_LIMIT", 1000))
    global_window: float = field(default_factory=lambda: _env_float("GLOBAL_WINDOW_SECONDS", 60))
    fingerprint_limit: int = field(default_factory=lambda: _env_int("FINGERPRINT_LIMIT", 5))
    suspicious_limit: int = field(default_factory=lambda: _env_int("SUSPICIOUS_LIMIT", 2))
    fingerprint_window: float = field(
        default_factory=lambda: _env_float("FINGERPRINT_WINDOW_SECONDS", 60)
    )
    max_challenges_per_window: int = field(
        default_factory=lambda: _env_int("MAX_CHALLENGES_PER_WINDOW", 3)
    )
    feedback_limit: int = field(default_factory=lambda: _env_int("FEEDBACK_RATE_LIMIT", 30))

    # Challenges
    challenge_ttl: float = field(default_factory=lambda: _env_float("CHALLENGE_TTL_SECONDS", 300))
    challenge_max_attempts: int = field(
        default_factory=lambda: _env_int("CHALLENGE_MAX_ATTEMPTS", 3)
    )

    # Share store
    share_max_age: float = field(
        default_factory=lambda: _env_float("SHARE_MAX_AGE_SECONDS", 86400)
    )
    max_question_length: int = 500
    max_answer_length: int = 5000

    # Chat input
    max_message_chars: int = 1000
    max_message_bytes: int = 4000
    entropy_check_enabled: bool = field(
        default_factory=lambda: _env_bool("ENTROPY_CHECK_ENABLED", True)
    )
    entropy_min_bits: float = field(default_factory=lambda: _env_float("ENTROPY_MIN_BITS", 1.5))
    entropy_max_bits: float = field(default_factory=lambda: _env_float("ENTROPY_MAX_BITS", 5.5))

    # Tor exit list
    tor_exit_list_url: str = field(
        default_factory=lambda: os.getenv(
            "TOR_EXIT_LIST_URL", "https://check.torproject.org/torbulkexitlist"
        )
    )
    tor_refresh_interval: float = field(
        default_factory=lambda: _env_float("TOR_REFRESH_INTERVAL_SECONDS", 3600)
    )
    tor_cache_ttl: float = field(
        default_factory=lambda: _env_float("TOR_CACHE_TTL_SECONDS", 7200)
    )

    # Background maintenance
    maintenance_enabled: bool = field(
        default_factory=lambda: _env_bool("MAINTENANCE_ENABLED", True)
    )
    limiter_sweep_interval: float = field(
        default_factory=lambda: _env_float("LIMITER_SWEEP_INTERVAL_SECONDS", 300)
    )
    store_sweep_interval: float = field(
        default_factory=lambda: _env_float("STORE_SWEEP_INTERVAL_SECONDS", 3600)
    )

    def validate(self) -> None:
        """Refuse to serve traffic with missing or weak signing secrets."""
        check_signing_secret("CHALLENGE_SECRET", self.challenge_secret)
        check_signing_secret("SHARE_SECRET", self.share_secret)
        if self.suspicious_limit > self.fingerprint_limit:
            raise ConfigurationError("SUSPICIOUS_LIMIT must not exceed FINGERPRINT_LIMIT")
        if self.global_limit < 1:
            raise ConfigurationError("GLOBAL_RATE_LIMIT must be at least 1")


def get_config() -> Config:
    """Get a validated Config instance. Call this instead of constructing directly."""
    config = Config()
    config.validate()
    return config
