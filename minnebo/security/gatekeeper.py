"""Request gatekeeper: the fixed admission pipeline for protected endpoints.

Order of checks for every protected request:

1. Host header against the allow-list (DNS-rebinding defence).
2. Client IP, fingerprint, Tor exit membership and Tor-Browser score.
3. Global budget.
4. Per-fingerprint budget, tightened for suspicious callers. A throttled
   caller with a live bypass passes; otherwise a challenge is issued while
   the per-window cap allows, then hard 429s.
5. A challenge answer carried by the request is verified. Success binds a
   bypass to the fingerprint; it never un-throttles the request that carried
   it.

Payload screening (step 6) is ``screen_message``; forwarding (step 7) is
the caller's job.
"""

import logging
from dataclasses import dataclass

from minnebo.errors import ChallengeAccepted, InvalidHost, RateLimited, ValidationError
from minnebo.security.challenge import ChallengeEngine
from minnebo.security.identity import RequestContext, extract_client_ip, fingerprint
from minnebo.security.rate_limit import RateLimiter
from minnebo.security.sanitize import clean_message, shannon_entropy
from minnebo.security.tor import BrowserScore, TorExitDetector, browser_score

logger = logging.getLogger(__name__)


@dataclass
class Admission:
    """Who the gatekeeper let through, and how it scored them."""

    ip: str
    fingerprint: str
    is_tor_exit: bool
    browser: BrowserScore
    bypassed: bool = False

    @property
    def suspicious(self) -> bool:
        return self.is_tor_exit or self.browser.suspicious


@dataclass
class EntropyPolicy:
    """Reject extremely repetitive or random-looking messages from suspicious callers.

    Thresholds were tuned by hand; the policy can be switched off per
    deployment.
    """

    enabled: bool = True
    min_bits: float = 1.5
    max_bits: float = 5.5

    def check(self, message: str, suspicious: bool) -> None:
        if not self.enabled:
            return
        entropy = shannon_entropy(message)
        if self.min_bits <= entropy <= self.max_bits:
            return
        if suspicious:
            logger.info("Blocked suspicious message entropy: %.2f", entropy)
            raise ValidationError("Message content appears automated or invalid")
        logger.warning("Unusual message entropy %.2f allowed (no other signals)", entropy)


class Gatekeeper:
    """Composes identity, Tor scoring, rate limits and challenges."""

    def __init__(
        self,
        allowed_hosts: list[str],
        tor_detector: TorExitDetector,
        limiter: RateLimiter,
        challenges: ChallengeEngine,
        suspicious_limit: int = 2,
        max_message_chars: int = 1000,
        max_message_bytes: int = 4000,
        entropy_policy: EntropyPolicy | None = None,
    ):
        self.allowed_hosts = {h.lower() for h in allowed_hosts}
        self.tor = tor_detector
        self.limiter = limiter
        self.challenges = challenges
        self.suspicious_limit = suspicious_limit
        self.max_message_chars = max_message_chars
        self.max_message_bytes = max_message_bytes
        self.entropy_policy = entropy_policy or EntropyPolicy()

    def check_host(self, ctx: RequestContext) -> None:
        if not ctx.host or ctx.host not in self.allowed_hosts:
            raise InvalidHost()

    def assess(self, ctx: RequestContext) -> Admission:
        ip = extract_client_ip(ctx)
        admission = Admission(
            ip=ip,
            fingerprint=fingerprint(ctx),
            is_tor_exit=self.tor.is_exit_node(ip),
            browser=browser_score(ctx),
        )
        logger.debug(
            "Request fp=%s tor=%s browser_score=%d suspicious=%s",
            admission.fingerprint,
            admission.is_tor_exit,
            admission.browser.score,
            admission.suspicious,
        )
        return admission

    def admit(
        self,
        ctx: RequestContext,
        challenge_id: str | None = None,
        challenge_answer=None,
    ) -> Admission:
        """Run steps 1 to 5 of the pipeline.

        Raises:
            InvalidHost: the Host header is not allowed.
            RateLimited: a budget is exhausted (possibly with a challenge).
            ChallengeError: a carried challenge answer failed verification.
        """
        self.check_host(ctx)
        admission = self.assess(ctx)

        global_decision = self.limiter.check_global()
        if not global_decision.allowed:
            logger.warning("Global rate limit reached")
            raise RateLimited(
                f"Service overloaded. Retry in {global_decision.retry_after}s",
                retry_after=global_decision.retry_after,
            )

        has_answer = bool(challenge_id) and challenge_answer not in (None, "")
        limit = self.suspicious_limit if admission.suspicious else None
        decision = self.limiter.check_fingerprint(admission.fingerprint, limit=limit)

        if not decision.allowed:
            if self.challenges.has_bypass(admission.fingerprint):
                admission.bypassed = True
            elif has_answer:
                self.challenges.verify(challenge_id, challenge_answer, admission.fingerprint)
                raise ChallengeAccepted()
            elif decision.needs_challenge and self.limiter.record_challenge(admission.fingerprint):
                issued = self.challenges.issue()
                raise RateLimited(
                    "Rate limit exceeded. Solve challenge to continue.",
                    retry_after=decision.retry_after,
                    challenge=issued.to_dict(),
                )
            else:
                raise RateLimited(
                    f"Rate limit exceeded. Retry in {decision.retry_after}s",
                    retry_after=decision.retry_after,
                )

        if has_answer and not admission.bypassed:
            self.challenges.verify(challenge_id, challenge_answer, admission.fingerprint)

        return admission

    def screen_message(self, message: str, admission: Admission) -> str:
        """Step 6 for chat: entropy policy, then normalization and sanitization."""
        if not isinstance(message, str) or not message:
            raise ValidationError("Message field is required")
        self.entropy_policy.check(message, admission.suspicious)
        return clean_message(
            message,
            max_chars=self.max_message_chars,
            max_bytes=self.max_message_bytes,
        )
