"""Abuse mitigation: identity, Tor scoring, rate limits, challenges, gatekeeping."""

from minnebo.security.challenge import ChallengeEngine, IssuedChallenge
from minnebo.security.gatekeeper import Admission, EntropyPolicy, Gatekeeper
from minnebo.security.identity import RequestContext, extract_client_ip, fingerprint
from minnebo.security.maintenance import MaintenanceScheduler, PeriodicJob
from minnebo.security.rate_limit import ClientRateLimiter, RateDecision, RateLimiter
from minnebo.security.tor import BrowserScore, TorExitDetector, browser_score

__all__ = [
    "Admission",
    "BrowserScore",
    "ChallengeEngine",
    "ClientRateLimiter",
    "EntropyPolicy",
    "Gatekeeper",
    "IssuedChallenge",
    "MaintenanceScheduler",
    "PeriodicJob",
    "RateDecision",
    "RateLimiter",
    "RequestContext",
    "TorExitDetector",
    "browser_score",
    "extract_client_ip",
    "fingerprint",
]
