"""Tor exit-node detection and Tor-Browser header heuristics.

The exit list is pulled from the Tor Project's bulk exit list. A failed
refresh keeps the previous list; it is logged and never raised to callers.
"""

import logging
import re
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

import requests

from minnebo.security.identity import UNKNOWN_IP, RequestContext

logger = logging.getLogger(__name__)

DEFAULT_EXIT_LIST_URL = "https://check.torproject.org/torbulkexitlist"
USER_AGENT = "minnebo-ai-security/1.0"
SUSPICION_THRESHOLD = 3

_DOTTED_QUAD = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

# Tor Browser ships a uniform Firefox ESR user agent per platform
_TOR_UA_PATTERNS = [
    re.compile(r"^mozilla/5\.0 \(windows nt 10\.0; rv:\d+\.0\) gecko/20100101 firefox/\d+\.0$"),
    re.compile(r"^mozilla/5\.0 \(x11; linux x86_64; rv:\d+\.0\) gecko/20100101 firefox/\d+\.0$"),
    re.compile(
        r"^mozilla/5\.0 \(macintosh; intel mac os x 10\.15; rv:\d+\.0\) "
        r"gecko/20100101 firefox/\d+\.0$"
    ),
]
_TOR_ACCEPT_LANGUAGES = {"en-us,en;q=0.5", "en-us,en;q=0.9"}
_FETCH_METADATA_HEADERS = ("sec-fetch-site", "sec-fetch-mode", "sec-ch-ua")

UA_WEIGHT = 3
LANGUAGE_WEIGHT = 2
MISSING_HEADERS_WEIGHT = 1


@dataclass
class BrowserScore:
    """Weighted Tor-Browser likeness of a request."""

    score: int
    matched_signals: list[str] = field(default_factory=list)

    @property
    def suspicious(self) -> bool:
        return self.score >= SUSPICION_THRESHOLD


def parse_exit_list(text: str) -> set[str]:
    """Parse one IP per line, keeping only dotted-quad entries."""
    ips = set()
    for line in text.splitlines():
        line = line.strip()
        if line and _DOTTED_QUAD.match(line):
            ips.add(line)
    return ips


def browser_score(ctx: RequestContext) -> BrowserScore:
    """Score how much a request's headers look like Tor Browser."""
    user_agent = ctx.header("user-agent").lower()
    accept_language = ctx.header("accept-language").lower()

    result = BrowserScore(score=0)
    if any(p.match(user_agent) for p in _TOR_UA_PATTERNS):
        result.score += UA_WEIGHT
        result.matched_signals.append("user_agent")
    if accept_language in _TOR_ACCEPT_LANGUAGES:
        result.score += LANGUAGE_WEIGHT
        result.matched_signals.append("accept_language")
    if not any(ctx.header(h) for h in _FETCH_METADATA_HEADERS):
        result.score += MISSING_HEADERS_WEIGHT
        result.matched_signals.append("missing_fetch_metadata")
    return result


class TorExitDetector:
    """In-memory Tor exit set with scheduled and lazy refresh."""

    def __init__(
        self,
        url: str = DEFAULT_EXIT_LIST_URL,
        refresh_interval: float = 3600,
        cache_ttl: float = 7200,
        timeout: float = 10,
        clock: Callable[[], float] = time.time,
    ):
        self.url = url
        self.refresh_interval = refresh_interval
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self._clock = clock
        self._exit_nodes: frozenset[str] = frozenset()
        self._last_refresh = 0.0
        self._refresh_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tor-refresh")
        self._pending: Future | None = None

    @property
    def node_count(self) -> int:
        return len(self._exit_nodes)

    @property
    def last_refresh(self) -> float:
        return self._last_refresh

    def is_stale(self) -> bool:
        return self._clock() - self._last_refresh > self.cache_ttl

    def refresh(self, force: bool = False) -> bool:
        """Fetch the exit list and swap it in.

        Skips the fetch if the list was refreshed within the refresh interval
        (unless ``force``). Returns True only when a new list was installed.
        """
        if not self._refresh_lock.acquire(blocking=False):
            return False
        try:
            now = self._clock()
            if not force and now - self._last_refresh < self.refresh_interval:
                return False

            logger.info("Updating Tor exit node list...")
            try:
                resp = requests.get(
                    self.url,
                    timeout=self.timeout,
                    headers={"User-Agent": USER_AGENT},
                )
                resp.raise_for_status()
            except requests.RequestException as exc:
                logger.error("Failed to update Tor exit nodes: %s", type(exc).__name__)
                return False

            nodes = parse_exit_list(resp.text)
            self.install(nodes)
            logger.info("Updated Tor exit node list: %d nodes", len(nodes))
            return True
        finally:
            self._refresh_lock.release()

    def install(self, nodes) -> None:
        """Replace the exit set in one step and mark it fresh."""
        self._exit_nodes = frozenset(nodes)
        self._last_refresh = self._clock()

    def refresh_in_background(self) -> Future | None:
        """Schedule a refresh without blocking; at most one runs at a time."""
        if self._pending is not None and not self._pending.done():
            return self._pending
        self._pending = self._executor.submit(self.refresh, True)
        return self._pending

    def is_exit_node(self, ip: str) -> bool:
        """Check ``ip`` against the cached list, scheduling a refresh if stale."""
        if not ip or ip == UNKNOWN_IP:
            return False
        if self.is_stale():
            self.refresh_in_background()
        return ip in self._exit_nodes

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
