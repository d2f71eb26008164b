"""Arithmetic challenges used to earn a temporary rate-limit bypass.

A challenge moves from issued to exactly one terminal state: solved,
expired, exhausted (too many attempts) or corrupted (integrity tag
mismatch). Expired, exhausted and corrupted challenges are deleted as soon
as they are detected; solved ones live until their TTL so the bound
fingerprint can keep its bypass.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from minnebo.errors import ChallengeError
from minnebo.security.signing import constant_time_equals, sign

logger = logging.getLogger(__name__)

OPERATORS = ("+", "-", "*")


@dataclass
class Challenge:
    """Stored state of one issued challenge."""

    id: str
    question: str
    answer: int
    created_at: float
    tag: str
    attempts: int = 0
    solved: bool = False
    fingerprint: str | None = None


@dataclass
class IssuedChallenge:
    """What a client receives: never the answer or the tag."""

    id: str
    question: str
    expires_in: int

    def to_dict(self) -> dict:
        return {"id": self.id, "question": self.question, "expires_in": self.expires_in}


def make_puzzle(rng: secrets.SystemRandom | None = None) -> tuple[str, int]:
    """Return a ``(question, answer)`` pair.

    Subtraction never goes negative, sums stay at or below 100, and
    products at or below 144.
    """
    rng = rng or secrets.SystemRandom()
    op = rng.choice(OPERATORS)
    if op == "+":
        a, b = rng.randint(1, 50), rng.randint(1, 50)
        answer = a + b
    elif op == "-":
        a, b = rng.randint(25, 74), rng.randint(1, 25)
        answer = a - b
    else:
        a, b = rng.randint(1, 12), rng.randint(1, 12)
        answer = a * b
    return f"{a} {op} {b}", answer


def parse_answer(provided) -> int | None:
    """Parse a submitted answer leniently; None if it is not an integer."""
    if isinstance(provided, bool):
        return None
    if isinstance(provided, int):
        return provided
    try:
        return int(str(provided).strip())
    except ValueError:
        return None


class ChallengeEngine:
    """Issues, verifies and expires arithmetic challenges."""

    def __init__(
        self,
        secret: str,
        ttl: float = 300,
        max_attempts: int = 3,
        clock: Callable[[], float] = time.time,
        puzzle_factory: Callable[[], tuple[str, int]] = make_puzzle,
    ):
        self._secret = secret
        self.ttl = ttl
        self.max_attempts = max_attempts
        self._clock = clock
        self._puzzle_factory = puzzle_factory
        self._challenges: dict[str, Challenge] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._challenges)

    def _tag(self, challenge_id: str, answer: int) -> str:
        return sign(self._secret, f"{challenge_id}:{answer}")

    def issue(self) -> IssuedChallenge:
        """Create and store a new challenge."""
        question, answer = self._puzzle_factory()
        challenge_id = secrets.token_hex(16)
        challenge = Challenge(
            id=challenge_id,
            question=question,
            answer=answer,
            created_at=self._clock(),
            tag=self._tag(challenge_id, answer),
        )
        with self._lock:
            self._challenges[challenge_id] = challenge
        logger.info("Issued challenge %s", challenge_id[:8])
        return IssuedChallenge(id=challenge_id, question=question, expires_in=int(self.ttl))

    def verify(self, challenge_id: str, provided_answer, fingerprint: str) -> None:
        """Check an answer, binding ``fingerprint`` on success.

        Raises:
            ChallengeError: with the reason the verification failed.
        """
        with self._lock:
            challenge = self._challenges.get(challenge_id)
            if challenge is None:
                raise ChallengeError(ChallengeError.NOT_FOUND)

            if self._clock() - challenge.created_at > self.ttl:
                del self._challenges[challenge_id]
                raise ChallengeError(ChallengeError.EXPIRED)

            if challenge.solved:
                raise ChallengeError(ChallengeError.ALREADY_SOLVED)

            challenge.attempts += 1
            if challenge.attempts > self.max_attempts:
                del self._challenges[challenge_id]
                raise ChallengeError(ChallengeError.TOO_MANY_ATTEMPTS)

            if not constant_time_equals(challenge.tag, self._tag(challenge_id, challenge.answer)):
                del self._challenges[challenge_id]
                logger.warning("Discarded corrupted challenge %s", challenge_id[:8])
                raise ChallengeError(ChallengeError.CORRUPTED)

            answer = parse_answer(provided_answer)
            if answer is None or answer != challenge.answer:
                raise ChallengeError(
                    ChallengeError.WRONG_ANSWER,
                    attempts_left=self.max_attempts - challenge.attempts,
                )

            challenge.solved = True
            challenge.fingerprint = fingerprint
        logger.info("Challenge %s solved", challenge_id[:8])

    def has_bypass(self, fingerprint: str) -> bool:
        """True if a solved, unexpired challenge is bound to ``fingerprint``."""
        now = self._clock()
        with self._lock:
            return any(
                c.solved and c.fingerprint == fingerprint and now - c.created_at < self.ttl
                for c in self._challenges.values()
            )

    def sweep(self) -> int:
        """Delete expired challenges. Returns how many were removed."""
        cutoff = self._clock() - self.ttl
        with self._lock:
            expired = [cid for cid, c in self._challenges.items() if c.created_at < cutoff]
            for cid in expired:
                del self._challenges[cid]
        if expired:
            logger.info("Swept %d expired challenges", len(expired))
        return len(expired)
