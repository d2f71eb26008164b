"""Error taxonomy shared by the security layer and the API.

Every error carries an HTTP status and a stable machine-readable ``code``.
The API turns them into structured JSON responses; nothing here ever holds
secret material or raw upstream payloads.
"""


class MinneboError(Exception):
    """Base class for errors that map onto a client-visible response."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(MinneboError):
    """Bad, oversized, or empty input."""

    status_code = 400
    code = "invalid_input"


class InvalidHost(ValidationError):
    code = "invalid_host"

    def __init__(self, message: str = "Invalid host header"):
        super().__init__(message)


class RateLimited(MinneboError):
    """Global or per-fingerprint budget exhausted.

    ``challenge`` is set when the caller may earn a bypass by solving a
    puzzle instead of waiting.
    """

    status_code = 429
    code = "rate_limited"

    def __init__(
        self,
        message: str,
        retry_after: int,
        challenge: dict | None = None,
    ):
        super().__init__(message)
        self.retry_after = max(int(retry_after), 0)
        self.challenge = challenge

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["retry_after"] = self.retry_after
        if self.challenge is not None:
            body["challenge"] = self.challenge
        return body


class ChallengeAccepted(RateLimited):
    """A throttled request carried a correct answer.

    The bypass is bound for future requests; this one is still refused and
    the client should resend it.
    """

    code = "challenge_solved"

    def __init__(self):
        super().__init__("Challenge solved. Please resend your request.", retry_after=0)


class ChallengeError(MinneboError):
    """A challenge verification failed.

    ``reason`` is one of ``not_found``, ``expired``, ``already_solved``,
    ``too_many_attempts``, ``corrupted`` or ``wrong_answer``.
    """

    status_code = 400
    code = "challenge_failed"

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_SOLVED = "already_solved"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    CORRUPTED = "corrupted"
    WRONG_ANSWER = "wrong_answer"

    _MESSAGES = {
        NOT_FOUND: "Challenge not found or expired",
        EXPIRED: "Challenge expired",
        ALREADY_SOLVED: "Challenge already solved",
        TOO_MANY_ATTEMPTS: "Too many attempts",
        CORRUPTED: "Challenge corrupted",
        WRONG_ANSWER: "Incorrect answer",
    }

    def __init__(self, reason: str, attempts_left: int | None = None):
        super().__init__(self._MESSAGES.get(reason, "Challenge failed"))
        self.reason = reason
        self.attempts_left = attempts_left
        if reason == self.NOT_FOUND:
            self.status_code = 404

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["reason"] = self.reason
        if self.attempts_left is not None:
            body["attempts_left"] = self.attempts_left
        return body


class ShareNotFound(MinneboError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Conversation not found"):
        super().__init__(message)


class TamperedOrExpired(MinneboError):
    """A share record failed its freshness or integrity check on read.

    The record has already been deleted when this is raised.
    """


class ShareExpired(TamperedOrExpired):
    status_code = 404
    code = "expired"

    def __init__(self, message: str = "Conversation has expired"):
        super().__init__(message)


class ShareTampered(TamperedOrExpired):
    status_code = 400
    code = "tampered"

    def __init__(self, message: str = "Invalid or tampered conversation"):
        super().__init__(message)


class UpstreamUnavailable(MinneboError):
    """The LLM service failed. The upstream detail is never forwarded."""

    status_code = 500
    code = "upstream_unavailable"

    def __init__(self, message: str = "AI service temporarily unavailable"):
        super().__init__(message)


class ConfigurationError(Exception):
    """Fatal startup misconfiguration (missing or weak signing secret)."""
