"""Signed, expiring in-memory store for shared question/answer pairs.

Each record carries an HMAC over its fields. On read, freshness and
integrity are both evaluated under the store lock before anything is
deleted or returned, so a record that fails either check is never handed
out, even if a sweep runs concurrently.
"""

import logging
import re
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from minnebo.errors import ShareExpired, ShareNotFound, ShareTampered, ValidationError
from minnebo.security.sanitize import clean_share
from minnebo.security.signing import constant_time_equals, sign_fields

logger = logging.getLogger(__name__)

SHARE_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_share_id(share_id) -> bool:
    return isinstance(share_id, str) and bool(SHARE_ID_PATTERN.match(share_id))


@dataclass
class ShareRecord:
    question: str
    answer: str
    timestamp: float
    tag: str

    def signed_fields(self) -> dict:
        return {"question": self.question, "answer": self.answer, "timestamp": self.timestamp}


class SecureShareStore:
    """Shared conversations keyed by an unguessable id."""

    def __init__(
        self,
        secret: str,
        max_age: float = 86400,
        max_question_length: int = 500,
        max_answer_length: int = 5000,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret
        self.max_age = max_age
        self.max_question_length = max_question_length
        self.max_answer_length = max_answer_length
        self._clock = clock
        self._records: dict[str, ShareRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def create(self, question: str, answer: str) -> str:
        """Validate, sanitize, sign and store a pair. Returns the new id.

        Raises:
            ValidationError: if either field is empty, too long, or empty
                after normalization.
        """
        question, answer = clean_share(
            question,
            answer,
            max_question=self.max_question_length,
            max_answer=self.max_answer_length,
        )
        fields = {"question": question, "answer": answer, "timestamp": self._clock()}
        record = ShareRecord(tag=sign_fields(self._secret, fields), **fields)
        share_id = str(uuid.uuid4())
        with self._lock:
            self._records[share_id] = record
        logger.info("Stored share %s", share_id[:8])
        return share_id

    def read(self, share_id: str) -> dict:
        """Return ``{"question", "answer", "timestamp"}`` for a valid record.

        Raises:
            ValidationError: if ``share_id`` is not a well-formed id.
            ShareNotFound: if there is no such record.
            ShareExpired: if the record is older than ``max_age`` (deleted).
            ShareTampered: if the integrity tag does not match (deleted).
        """
        if not is_valid_share_id(share_id):
            raise ValidationError("Valid ID is required")

        with self._lock:
            record = self._records.get(share_id)
            if record is None:
                raise ShareNotFound()

            expired = self._clock() - record.timestamp > self.max_age
            expected = sign_fields(self._secret, record.signed_fields())
            intact = constant_time_equals(record.tag, expected)

            if not intact or expired:
                del self._records[share_id]
                if not intact:
                    logger.warning("Removed tampered share %s", share_id[:8])
                    raise ShareTampered()
                raise ShareExpired()

            return record.signed_fields()

    def find(self, share_id: str) -> dict | None:
        """Like ``read`` but returns None instead of raising."""
        try:
            return self.read(share_id)
        except (ValidationError, ShareNotFound, ShareExpired, ShareTampered):
            return None

    def sweep(self) -> int:
        """Delete records older than ``max_age``."""
        cutoff = self._clock() - self.max_age
        with self._lock:
            old = [sid for sid, r in self._records.items() if r.timestamp < cutoff]
            for sid in old:
                del self._records[sid]
        if old:
            logger.info("Swept %d expired shares", len(old))
        return len(old)
