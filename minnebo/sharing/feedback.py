"""Up/down vote counts per shared answer."""

import threading

from minnebo.errors import ValidationError

VOTES = ("up", "down")
MAX_ID_LENGTH = 100


class FeedbackStore:
    def __init__(self):
        self._votes: dict[str, dict[str, int]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _clean_id(item_id) -> str:
        item_id = item_id.strip() if isinstance(item_id, str) else ""
        if not item_id or len(item_id) > MAX_ID_LENGTH:
            raise ValidationError("id and vote required")
        return item_id

    def vote(self, item_id: str, vote: str) -> dict[str, int]:
        item_id = self._clean_id(item_id)
        if vote not in VOTES:
            raise ValidationError("id and vote required")
        with self._lock:
            entry = self._votes.setdefault(item_id, {"up": 0, "down": 0})
            entry[vote] += 1
            return dict(entry)

    def counts(self, item_id: str) -> dict[str, int]:
        item_id = self._clean_id(item_id)
        with self._lock:
            return dict(self._votes.get(item_id, {"up": 0, "down": 0}))
