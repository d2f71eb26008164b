"""HMAC integrity tags and constant-time comparison."""

import hashlib
import hmac
import json


def sign(secret: str, message: str) -> str:
    """Full-length hex HMAC-SHA256 of ``message``."""
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_fields(secret: str, fields: dict) -> str:
    """Sign a record's fields using a canonical JSON encoding."""
    canonical = json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return sign(secret, canonical)


def constant_time_equals(provided: str, expected: str) -> bool:
    """Compare two tags without leaking how many leading characters match.

    Both values are padded to a common length so every position is compared,
    and a length mismatch is folded into the result rather than returning
    early.
    """
    width = max(len(provided), len(expected))
    a = provided.ljust(width, "\0").encode("utf-8")
    b = expected.ljust(width, "\0").encode("utf-8")
    same_content = hmac.compare_digest(a, b)
    same_length = len(provided) == len(expected)
    return same_content & same_length
