"""Input normalization, validation and sanitization.

Everything user-supplied is NFKC-normalized first so that compatibility
characters and invisible formatting cannot be used to sneak past the length
and emptiness checks. All patterns use bounded repetition.
"""

import html
import math
import re
import unicodedata
from collections import Counter

from minnebo.errors import ValidationError

# Zero-width, bidi controls, line/paragraph separators, word joiners, BOM
_INVISIBLE = re.compile(r"[\u00ad\u180e\u200b-\u200f\u2028-\u202f\u205f-\u206f\ufeff]")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_DANGEROUS_SCHEMES = re.compile(r"(?:javascript|data|vbscript):", re.IGNORECASE)
_HTML_ENTITIES = {"<": "&lt;", ">": "&gt;", "&": "&amp;", '"': "&quot;", "'": "&#39;"}
_HTML_SPECIAL = re.compile(r"[<>&\"']")
_TAGS = re.compile(r"</?[^>]{0,200}(?:>|$)")

_INJECTION_MARKERS = [
    re.compile(r"ignore\s{1,5}previous\s{1,5}instructions", re.IGNORECASE),
    re.compile(r"system\s{0,3}:", re.IGNORECASE),
    re.compile(r"assistant\s{0,3}:", re.IGNORECASE),
    re.compile(r"\[/?INST\]", re.IGNORECASE),
    re.compile(r"<\|[^|]{0,50}\|>"),
    re.compile(r"###\s{0,3}(?:instruction|system|prompt)", re.IGNORECASE),
]


def _remove_all(pattern: re.Pattern, text: str) -> str:
    """Remove matches until none remain, so split markers cannot reassemble."""
    while True:
        stripped = pattern.sub("", text)
        if stripped == text:
            return text
        text = stripped


def normalize(text: str) -> str:
    return unicodedata.normalize("NFKC", text)


def strip_invisible(text: str) -> str:
    return _INVISIBLE.sub("", text)


def visible_length(text: str) -> int:
    return len(strip_invisible(text).strip())


def sanitize_html(text: str) -> str:
    """Entity-encode markup characters and drop controls and URL schemes."""
    if not text:
        return ""
    text = _HTML_SPECIAL.sub(lambda m: _HTML_ENTITIES[m.group(0)], text)
    text = _CONTROL.sub("", text)
    text = _remove_all(_DANGEROUS_SCHEMES, text)
    return text.strip()


def escape_markup(text: str) -> str:
    """Escape text for interpolation into SVG or HTML.

    Stored share text is already entity-encoded, so it is unescaped first to
    avoid double encoding, then tags and controls are dropped and the result
    escaped again.
    """
    if not text:
        return ""
    text = html.unescape(text)
    text = _TAGS.sub("", text)
    text = _CONTROL.sub("", text)
    text = _remove_all(_DANGEROUS_SCHEMES, text)
    return html.escape(text.strip(), quote=True)


def strip_injection_markers(text: str) -> str:
    previous = None
    while text != previous:
        previous = text
        for pattern in _INJECTION_MARKERS:
            text = _remove_all(pattern, text)
    return text.strip()


def shannon_entropy(text: str) -> float:
    """Shannon entropy of ``text`` in bits per character."""
    if not text:
        return 0.0
    length = len(text)
    return -sum(
        (count / length) * math.log2(count / length)
        for count in Counter(text).values()
    )


def clean_message(message: str, max_chars: int = 1000, max_bytes: int = 4000) -> str:
    """Validate and sanitize a chat message before it reaches the LLM.

    Raises:
        ValidationError: if the message is too long, too large, invisible,
            or empty once injection markers are removed.
    """
    if not isinstance(message, str) or not message:
        raise ValidationError("Message field is required")

    normalized = normalize(message)
    if len(normalized) > max_chars:
        raise ValidationError(f"Message too long. Please keep under {max_chars} characters.")
    if len(normalized.encode("utf-8")) > max_bytes:
        raise ValidationError("Message too large. Please reduce content size.")
    if visible_length(normalized) < 1:
        raise ValidationError("Message cannot be empty after sanitization")

    sanitized = strip_injection_markers(strip_invisible(normalized))
    if not sanitized:
        raise ValidationError("Message cannot be empty after sanitization")
    return sanitized


def _clean_share_field(name: str, value: str, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Question and answer are required")
    normalized = strip_invisible(normalize(value)).strip()
    if len(normalized) > max_length:
        raise ValidationError(f"{name} must be at most {max_length} characters")
    sanitized = sanitize_html(normalized)
    if not sanitized:
        raise ValidationError("Question and answer cannot be empty after sanitization")
    return sanitized


def clean_share(
    question: str,
    answer: str,
    max_question: int = 500,
    max_answer: int = 5000,
) -> tuple[str, str]:
    """Validate and sanitize a question/answer pair for the share store."""
    return (
        _clean_share_field("Question", question, max_question),
        _clean_share_field("Answer", answer, max_answer),
    )
