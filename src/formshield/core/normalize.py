"""Field canonicalization shared by scoring, rules and redaction."""

from __future__ import annotations

from collections import Counter
import math
import re
import unicodedata

from formshield.domain.models import FieldValue, Submission

_WHITESPACE_RE = re.compile(r"\s+")
_HTML_TAG_RE = re.compile(r"<[^>]*>")
_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)


def normalize_text(value: FieldValue) -> str | None:
    if value is None:
        return None
    text = unicodedata.normalize("NFC", str(value)).strip()
    text = _WHITESPACE_RE.sub(" ", text)
    return _HTML_TAG_RE.sub("", text)


def normalize_all(submission: Submission) -> dict[str, str]:
    """Canonicalize the well-known fields first, then every extra field."""
    out: dict[str, str] = {}
    extra = submission.fields

    def _add(key: str, value: FieldValue) -> None:
        text = normalize_text(value)
        if text is not None:
            out[key] = text

    _add("email", submission.email if submission.email is not None else extra.get("email"))
    _add("name", submission.name if submission.name is not None else extra.get("name"))
    _add("message", submission.message if submission.message is not None else extra.get("message"))
    _add("url", submission.url)
    for key, value in extra.items():
        if not out.get(key):
            _add(key, value)
    return out


def replace_urls(text: str) -> str:
    return _URL_RE.sub("[URL]", text)


def find_urls(text: str) -> list[str]:
    return _URL_RE.findall(text)


def shannon_entropy(text: str) -> float:
    if not text:
        return 0.0
    counts = Counter(text.lower())
    total = len(text)
    return -sum((n / total) * math.log2(n / total) for n in counts.values())
