"""Email address helpers."""

from __future__ import annotations

import hashlib
import re

from formshield.core.normalize import shannon_entropy

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NUMERIC_SUFFIX_RE = re.compile(r"^[a-z]+[0-9]{4,}$", re.IGNORECASE)
_VOWEL_RE = re.compile(r"[aeiou]", re.IGNORECASE)
_HUMAN_LOCAL_RES = (
    re.compile(r"^[a-z]{2,}[._+-][a-z]{2,}", re.IGNORECASE),
    re.compile(r"^[a-z]{3,}[._+-]?[a-z]{0,3}$", re.IGNORECASE),
)
_REPEATED_RE = re.compile(r"(.)\1{2,}")
_KEYBOARD_RUNS = ("qwerty", "asdfgh", "zxcvbn", "123456", "qazwsx", "poiuyt")

CONSUMER_DOMAINS = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "aol.com",
        "icloud.com",
        "mail.com",
        "protonmail.com",
        "gmx.com",
        "yandex.com",
        "zoho.com",
    }
)
_STRICT_CONSUMER_DOMAINS = frozenset(
    {"gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "icloud.com", "protonmail.com"}
)


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def extract_domain(email: str) -> str | None:
    parts = email.split("@")
    if len(parts) != 2:
        return None
    return parts[1].lower()


def local_part(email: str) -> str:
    return email.split("@", 1)[0]


def hash_local_part(email: str) -> str:
    return hashlib.sha256(local_part(email).encode("utf-8")).hexdigest()


def local_part_quality(local: str, domain: str) -> tuple[int, list[str]]:
    """Score how machine-generated an address local part looks."""
    score = 0
    reasons: list[str] = []
    if not local:
        return score, reasons

    if shannon_entropy(local) > 4.5:
        score -= 15
        reasons.append("email:high-entropy")
    if _NUMERIC_SUFFIX_RE.match(local):
        score -= 12
        reasons.append("email:numeric-suffix-spam")
    vowel_ratio = len(_VOWEL_RE.findall(local)) / len(local)
    if vowel_ratio < 0.1 or vowel_ratio > 0.8:
        score -= 10
        reasons.append("email:abnormal-vowel-ratio")
    if domain.lower() in _STRICT_CONSUMER_DOMAINS and not any(p.match(local) for p in _HUMAN_LOCAL_RES):
        score -= 18
        reasons.append("email:random-on-consumer-domain")
    if _REPEATED_RE.search(local):
        score -= 8
        reasons.append("email:repeated-chars")
    lowered = local.lower()
    if any(run in lowered for run in _KEYBOARD_RUNS):
        score -= 10
        reasons.append("email:keyboard-mash")
    return score, reasons
