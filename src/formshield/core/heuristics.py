"""Default local scoring: cheap regex and entropy signals."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from formshield.core.email import extract_domain, is_valid_email, local_part, local_part_quality
from formshield.core.normalize import find_urls
from formshield.domain.models import ScoreOutcome, Submission

if TYPE_CHECKING:
    from formshield.config.settings import EngineConfig

DEFAULT_DISPOSABLE_DOMAINS = frozenset(
    {
        "10minutemail.com",
        "guerrillamail.com",
        "mailinator.com",
        "maildrop.cc",
        "sharklasers.com",
        "tempmail.com",
        "temp-mail.org",
        "throwawaymail.com",
        "trashmail.com",
        "yopmail.com",
    }
)

_URL_ONLY_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
_INJECTION_PATTERNS = (
    re.compile(r"ignore\s+previous", re.IGNORECASE),
    re.compile(r"system\s*:", re.IGNORECASE),
    re.compile(r"assistant\s*:", re.IGNORECASE),
    re.compile(r"<script>", re.IGNORECASE),
    re.compile(r"</system>", re.IGNORECASE),
    re.compile(r"you\s+are\s+now", re.IGNORECASE),
    re.compile(r"\[INST\]", re.IGNORECASE),
    re.compile(r"<<SYS>>", re.IGNORECASE),
)
_BASE64_RE = re.compile(r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$")
_EMOJI_RE = re.compile("[\U0001F300-\U0001F9FF]")
_REPEATED_CHARS_RE = re.compile(r"(.)\1{3,}")
_BOT_UA_TOKENS = ("bot", "crawler", "spider", "scraper")

_TOO_FAST_MS = 2_000
_TOO_SLOW_MS = 3_600_000


class _Tally:
    def __init__(self) -> None:
        self.delta = 0
        self.reasons: list[str] = []

    def hit(self, delta: int, reason: str) -> None:
        self.delta += delta
        self.reasons.append(reason)


def _score_email(email: str, config: EngineConfig, tally: _Tally) -> None:
    if not email:
        tally.hit(-15, "email:missing")
        return
    if not is_valid_email(email):
        tally.hit(-20, "email:invalid-format")
        return
    domain = extract_domain(email)
    if not domain:
        return
    if domain in DEFAULT_DISPOSABLE_DOMAINS or domain in config.disposable_domains:
        tally.hit(-25, "email:disposable-domain")
    if domain in config.block_domains:
        tally.hit(-50, "email:blocked-domain")
    tld = domain.rsplit(".", 1)[-1]
    penalty = config.tld_risk.get(tld)
    if penalty:
        tally.hit(-int(penalty), f"email:risky-tld-{tld}")
    quality, reasons = local_part_quality(local_part(email), domain)
    tally.delta += quality
    tally.reasons.extend(reasons)


def _score_message(message: str, config: EngineConfig, tally: _Tally) -> None:
    if not message:
        tally.hit(-10, "msg:missing")
        return
    if _URL_ONLY_RE.match(message.strip()):
        tally.hit(-30, "msg:url-only")

    urls = find_urls(message)
    if len(urls) > 3:
        tally.hit(-15, "msg:excessive-urls")
    elif len(urls) > 1:
        tally.hit(-8, "msg:multiple-urls")
    if sum(len(url) for url in urls) / len(message) > 0.5:
        tally.hit(-12, "msg:high-link-density")

    if len(message) < 10:
        tally.hit(-10, "msg:too-short")
    elif len(message) > 5000:
        tally.hit(-5, "msg:suspiciously-long")

    lowered = message.lower()
    for keyword in config.block_keywords:
        if keyword.lower() in lowered:
            tally.hit(-15, f"msg:blocked-keyword-{keyword}")

    if any(pattern.search(message) for pattern in _INJECTION_PATTERNS):
        tally.hit(-20, "ai:injection-attempt")

    words = message.split()
    if any(len(word) > 50 and _BASE64_RE.match(word) for word in words):
        tally.hit(-15, "msg:base64-payload")

    frequencies: dict[str, int] = {}
    for token in lowered.split():
        if len(token) > 3:
            frequencies[token] = frequencies.get(token, 0) + 1
    if frequencies and max(frequencies.values()) > 5:
        tally.hit(-10, "msg:keyword-stuffing")


def _score_name(name: str, tally: _Tally) -> None:
    if not name:
        tally.hit(-5, "name:missing")
        return
    if len(_EMOJI_RE.findall(name)) > 2:
        tally.hit(-10, "name:excessive-emoji")
    ascii_ratio = sum(1 for ch in name if ord(ch) < 128) / len(name)
    if ascii_ratio < 0.5 and len(name) > 5:
        tally.hit(-5, "name:low-ascii-ratio")
    if _REPEATED_CHARS_RE.search(name):
        tally.hit(-8, "name:repeated-chars")


def _score_timing(submission: Submission, tally: _Tally) -> None:
    if not submission.submitted_at_ms or not submission.rendered_at_ms:
        return
    fill_time = submission.submitted_at_ms - submission.rendered_at_ms
    if fill_time < _TOO_FAST_MS:
        tally.hit(-15, "timing:too-fast")
    if fill_time > _TOO_SLOW_MS:
        tally.hit(-5, "timing:suspiciously-slow")


def _score_user_agent(submission: Submission, tally: _Tally) -> None:
    if submission.user_agent is None:
        return
    ua = submission.user_agent.lower()
    if any(token in ua for token in _BOT_UA_TOKENS):
        tally.hit(-25, "ua:bot-detected")
    if not ua.strip():
        tally.hit(-10, "ua:missing")


def score_submission(
    submission: Submission,
    normalized: dict[str, str],
    config: EngineConfig,
) -> ScoreOutcome:
    """Return the signed score delta (relative to neutral 50) and its reasons."""
    tally = _Tally()
    _score_email(normalized.get("email", ""), config, tally)
    _score_message(normalized.get("message", ""), config, tally)
    _score_name(normalized.get("name", ""), tally)
    _score_timing(submission, tally)
    _score_user_agent(submission, tally)
    return ScoreOutcome(score_delta=tally.delta, reasons=tally.reasons)
