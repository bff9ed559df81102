"""Rule evaluation: ordered pure functions that may short-circuit the pipeline."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import logging
import re
from typing import TYPE_CHECKING, Any

from formshield.core.email import CONSUMER_DOMAINS, extract_domain, hash_local_part
from formshield.domain.models import Action, RuleOutcome, ScoreState, Submission

if TYPE_CHECKING:
    from formshield.config.settings import EngineConfig

logger = logging.getLogger(__name__)

Rule = Callable[[Submission, dict[str, str], int], "RuleOutcome | Mapping[str, Any] | None"]

_PHONE_FORMAT_RE = re.compile(r"^(?:\+?\d[\s\-.()]?){7,}$")
_PHONE_REPEATED_RE = re.compile(r"^(?:\+?1?[\s\-.()]?)?(\d)\1{2}[\s\-.()]?(\d)\2{2}[\s\-.()]?(\d)\3{3}$")
_URL_ONLY_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
SCORE_OVERRIDE_REASON = "rules:score-override"
_CRYPTO_KEYWORDS = (
    "bitcoin",
    "crypto",
    "forex",
    "trading",
    "investment opportunity",
    "get rich",
    "guaranteed profit",
    "blockchain",
    "nft",
    "web3",
    "airdrop",
)
_SEO_KEYWORDS = (
    "backlink",
    "seo service",
    "rank higher",
    "google ranking",
    "increase traffic",
    "domain authority",
    "page authority",
    "link building",
    "guest post",
    "sponsored post",
)


def _coerce_outcome(raw: RuleOutcome | Mapping[str, Any] | None) -> RuleOutcome | None:
    if raw is None or isinstance(raw, RuleOutcome):
        return raw
    return RuleOutcome.model_validate(dict(raw))


def apply_rules(
    submission: Submission,
    normalized: dict[str, str],
    state: ScoreState,
    rules: Sequence[Rule],
) -> Action:
    """Run ``rules`` in order against ``state``.

    Returns ``allow``/``block`` as soon as a rule asks for it (later rules are
    not run) and ``review`` otherwise.
    """
    for rule in rules:
        outcome = _coerce_outcome(rule(submission, normalized, state.score))
        if outcome is None:
            continue
        state.extend(outcome.reasons)
        if outcome.score is not None:
            if not outcome.reasons:
                state.extend([SCORE_OVERRIDE_REASON])
            state.overwrite(outcome.score)
        if outcome.action in {"allow", "block"}:
            logger.debug("Rule %s short-circuited with %s", getattr(rule, "__name__", rule), outcome.action)
            return outcome.action
    return "review"


def list_rules(config: EngineConfig) -> list[Rule]:
    """Allow/block list rules derived from config, evaluated before custom rules."""

    def _domain_lists(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
        email = normalized.get("email", "")
        domain = extract_domain(email) if email else None
        if domain and domain in config.allow_domains:
            return RuleOutcome(action="allow", score=90, reasons=["rules:allow-domain"])
        if domain and domain in config.block_domains:
            return RuleOutcome(action="block", score=5, reasons=["rules:block-domain"])
        return None

    def _email_hash_lists(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
        email = normalized.get("email", "")
        if not email or not (config.allow_emails_hashed or config.block_emails_hashed):
            return None
        digest = hash_local_part(email)
        if digest in config.allow_emails_hashed:
            return RuleOutcome(action="allow", score=95, reasons=["rules:allow-email-hash"])
        if digest in config.block_emails_hashed:
            return RuleOutcome(action="block", score=0, reasons=["rules:block-email-hash"])
        return None

    return [_domain_lists, _email_hash_lists]


# Reusable rules. None of these are enabled by default.


def rule_phone_looks_fake(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
    phone = normalized.get("phone") or normalized.get("tel") or normalized.get("telephone") or ""
    if not phone:
        return None
    if not _PHONE_FORMAT_RE.match(phone):
        return RuleOutcome(score=35, reasons=["phone:invalid-format"])
    if _PHONE_REPEATED_RE.match(phone):
        return RuleOutcome(score=25, reasons=["phone:repeated-digits"])
    digits = [int(ch) for ch in phone if ch.isdigit()]
    sequential = sum(1 for prev, cur in zip(digits, digits[1:]) if cur == prev + 1)
    if sequential >= 6:
        return RuleOutcome(score=30, reasons=["phone:sequential-digits"])
    return None


def rule_url_only_message(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
    message = normalized.get("message", "")
    if message and _URL_ONLY_RE.match(message.strip()):
        return RuleOutcome(action="block", score=5, reasons=["msg:url-only"])
    return None


def rule_company_vs_domain_mismatch(
    submission: Submission,
    normalized: dict[str, str],
    score: int,
) -> RuleOutcome | None:
    email = normalized.get("email", "")
    email_domain = extract_domain(email) if email else None
    website = normalized.get("website") or normalized.get("url") or normalized.get("company_url") or ""
    if not email_domain or not website:
        return None
    website_domain = re.sub(r"^https?://", "", website)
    website_domain = re.sub(r"^www\.", "", website_domain).split("/")[0].lower()
    if not website_domain:
        return None
    if website_domain.endswith(email_domain) or email_domain.endswith(website_domain):
        return None
    if email_domain in CONSUMER_DOMAINS:
        return None
    return RuleOutcome(score=40, reasons=["cross:email-website-mismatch"])


def rule_excessive_caps(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
    message = normalized.get("message", "")
    if len(message) < 20:
        return None
    letters = [ch for ch in message if "a" <= ch.lower() <= "z" and ch.isascii()]
    if not letters:
        return None
    if sum(1 for ch in letters if ch.isupper()) / len(letters) > 0.6:
        return RuleOutcome(score=35, reasons=["msg:excessive-caps"])
    return None


def rule_crypto_spam(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
    message = normalized.get("message", "").lower()
    if message and sum(1 for keyword in _CRYPTO_KEYWORDS if keyword in message) >= 2:
        return RuleOutcome(score=25, reasons=["msg:crypto-spam"])
    return None


def rule_seo_spam(submission: Submission, normalized: dict[str, str], score: int) -> RuleOutcome | None:
    message = normalized.get("message", "").lower()
    if message and any(keyword in message for keyword in _SEO_KEYWORDS):
        return RuleOutcome(score=20, reasons=["msg:seo-spam"])
    return None
