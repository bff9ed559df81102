"""PII redaction before anything leaves the process."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from formshield.core.email import extract_domain, hash_local_part, local_part
from formshield.core.normalize import replace_urls
from formshield.domain.models import FieldValue, RedactedPayload, Submission

if TYPE_CHECKING:
    from formshield.config.settings import EngineConfig

MAX_MESSAGE_CHARS = 1500

_PHONE_RE = re.compile(r"(\+?\d{1,3}[\s\-.]?)?(\(?\d{3}\)?[\s\-.]?)?\d{3}[\s\-.]?\d{4}")
_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PII_FIELD_KEYS = frozenset({"email", "phone", "tel", "name", "firstName", "lastName"})


def mask_text(text: str) -> str:
    text = replace_urls(text)
    text = _PHONE_RE.sub("[PHONE]", text)
    return _EMAIL_RE.sub("[EMAIL]", text)


def _redact_fields(fields: dict[str, FieldValue]) -> dict[str, FieldValue]:
    redacted: dict[str, FieldValue] = {}
    for key, value in fields.items():
        if key in _PII_FIELD_KEYS:
            continue
        redacted[key] = mask_text(value) if isinstance(value, str) else value
    return redacted


def redact_submission(
    submission: Submission,
    normalized: dict[str, str],
    config: EngineConfig,
) -> RedactedPayload:
    hash_local = config.pii_policy == "hash-local"
    email = normalized.get("email", "")
    message = normalized.get("message", "")

    email_hash = None
    domain = None
    if email:
        domain = extract_domain(email)
        email_hash = hash_local_part(email) if hash_local else local_part(email)

    redacted_message = mask_text(message[:MAX_MESSAGE_CHARS]) if message else None

    fields: dict[str, FieldValue] | None = None
    if submission.fields:
        fields = _redact_fields(submission.fields) if hash_local else dict(submission.fields)

    return RedactedPayload(
        email_hash=email_hash,
        domain=domain,
        message=redacted_message,
        user_agent=submission.user_agent,
        url=submission.url,
        fields=fields,
    )
