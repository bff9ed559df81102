"""Score to action mapping."""

from __future__ import annotations

from formshield.domain.models import Action, Decision, clamp_score

ALLOW_MIN_SCORE = 70
BLOCK_MAX_SCORE = 35


def score_to_action(score: float) -> Action:
    """The only place an action is derived from a score."""
    clamped = clamp_score(score)
    if clamped >= ALLOW_MIN_SCORE:
        return "allow"
    if clamped <= BLOCK_MAX_SCORE:
        return "block"
    return "review"


def finalize(score: float, reasons: list[str], details: dict | None = None) -> Decision:
    clamped = clamp_score(score)
    return Decision(
        action=score_to_action(clamped),
        score=clamped,
        reasons=list(reasons),
        details=dict(details or {}),
    )
