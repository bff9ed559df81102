"""Submission, decision and classifier contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Action = Literal["allow", "review", "block"]
Label = Literal["human", "spam"]
FieldValue = str | int | float | bool | None

NEUTRAL_SCORE = 50


def clamp_score(value: float) -> int:
    """Round half up and clamp into [0, 100]."""
    return max(0, min(100, math.floor(float(value) + 0.5)))


class Submission(BaseModel):
    """A single form submission as received from the host application."""

    model_config = ConfigDict(frozen=True)

    email: str | None = None
    name: str | None = None
    message: str | None = None
    url: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    rendered_at_ms: int | None = None
    submitted_at_ms: int | None = None
    fields: dict[str, FieldValue] = Field(default_factory=dict)


class Decision(BaseModel):
    action: Action
    score: int = Field(ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)

    def with_reasons(self, *extra: str) -> "Decision":
        return self.model_copy(update={"reasons": [*self.reasons, *extra]}, deep=True)


class ClassifierResult(BaseModel):
    label: Label
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)
    provider: str | None = None
    weight: float | None = Field(default=None, gt=0.0)


class RedactedPayload(BaseModel):
    """PII-safe view of a submission, the only thing remote classifiers see."""

    email_hash: str | None = None
    domain: str | None = None
    message: str | None = None
    user_agent: str | None = None
    url: str | None = None
    fields: dict[str, FieldValue] | None = None

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ScoreOutcome(BaseModel):
    score_delta: float = 0.0
    reasons: list[str] = Field(default_factory=list)


class RuleOutcome(BaseModel):
    action: Action | None = None
    score: float | None = None
    reasons: list[str] = Field(default_factory=list)


@dataclass
class ScoreState:
    """Running score and causal reason trail for one evaluation."""

    score: int = NEUTRAL_SCORE
    reasons: list[str] = field(default_factory=list)

    def apply_delta(self, delta: float) -> None:
        self.score = clamp_score(self.score + delta)

    def overwrite(self, score: float) -> None:
        self.score = clamp_score(score)

    def extend(self, reasons: list[str]) -> None:
        self.reasons.extend(str(item) for item in reasons)
