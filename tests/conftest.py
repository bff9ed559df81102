from __future__ import annotations

import asyncio
import os
import random
from typing import Any

import pytest

from formshield.domain.models import ClassifierResult, ScoreOutcome


class ScriptedClassifier:
    """Async classifier double that records every payload it receives."""

    def __init__(
        self,
        id: str,
        label: str = "human",
        confidence: float = 0.9,
        reasons: list[str] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        raw: Any = None,
    ) -> None:
        self.id = id
        self.label = label
        self.confidence = confidence
        self.reasons = reasons or []
        self.error = error
        self.delay = delay
        self.raw = raw
        self.payloads: list[dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.payloads)

    async def classify(self, payload: dict[str, Any]) -> Any:
        self.payloads.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return self.raw
        return ClassifierResult(
            label=self.label,
            confidence=self.confidence,
            reasons=list(self.reasons),
            provider=self.id,
        )


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def scripted():
    return ScriptedClassifier


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def fixed_scorer():
    """Scorer factory that pins the local score at ``50 + delta``."""

    def _make(delta: float = 0.0, reasons: list[str] | None = None):
        calls: list[str] = []

        def _scorer(submission, normalized, config) -> ScoreOutcome:
            calls.append(normalized.get("message", ""))
            return ScoreOutcome(score_delta=delta, reasons=list(reasons or ["test:scored"]))

        _scorer.calls = calls
        return _scorer

    return _make


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("FORMSHIELD_"):
            monkeypatch.delenv(name, raising=False)
