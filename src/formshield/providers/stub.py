"""Local classifiers for rules-only deployments, demos and tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import inspect
from typing import Any

from formshield.domain.models import ClassifierResult, Label
from formshield.providers.base import coerce_classifier_response


class StubClassifier:
    """Always answers with a fixed label and confidence."""

    def __init__(self, id: str = "stub", *, label: Label = "spam", confidence: float = 0.5) -> None:
        self.id = id
        self._label = label
        self._confidence = confidence

    async def classify(self, payload: dict[str, Any]) -> ClassifierResult:
        return ClassifierResult(
            label=self._label,
            confidence=self._confidence,
            reasons=["stub-provider"],
            provider=self.id,
        )


class FunctionClassifier:
    """Adapts a plain (sync or async) callable into a classifier."""

    def __init__(self, id: str, fn: Callable[[dict[str, Any]], Any | Awaitable[Any]]) -> None:
        self.id = id
        self._fn = fn

    async def classify(self, payload: dict[str, Any]) -> ClassifierResult:
        raw = self._fn(payload)
        if inspect.isawaitable(raw):
            raw = await raw
        return coerce_classifier_response(raw, self.id)
