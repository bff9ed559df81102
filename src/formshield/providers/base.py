"""The remote classifier capability consumed by the router."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from formshield.domain.models import ClassifierResult
from formshield.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONSERVATIVE_LABEL = "spam"
CONSERVATIVE_CONFIDENCE = 0.3


class Classifier(Protocol):
    id: str

    async def classify(self, payload: dict[str, Any]) -> ClassifierResult: ...


ClassifierRegistry = Mapping[str, Classifier]


def build_registry(classifiers: ClassifierRegistry | Iterable[Classifier] | None) -> dict[str, Classifier]:
    """Index classifiers by id; a mapping is taken as already indexed."""
    if classifiers is None:
        return {}
    if isinstance(classifiers, Mapping):
        return dict(classifiers)
    registry: dict[str, Classifier] = {}
    for item in classifiers:
        if item.id in registry:
            raise ConfigurationError(f"Duplicate classifier id: {item.id!r}")
        registry[item.id] = item
    return registry


def coerce_classifier_response(raw: Any, provider: str) -> ClassifierResult:
    """Normalize a vendor response at the adapter boundary.

    Anything that is not a valid ``{label, confidence, reasons?}`` object is
    replaced by a low-confidence spam verdict so it can never push a
    submission towards ``allow``.
    """
    if isinstance(raw, ClassifierResult):
        return raw if raw.provider else raw.model_copy(update={"provider": provider})
    if isinstance(raw, Mapping):
        candidate = dict(raw)
        if isinstance(candidate.get("confidence"), (int, float)) and not isinstance(candidate["confidence"], bool):
            candidate["confidence"] = max(0.0, min(1.0, float(candidate["confidence"])))
        if not isinstance(candidate.get("reasons"), list):
            candidate["reasons"] = []
        candidate.setdefault("provider", provider)
        candidate.pop("weight", None)
        try:
            return ClassifierResult.model_validate(candidate)
        except ValidationError as exc:
            logger.warning("Malformed response from %s: %s", provider, exc.error_count())
    else:
        logger.warning("Malformed response from %s: %s", provider, type(raw).__name__)
    return ClassifierResult(
        label=CONSERVATIVE_LABEL,
        confidence=CONSERVATIVE_CONFIDENCE,
        reasons=["ai:invalid-response"],
        provider=provider,
    )
