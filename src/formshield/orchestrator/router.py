"""Fan-out of redacted payloads to remote classifiers.

One handler per strategy variant. Handlers never raise for an individual
classifier failure except ``first-available``, which names exactly one
classifier and lets its failure propagate. Unknown classifier ids referenced
by a strategy are configuration errors, except for ``vote``/``blend``
members, which are dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
import hashlib
import json
import logging
import random
from typing import Any, Literal

from pydantic import ValidationError

from formshield.domain.models import ClassifierResult, RedactedPayload
from formshield.domain.strategy import (
    ABStrategy,
    BlendStrategy,
    CanaryStrategy,
    FallbackStrategy,
    FirstAvailableStrategy,
    NoneStrategy,
    RouterStrategy,
    VoteStrategy,
)
from formshield.errors import ClassifierError, ConfigurationError
from formshield.orchestrator.tracing import EventChannel
from formshield.providers.base import Classifier, ClassifierRegistry, build_registry

logger = logging.getLogger(__name__)

Handler = Callable[[Any, dict[str, Any]], Awaitable[list[ClassifierResult]]]


def stable_payload_text(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str)


def ab_bucket(payload: Mapping[str, Any], salt: str | None = None) -> Literal["a", "b"]:
    """Deterministic arm assignment: odd digest routes to ``b``."""
    token = stable_payload_text(payload) + (salt or "")
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
    return "b" if int(digest, 16) % 2 == 1 else "a"


class ClassifierRouter:
    def __init__(
        self,
        classifiers: ClassifierRegistry | None = None,
        *,
        rng: random.Random | None = None,
        events: EventChannel | None = None,
    ) -> None:
        self._classifiers = build_registry(classifiers)
        self._rng = rng or random.Random()
        self._events = events or EventChannel()
        self._handlers: dict[type, Handler] = {
            NoneStrategy: self._route_none,
            FirstAvailableStrategy: self._route_first_available,
            FallbackStrategy: self._route_fallback,
            VoteStrategy: self._route_vote,
            BlendStrategy: self._route_blend,
            CanaryStrategy: self._route_canary,
            ABStrategy: self._route_ab,
        }

    def validate(self, strategy: RouterStrategy) -> None:
        """Raise ``ConfigurationError`` if a required classifier is not registered."""
        if type(strategy) not in self._handlers:
            raise ConfigurationError(f"Unsupported router strategy: {strategy!r}")
        missing = [item for item in strategy.fatal_references() if item not in self._classifiers]
        if missing:
            raise ConfigurationError(
                f"Strategy {strategy.mode!r} references unknown classifier(s): {', '.join(missing)}"
            )

    async def route(
        self,
        strategy: RouterStrategy,
        payload: RedactedPayload | Mapping[str, Any],
    ) -> list[ClassifierResult]:
        self.validate(strategy)
        body = payload.as_payload() if isinstance(payload, RedactedPayload) else dict(payload)
        return await self._handlers[type(strategy)](strategy, body)

    def _require(self, classifier_id: str) -> Classifier:
        classifier = self._classifiers.get(classifier_id)
        if classifier is None:
            raise ConfigurationError(f"Classifier {classifier_id!r} not registered")
        return classifier

    async def _call(self, classifier: Classifier, payload: dict[str, Any]) -> ClassifierResult:
        raw = await classifier.classify(payload)
        try:
            result = raw if isinstance(raw, ClassifierResult) else ClassifierResult.model_validate(raw)
        except ValidationError as exc:
            raise ClassifierError(classifier.id, f"response violates contract ({exc.error_count()} errors)") from exc
        if result.provider is None:
            result = result.model_copy(update={"provider": classifier.id})
        return result

    def _report_failure(self, classifier_id: str, exc: BaseException, *, stage: str = "router") -> None:
        reason = "timeout" if isinstance(exc, (asyncio.TimeoutError, TimeoutError)) else type(exc).__name__
        logger.warning("Classifier %s failed: %s (%s)", classifier_id, reason, exc)
        self._events.emit(stage, "error", f"classifier {classifier_id} failed", {"provider": classifier_id, "error": reason})

    async def _settle(self, classifier_id: str, payload: dict[str, Any]) -> ClassifierResult | None:
        classifier = self._classifiers.get(classifier_id)
        if classifier is None:
            logger.warning("Classifier %s not registered, skipping", classifier_id)
            self._events.emit("router", "skipped", f"classifier {classifier_id} not registered", {"provider": classifier_id})
            return None
        try:
            return await self._call(classifier, payload)
        except Exception as exc:
            self._report_failure(classifier_id, exc)
            return None

    async def _route_none(self, strategy: NoneStrategy, payload: dict[str, Any]) -> list[ClassifierResult]:
        return []

    async def _route_first_available(
        self,
        strategy: FirstAvailableStrategy,
        payload: dict[str, Any],
    ) -> list[ClassifierResult]:
        return [await self._call(self._require(strategy.order[0]), payload)]

    async def _route_fallback(self, strategy: FallbackStrategy, payload: dict[str, Any]) -> list[ClassifierResult]:
        primary = self._require(strategy.primary)
        secondary = self._require(strategy.secondary)
        try:
            return [await asyncio.wait_for(self._call(primary, payload), timeout=strategy.timeout_s)]
        except Exception as exc:
            self._report_failure(strategy.primary, exc)

        self._events.emit("router", "fallback", f"using fallback classifier {strategy.secondary}")
        try:
            result = await self._call(secondary, payload)
        except Exception as exc:
            self._report_failure(strategy.secondary, exc)
            return []
        return [result.model_copy(update={"provider": f"{strategy.secondary}(fallback)"})]

    async def _route_vote(self, strategy: VoteStrategy, payload: dict[str, Any]) -> list[ClassifierResult]:
        settled = await asyncio.gather(*(self._settle(member, payload) for member in strategy.members))
        return [result for result in settled if result is not None]

    async def _route_blend(self, strategy: BlendStrategy, payload: dict[str, Any]) -> list[ClassifierResult]:
        settled = await asyncio.gather(*(self._settle(member.id, payload) for member in strategy.members))
        return [
            result.model_copy(update={"weight": member.weight})
            for member, result in zip(strategy.members, settled)
            if result is not None
        ]

    async def _single(self, classifier_id: str, provider_tag: str, payload: dict[str, Any]) -> list[ClassifierResult]:
        classifier = self._require(classifier_id)
        try:
            result = await self._call(classifier, payload)
        except Exception as exc:
            self._report_failure(classifier_id, exc)
            return []
        return [result.model_copy(update={"provider": provider_tag})]

    async def _route_canary(self, strategy: CanaryStrategy, payload: dict[str, Any]) -> list[ClassifierResult]:
        use_candidate = self._rng.random() < strategy.pct / 100.0
        if use_candidate:
            return await self._single(strategy.candidate, f"{strategy.candidate}(canary)", payload)
        return await self._single(strategy.control, strategy.control, payload)

    async def _route_ab(self, strategy: ABStrategy, payload: dict[str, Any]) -> list[ClassifierResult]:
        arm = ab_bucket(payload, strategy.salt)
        classifier_id = strategy.b if arm == "b" else strategy.a
        return await self._single(classifier_id, f"{classifier_id}({arm})", payload)
