"""Staged decision pipeline.

cache -> local scoring -> rules -> gray band -> budget -> redaction ->
routing -> merge -> cache store. Every stage may end the evaluation early;
only the routing stage swallows failures.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
import random
from typing import Any

from formshield.config.settings import EngineConfig
from formshield.core.heuristics import score_submission
from formshield.core.normalize import normalize_all
from formshield.core.redact import redact_submission
from formshield.core.rules import Rule, apply_rules, list_rules
from formshield.domain.models import (
    ClassifierResult,
    Decision,
    RedactedPayload,
    ScoreOutcome,
    ScoreState,
    Submission,
)
from formshield.domain.strategy import BlendStrategy, NoneStrategy, VoteStrategy
from formshield.errors import ConfigurationError
from formshield.infra.cache import DecisionCache, fingerprint_submission
from formshield.orchestrator.budget import BudgetGate
from formshield.orchestrator.merge import merge_blend, merge_majority
from formshield.orchestrator.router import ClassifierRouter
from formshield.orchestrator.tracing import EventChannel, EventSink
from formshield.orchestrator.verdict import finalize
from formshield.providers.base import Classifier

logger = logging.getLogger(__name__)

Scorer = Callable[[Submission, dict[str, str], EngineConfig], "ScoreOutcome | Mapping[str, Any]"]
Redactor = Callable[[Submission, dict[str, str], EngineConfig], "RedactedPayload | Mapping[str, Any]"]


class DecisionEngine:
    """Owns the cache, budget gate and router for one configuration."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        classifiers: Mapping[str, Classifier] | Iterable[Classifier] | None = None,
        rules: Sequence[Rule] = (),
        scorer: Scorer = score_submission,
        redactor: Redactor = redact_submission,
        cache: DecisionCache | None = None,
        budget: BudgetGate | None = None,
        event_sink: EventSink | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._events = EventChannel(event_sink)
        self._router = ClassifierRouter(classifiers, rng=rng, events=self._events)
        if not isinstance(self.config.router, NoneStrategy):
            self._router.validate(self.config.router)
        self._rules: list[Rule] = [*list_rules(self.config), *rules]
        self._scorer = scorer
        self._redactor = redactor
        self.cache = cache or DecisionCache(self.config.cache_ttl_s)
        self.budget = budget or BudgetGate(window_s=self.config.budget.window_s)

    def _store(self, key: str | None, decision: Decision) -> Decision:
        if key is not None:
            self.cache.set(key, decision)
        self._events.emit("finalize", "ok", decision.action, {"score": decision.score})
        return decision

    def _in_gray_band(self, score: int) -> bool:
        low, high = self.config.gray_band
        return low <= score <= high

    async def evaluate(self, submission: Submission | Mapping[str, Any]) -> Decision:
        if not isinstance(submission, Submission):
            submission = Submission.model_validate(dict(submission))

        key: str | None = None
        if self.config.caching_enabled:
            key = fingerprint_submission(submission)
            cached = self.cache.get(key)
            if cached is not None:
                self._events.emit("cache", "hit", "served from cache", {"fingerprint": key})
                return cached.with_reasons("cache:hit")
            self._events.emit("cache", "miss", "no live entry", {"fingerprint": key})

        request_budget = self.budget.open_request()
        normalized = normalize_all(submission)

        outcome = self._scorer(submission, normalized, self.config)
        if not isinstance(outcome, ScoreOutcome):
            outcome = ScoreOutcome.model_validate(dict(outcome))
        state = ScoreState()
        state.apply_delta(outcome.score_delta)
        state.extend(outcome.reasons)
        self._events.emit("heuristics", "ok", "local scoring done", {"score": state.score})

        action = apply_rules(submission, normalized, state, self._rules)
        if action != "review":
            self._events.emit("rules", "short_circuit", action, {"score": state.score})
            return self._store(key, Decision(action=action, score=state.score, reasons=list(state.reasons)))
        self._events.emit("rules", "ok", "no rule short-circuited", {"score": state.score})

        strategy = self.config.router
        if isinstance(strategy, NoneStrategy) or not self._in_gray_band(state.score):
            self._events.emit("gray_band", "skipped", "remote classification not needed", {"score": state.score})
            return self._store(key, finalize(state.score, state.reasons))

        limits = self.config.budget
        if not self.budget.try_reserve(
            limits.cost_per_call_usd,
            limits.per_request_usd,
            limits.rolling_usd,
            request=request_budget,
        ):
            logger.info("AI budget exhausted, finalizing on rules score %s", state.score)
            self._events.emit("budget", "denied", "budget exceeded")
            return self._store(key, finalize(state.score, [*state.reasons, "ai:budget-exceeded"]))

        payload = self._redactor(submission, normalized, self.config)
        if not isinstance(payload, RedactedPayload):
            payload = RedactedPayload.model_validate(dict(payload))

        reasons = list(state.reasons)
        results: list[ClassifierResult] = []
        router_failed = False
        try:
            results = await self._router.route(strategy, payload)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.warning("Router failed (%s): %s", type(exc).__name__, exc)
            self._events.emit("router", "error", "router failed", {"error": type(exc).__name__})
            reasons.append("ai:router-error")
            router_failed = True

        if not router_failed:
            self._events.emit("router", "ok", "routing settled", {"results": len(results)})
            if not results:
                reasons.append("ai:no-results")

        base = finalize(state.score, reasons)
        if isinstance(strategy, BlendStrategy):
            merged = merge_blend(base, results)
        else:
            min_agree = strategy.min_agree if isinstance(strategy, VoteStrategy) else None
            merged = merge_majority(base, results, min_agree=min_agree)
        self._events.emit("merge", "ok", merged.action, {"score": merged.score})
        return self._store(key, merged)


def create_engine(config: EngineConfig | None = None, **kwargs: Any) -> DecisionEngine:
    return DecisionEngine(config, **kwargs)
