"""Fold classifier results into a rules-stage decision."""

from __future__ import annotations

from collections.abc import Sequence
from statistics import fmean
from typing import Any

from formshield.domain.models import ClassifierResult, Decision, Label
from formshield.orchestrator.verdict import finalize

MAX_AI_DELTA = 10.0
TIE_BREAK_LABEL: Label = "spam"


def _provider_reasons(results: Sequence[ClassifierResult]) -> list[str]:
    return [f"ai:{result.provider or 'p'}:{reason}" for result in results for reason in result.reasons]


def _mean_confidence(results: Sequence[ClassifierResult]) -> float:
    return fmean(result.confidence for result in results) if results else 0.0


def _dump_results(results: Sequence[ClassifierResult]) -> list[dict[str, Any]]:
    return [result.model_dump(exclude_none=True) for result in results]


def _merged(base: Decision, delta: float, reasons: list[str], ai_details: dict[str, Any]) -> Decision:
    return finalize(
        base.score + delta,
        [*base.reasons, *reasons],
        {**base.details, "ai": ai_details},
    )


def pick_majority(results: Sequence[ClassifierResult]) -> Label:
    """Majority label; ties go to higher mean confidence, then to spam."""
    human = [result for result in results if result.label == "human"]
    spam = [result for result in results if result.label == "spam"]
    if len(human) != len(spam):
        return "human" if len(human) > len(spam) else "spam"
    if _mean_confidence(human) > _mean_confidence(spam):
        return "human"
    return TIE_BREAK_LABEL


def merge_majority(base: Decision, results: Sequence[ClassifierResult], *, min_agree: int | None = None) -> Decision:
    if not results:
        return base

    votes = {
        "human": sum(1 for result in results if result.label == "human"),
        "spam": sum(1 for result in results if result.label == "spam"),
    }
    majority = pick_majority(results)
    mean_confidence = _mean_confidence([result for result in results if result.label == majority])

    if min_agree is not None and votes[majority] < min_agree:
        details = {
            "results": _dump_results(results),
            "majority": majority,
            "mean_confidence": mean_confidence,
            "votes": votes,
            "min_agree": min_agree,
            "delta": 0.0,
        }
        return _merged(base, 0.0, ["ai:no-quorum", *_provider_reasons(results)], details)

    delta = (MAX_AI_DELTA if majority == "human" else -MAX_AI_DELTA) * mean_confidence
    details = {
        "results": _dump_results(results),
        "majority": majority,
        "mean_confidence": mean_confidence,
        "delta": delta,
        "votes": votes,
    }
    return _merged(base, delta, [f"ai:{majority}", *_provider_reasons(results)], details)


def merge_blend(base: Decision, results: Sequence[ClassifierResult]) -> Decision:
    if not results:
        return base

    total_weight = sum(result.weight or 1.0 for result in results)
    weighted_sum = sum(
        (1.0 if result.label == "human" else -1.0) * result.confidence * (result.weight or 1.0)
        for result in results
    )
    delta = (weighted_sum / total_weight) * MAX_AI_DELTA
    details = {
        "results": _dump_results(results),
        "strategy": "blend",
        "delta": delta,
        "weighted_sum": weighted_sum,
        "total_weight": total_weight,
        "votes": {
            "human": sum(1 for result in results if result.label == "human"),
            "spam": sum(1 for result in results if result.label == "spam"),
        },
    }
    return _merged(base, delta, ["ai:blend", *_provider_reasons(results)], details)
