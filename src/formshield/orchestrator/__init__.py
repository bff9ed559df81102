"""Workflow orchestration layer.

Exports are loaded lazily so that importing a single stage does not pull in
the whole pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from formshield.orchestrator.budget import BudgetGate, BudgetStats, RequestSpend
    from formshield.orchestrator.merge import merge_blend, merge_majority
    from formshield.orchestrator.pipeline import DecisionEngine, create_engine
    from formshield.orchestrator.router import ClassifierRouter, ab_bucket
    from formshield.orchestrator.verdict import finalize, score_to_action

__all__ = [
    "BudgetGate",
    "BudgetStats",
    "ClassifierRouter",
    "DecisionEngine",
    "RequestSpend",
    "ab_bucket",
    "create_engine",
    "finalize",
    "merge_blend",
    "merge_majority",
    "score_to_action",
]

_EXPORTS = {
    "BudgetGate": "formshield.orchestrator.budget",
    "BudgetStats": "formshield.orchestrator.budget",
    "ClassifierRouter": "formshield.orchestrator.router",
    "DecisionEngine": "formshield.orchestrator.pipeline",
    "RequestSpend": "formshield.orchestrator.budget",
    "ab_bucket": "formshield.orchestrator.router",
    "create_engine": "formshield.orchestrator.pipeline",
    "finalize": "formshield.orchestrator.verdict",
    "merge_blend": "formshield.orchestrator.merge",
    "merge_majority": "formshield.orchestrator.merge",
    "score_to_action": "formshield.orchestrator.verdict",
}


def __getattr__(name: str) -> Any:
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(name)
    from importlib import import_module

    return getattr(import_module(module_name), name)
