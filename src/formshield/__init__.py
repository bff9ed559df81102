"""Spam and abuse decision engine for form submissions."""

from formshield.config.settings import BudgetLimits, EngineConfig, load_config
from formshield.core.rules import (
    rule_company_vs_domain_mismatch,
    rule_crypto_spam,
    rule_excessive_caps,
    rule_phone_looks_fake,
    rule_seo_spam,
    rule_url_only_message,
)
from formshield.domain.models import ClassifierResult, Decision, RuleOutcome, ScoreOutcome, Submission
from formshield.domain.strategy import parse_strategy
from formshield.errors import ClassifierError, ConfigurationError, FormShieldError
from formshield.orchestrator.pipeline import DecisionEngine, create_engine
from formshield.orchestrator.verdict import score_to_action
from formshield.providers import FunctionClassifier, StubClassifier, coerce_classifier_response

__all__ = [
    "BudgetLimits",
    "ClassifierError",
    "ClassifierResult",
    "ConfigurationError",
    "Decision",
    "DecisionEngine",
    "EngineConfig",
    "FormShieldError",
    "FunctionClassifier",
    "RuleOutcome",
    "ScoreOutcome",
    "StubClassifier",
    "Submission",
    "coerce_classifier_response",
    "create_engine",
    "load_config",
    "parse_strategy",
    "rule_company_vs_domain_mismatch",
    "rule_crypto_spam",
    "rule_excessive_caps",
    "rule_phone_looks_fake",
    "rule_seo_spam",
    "rule_url_only_message",
    "score_to_action",
]
