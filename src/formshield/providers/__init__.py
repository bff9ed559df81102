"""Classifier capability and reference adapters."""

from formshield.providers.base import (
    Classifier,
    ClassifierRegistry,
    build_registry,
    coerce_classifier_response,
)
from formshield.providers.stub import FunctionClassifier, StubClassifier

__all__ = [
    "Classifier",
    "ClassifierRegistry",
    "FunctionClassifier",
    "StubClassifier",
    "build_registry",
    "coerce_classifier_response",
]
