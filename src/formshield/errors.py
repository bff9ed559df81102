"""Exception taxonomy for the decision engine."""

from __future__ import annotations


class FormShieldError(Exception):
    """Base class for every error raised by formshield."""


class ConfigurationError(FormShieldError):
    """Invalid engine wiring, e.g. a strategy naming an unregistered classifier."""


class ClassifierError(FormShieldError):
    """Raised by classifier adapters when a remote call fails."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
