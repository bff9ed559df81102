"""Process-local infrastructure services."""

from formshield.infra.cache import DecisionCache, fingerprint_submission

__all__ = ["DecisionCache", "fingerprint_submission"]
