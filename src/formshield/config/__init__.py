"""Engine configuration."""

from formshield.config.settings import BudgetLimits, EngineConfig, load_config

__all__ = ["BudgetLimits", "EngineConfig", "load_config"]
