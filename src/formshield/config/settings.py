"""Config loader from env + yaml."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from formshield.domain.strategy import NoneStrategy, RouterStrategy

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PACKAGE_ROOT / "config" / "defaults.yaml"

ENV_PREFIX = "FORMSHIELD_"

DEFAULT_GRAY_BAND = (45, 65)
DEFAULT_CACHE_TTL_S = 24.0 * 60 * 60
DEFAULT_COST_PER_CALL_USD = 0.001


class BudgetLimits(BaseModel):
    model_config = ConfigDict(frozen=True)

    per_request_usd: float | None = Field(default=None, ge=0.0)
    rolling_usd: float | None = Field(default=None, ge=0.0)
    window_s: float = Field(default=24 * 60 * 60, gt=0.0)
    cost_per_call_usd: float = Field(default=DEFAULT_COST_PER_CALL_USD, ge=0.0)


class EngineConfig(BaseModel):
    """Immutable configuration for one engine instance."""

    model_config = ConfigDict(frozen=True)

    gray_band: tuple[int, int] = Field(default=DEFAULT_GRAY_BAND)
    pii_policy: Literal["hash-local", "plain"] = Field(default="hash-local")
    cache_ttl_s: float = Field(default=DEFAULT_CACHE_TTL_S, ge=0.0)
    router: RouterStrategy = Field(default_factory=NoneStrategy)
    budget: BudgetLimits = Field(default_factory=BudgetLimits)
    disposable_domains: frozenset[str] = Field(default_factory=frozenset)
    allow_domains: frozenset[str] = Field(default_factory=frozenset)
    block_domains: frozenset[str] = Field(default_factory=frozenset)
    allow_emails_hashed: frozenset[str] = Field(default_factory=frozenset)
    block_emails_hashed: frozenset[str] = Field(default_factory=frozenset)
    block_keywords: tuple[str, ...] = Field(default=())
    tld_risk: dict[str, int] = Field(default_factory=dict)

    @field_validator("disposable_domains", "allow_domains", "block_domains", mode="before")
    @classmethod
    def _lowercase_domains(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(item).strip().lower() for item in value if str(item).strip())
        return value

    @model_validator(mode="after")
    def _check_gray_band(self) -> "EngineConfig":
        low, high = self.gray_band
        if low > high:
            raise ValueError(f"gray_band lower bound {low} exceeds upper bound {high}")
        return self

    @property
    def caching_enabled(self) -> bool:
        return self.cache_ttl_s > 0


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    return payload if isinstance(payload, dict) else {}


def _pick_env(name: str, fallback: Any) -> Any:
    value = os.getenv(ENV_PREFIX + name)
    return value if value not in (None, "") else fallback


def _parse_int(raw: Any, fallback: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return fallback


def _parse_float(raw: Any, fallback: float | None) -> float | None:
    if raw is None:
        return fallback
    try:
        return float(raw)
    except (TypeError, ValueError):
        return fallback


def _parse_policy(raw: Any, fallback: str) -> str:
    value = str(raw or "").strip().lower()
    return value if value in {"hash-local", "plain"} else fallback


def _resolve_config_path(path: str | Path | None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.getenv(ENV_PREFIX + "CONFIG_PATH")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: str | Path | None = None) -> tuple[EngineConfig, dict[str, Any]]:
    """Merge packaged defaults, an optional YAML file and env overrides."""
    merged = load_yaml(DEFAULT_CONFIG_PATH)
    config_path = _resolve_config_path(path)
    if config_path != DEFAULT_CONFIG_PATH:
        merged.update(load_yaml(config_path))

    band = merged.get("gray_band") if isinstance(merged.get("gray_band"), (list, tuple)) else []
    low, high = (list(band) + [None, None])[:2]
    low = _parse_int(low, DEFAULT_GRAY_BAND[0])
    high = _parse_int(high, DEFAULT_GRAY_BAND[1])
    ttl = _parse_float(merged.get("cache_ttl_s"), DEFAULT_CACHE_TTL_S)
    policy = _parse_policy(merged.get("pii_policy"), "hash-local")
    budget = merged.get("budget") if isinstance(merged.get("budget"), dict) else {}
    per_request = _parse_float(budget.get("per_request_usd"), None)
    rolling = _parse_float(budget.get("rolling_usd"), None)
    cost = _parse_float(budget.get("cost_per_call_usd"), DEFAULT_COST_PER_CALL_USD)

    payload = {
        **merged,
        "gray_band": (
            _parse_int(_pick_env("GRAY_BAND_LOW", low), low),
            _parse_int(_pick_env("GRAY_BAND_HIGH", high), high),
        ),
        "pii_policy": _parse_policy(_pick_env("PII_POLICY", policy), policy),
        "cache_ttl_s": _parse_float(_pick_env("CACHE_TTL_S", ttl), ttl),
        "router": merged.get("router") or {"mode": "none"},
        "budget": {
            **budget,
            "per_request_usd": _parse_float(_pick_env("BUDGET_PER_REQUEST_USD", per_request), per_request),
            "rolling_usd": _parse_float(_pick_env("BUDGET_ROLLING_USD", rolling), rolling),
            "cost_per_call_usd": _parse_float(_pick_env("COST_PER_CALL_USD", cost), cost),
        },
    }
    return EngineConfig.model_validate(payload), merged
