"""Router strategy descriptors.

Each fan-out policy is one variant of a closed union discriminated on
``mode``. The router keeps exactly one handler per variant.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

DEFAULT_FALLBACK_TIMEOUT_S = 0.8


class _Strategy(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def fatal_references(self) -> list[str]:
        """Classifier ids that must be registered for this strategy to run."""
        return []


class NoneStrategy(_Strategy):
    mode: Literal["none"] = "none"


class FirstAvailableStrategy(_Strategy):
    mode: Literal["first-available"] = "first-available"
    order: list[str] = Field(min_length=1)

    def fatal_references(self) -> list[str]:
        return [self.order[0]]


class FallbackStrategy(_Strategy):
    mode: Literal["fallback"] = "fallback"
    primary: str
    secondary: str
    timeout_s: float = Field(default=DEFAULT_FALLBACK_TIMEOUT_S, gt=0.0)

    def fatal_references(self) -> list[str]:
        return [self.primary, self.secondary]


class VoteStrategy(_Strategy):
    mode: Literal["vote"] = "vote"
    members: list[str] = Field(min_length=1)
    min_agree: int | None = Field(default=None, ge=1)


class BlendMember(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    weight: float = Field(default=1.0, gt=0.0)


class BlendStrategy(_Strategy):
    mode: Literal["blend"] = "blend"
    members: list[BlendMember] = Field(min_length=1)


class CanaryStrategy(_Strategy):
    mode: Literal["canary"] = "canary"
    control: str
    candidate: str
    pct: float = Field(ge=0.0, le=100.0)

    def fatal_references(self) -> list[str]:
        return [self.control, self.candidate]


class ABStrategy(_Strategy):
    mode: Literal["ab"] = "ab"
    a: str
    b: str
    salt: str | None = None

    def fatal_references(self) -> list[str]:
        return [self.a, self.b]


RouterStrategy = Annotated[
    Union[
        NoneStrategy,
        FirstAvailableStrategy,
        FallbackStrategy,
        VoteStrategy,
        BlendStrategy,
        CanaryStrategy,
        ABStrategy,
    ],
    Field(discriminator="mode"),
]

_STRATEGY_ADAPTER: TypeAdapter[Any] = TypeAdapter(RouterStrategy)


def parse_strategy(raw: Any) -> RouterStrategy:
    """Validate a mapping such as ``{"mode": "vote", "members": [...]}``."""
    if isinstance(raw, _Strategy):
        return raw
    return _STRATEGY_ADAPTER.validate_python(raw or {"mode": "none"})
