"""Domain contracts shared by every pipeline stage."""

from formshield.domain.models import (
    Action,
    ClassifierResult,
    Decision,
    FieldValue,
    Label,
    RedactedPayload,
    RuleOutcome,
    ScoreOutcome,
    ScoreState,
    Submission,
)
from formshield.domain.strategy import (
    ABStrategy,
    BlendMember,
    BlendStrategy,
    CanaryStrategy,
    FallbackStrategy,
    FirstAvailableStrategy,
    NoneStrategy,
    RouterStrategy,
    VoteStrategy,
    parse_strategy,
)

__all__ = [
    "ABStrategy",
    "Action",
    "BlendMember",
    "BlendStrategy",
    "CanaryStrategy",
    "ClassifierResult",
    "Decision",
    "FallbackStrategy",
    "FieldValue",
    "FirstAvailableStrategy",
    "Label",
    "NoneStrategy",
    "RedactedPayload",
    "RouterStrategy",
    "RuleOutcome",
    "ScoreOutcome",
    "ScoreState",
    "Submission",
    "VoteStrategy",
    "parse_strategy",
]
