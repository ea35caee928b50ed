from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = Union[int, float]

EVALUATION_METHOD = "ai-4-pillars"

# Pillar weights: fixed, never derived from the ticket
PILLAR_WEIGHTS: dict[str, float] = {
    "ambiguity": 0.30,
    "technical_complexity": 0.40,
    "context_switching": 0.20,
    "technical_debt": 0.10,
}

MIN_SCORE = 1
MAX_SCORE = 10


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PillarBreakdown(_CamelModel):
    ambiguity: Number = 0
    technical_complexity: Number = 0
    context_switching: Number = 0
    technical_debt: Number = 0


class PillarWeights(_CamelModel):
    ambiguity: str = f"{PILLAR_WEIGHTS['ambiguity']:.0%}"
    technical_complexity: str = f"{PILLAR_WEIGHTS['technical_complexity']:.0%}"
    context_switching: str = f"{PILLAR_WEIGHTS['context_switching']:.0%}"
    technical_debt: str = f"{PILLAR_WEIGHTS['technical_debt']:.0%}"


class Evaluation(_CamelModel):
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    reason: str
    breakdown: PillarBreakdown
    weights: PillarWeights = Field(default_factory=PillarWeights)


class TokenUsage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


# ── Load bands shown by the issue panel ──────────────────────────────────────

DEEP_WORK_THRESHOLD = 7


def load_label(score: Number) -> str:
    if score <= 4:
        return "Low Load"
    if score <= 7:
        return "Medium Load"
    return "High Load"


def load_color(score: Number) -> str:
    if score <= 4:
        return "#36B37E"  # green
    if score <= 7:
        return "#FFAB00"  # yellow
    return "#FF5630"  # red


def needs_deep_work(score: Number) -> bool:
    return score > DEEP_WORK_THRESHOLD
