"""Scoring strategies and heuristic rules."""
from .scoring import (
    DEFAULT_RULES,
    KeywordRuleStrategy,
    ScoreFloorStrategy,
    ScoreRule,
    ScoringStrategy,
    contains_all,
    contains_any,
)

__all__ = [
    "DEFAULT_RULES",
    "KeywordRuleStrategy",
    "ScoreFloorStrategy",
    "ScoreRule",
    "ScoringStrategy",
    "contains_all",
    "contains_any",
]
