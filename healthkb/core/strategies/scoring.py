
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from ..models.chunk import SearchResult

logger = logging.getLogger(__name__)

TextPredicate = Callable[[str], bool]


def contains_all(*words: str) -> TextPredicate:
    """Predicate: lowercased text contains every word."""
    return lambda text: all(w in text for w in words)


def contains_any(*words: str) -> TextPredicate:
    """Predicate: lowercased text contains at least one word."""
    return lambda text: any(w in text for w in words)


@dataclass(frozen=True)
class ScoreRule:
    """Content heuristic applied as a score delta.

    Rules sharing a ``group`` are exclusive: only the first matching rule
    of the group fires for a chunk.
    """
    name: str
    predicate: TextPredicate
    delta: float
    group: Optional[str] = None


DEFAULT_RULES: tuple[ScoreRule, ...] = (
    ScoreRule("placement_coil", contains_all("placement", "coil"), 0.3, group="installation"),
    ScoreRule("install_above", contains_all("install", "above"), 0.2, group="installation"),
    ScoreRule("inside_coil", contains_all("inside", "coil"), 0.2, group="installation"),
    ScoreRule("disclaimer", contains_any("disclaimer", "always follow"), -0.4),
)


class ScoringStrategy(ABC):
    """Base class for scoring strategies."""

    @abstractmethod
    def apply(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        """Apply strategy to results."""
        ...


class KeywordRuleStrategy(ScoringStrategy):
    """Adjust scores with ordered content rules."""

    def __init__(self, rules: tuple[ScoreRule, ...] | list[ScoreRule] | None = None):
        """Initialize strategy.

        Args:
            rules: Ordered rules; defaults to ``DEFAULT_RULES``.
        """
        self._rules = tuple(DEFAULT_RULES if rules is None else rules)

    @property
    def rules(self) -> tuple[ScoreRule, ...]:
        return self._rules

    def delta_for(self, text: str) -> float:
        """Total score delta for a chunk text."""
        lowered = text.lower()
        fired_groups: set[str] = set()
        delta = 0.0

        for rule in self._rules:
            if rule.group is not None and rule.group in fired_groups:
                continue
            if rule.predicate(lowered):
                delta += rule.delta
                if rule.group is not None:
                    fired_groups.add(rule.group)

        return delta

    def apply(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        """Add rule deltas to each result's score."""
        adjusted = 0
        for result in results:
            delta = self.delta_for(result.text)
            if delta:
                result.similarity += delta
                adjusted += 1

        if adjusted:
            logger.debug(f"Keyword rules adjusted {adjusted}/{len(results)} results")

        return results


class ScoreFloorStrategy(ScoringStrategy):
    """Clamp scores so no candidate is fully zeroed."""

    def __init__(self, floor: float = 0.1):
        self._floor = floor

    def apply(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        for result in results:
            result.similarity = max(self._floor, result.similarity)
        return results
