"""Tests for heuristic score rules."""

import pytest

from healthkb.core.models.chunk import SearchResult
from healthkb.core.strategies.scoring import (
    DEFAULT_RULES,
    KeywordRuleStrategy,
    ScoreFloorStrategy,
    ScoreRule,
    contains_all,
    contains_any,
)


def _result(text: str, score: float = 0.5) -> SearchResult:
    return SearchResult(chunk_id="c", source_id="s", text=text, similarity=score)


class TestPredicates:

    def test_contains_all(self) -> None:
        pred = contains_all("coil", "placement")
        assert pred("coil placement guide")
        assert not pred("coil only")

    def test_contains_any(self) -> None:
        pred = contains_any("disclaimer", "always follow")
        assert pred("please always follow the label")
        assert not pred("nothing here")


class TestKeywordRuleStrategy:
    """Test rule application."""

    def test_default_rules_order(self) -> None:
        assert [r.name for r in DEFAULT_RULES] == [
            "placement_coil",
            "install_above",
            "inside_coil",
            "disclaimer",
        ]

    def test_boost(self) -> None:
        strategy = KeywordRuleStrategy()
        assert strategy.delta_for("Coil PLACEMENT under the mattress") == pytest.approx(0.3)
        assert strategy.delta_for("Install it above the bed") == pytest.approx(0.2)

    def test_group_first_match_only(self) -> None:
        """Should fire only the first matching rule of a group."""
        strategy = KeywordRuleStrategy()
        text = "placement of the coil inside the cover; install above"
        assert strategy.delta_for(text) == pytest.approx(0.3)

    def test_boost_and_penalty_add(self) -> None:
        strategy = KeywordRuleStrategy()
        text = "Coil placement. Disclaimer: consult a doctor."
        assert strategy.delta_for(text) == pytest.approx(-0.1)

    def test_custom_rules(self) -> None:
        rules = [
            ScoreRule("zinc", contains_all("zinc"), 0.1),
            ScoreRule("iron", contains_all("iron"), 0.05),
        ]
        results = KeywordRuleStrategy(rules).apply("q", [_result("zinc and iron", 0.2)])
        assert results[0].similarity == pytest.approx(0.35)

    def test_empty_rules(self) -> None:
        results = KeywordRuleStrategy([]).apply("q", [_result("disclaimer", 0.2)])
        assert results[0].similarity == pytest.approx(0.2)


class TestScoreFloorStrategy:

    def test_floor(self) -> None:
        results = ScoreFloorStrategy(0.1).apply(
            "q", [_result("a", -0.5), _result("b", 0.05), _result("c", 0.7)]
        )
        assert [r.similarity for r in results] == [0.1, 0.1, 0.7]
