"""Tests for matching and scoring modules."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import FailingBooster, FakeClock, FixedBooster, curated
from opportunity_radar.matching.ai_scorer import AIScorer
from opportunity_radar.matching.rule_scorer import RuleScorer, ScoringWeights
from opportunity_radar.matching.scorer import OpportunityScorer, rank
from opportunity_radar.matching.scorer_protocol import BoostScorer, Scorer
from opportunity_radar.models import MatchMethod, Opportunity, Profile

T0 = datetime(2026, 5, 1, tzinfo=timezone.utc)


def crawled(opp_id, title, tags=(), score=0.0, discovered_at=T0, company="Acme"):
    return Opportunity(
        id=opp_id,
        title=title,
        company=company,
        tags=set(tags),
        source_url=f"https://jobs.test/{opp_id}",
        match_score=score,
        discovered_at=discovered_at,
        source="remotive",
    )


class TestRuleScorer:
    """Tests for the deterministic base score."""

    def test_full_overlap(self, backend_profile):
        result = RuleScorer(backend_profile).match(crawled("a", "SDE Intern", tags=["backend", "go"]))
        assert result.score == 100.0
        assert result.matched_skills == ["backend", "go"]

    def test_no_overlap(self, backend_profile):
        assert RuleScorer(backend_profile).score(crawled("a", "Frontend Intern", tags=["frontend"])) == 0.0

    def test_skill_found_in_title(self, backend_profile):
        score = RuleScorer(backend_profile).score(crawled("a", "Go Developer Intern"))
        assert score == 50.0

    def test_word_boundaries(self, backend_profile):
        assert RuleScorer(backend_profile).match(crawled("a", "Google Intern")).matched_skills == []

    def test_role_and_department(self, student_profile):
        result = RuleScorer(student_profile).match(
            crawled("a", "Machine Learning Intern", tags=["python", "computer science"])
        )
        assert result.role_match is True
        assert result.matched_skills == ["python", "machine learning"]
        assert 0 < result.score <= 100

    def test_deterministic(self, student_profile):
        opp = crawled("a", "Data Intern", tags=["data", "sql"])
        assert RuleScorer(student_profile).score(opp) == RuleScorer(student_profile).score(opp)

    def test_custom_weights(self, backend_profile):
        weights = ScoringWeights(skill_overlap=1.0, interest_overlap=0, role_match=0, tag_coverage=0)
        opp = crawled("a", "Intern", tags=["backend", "sales", "marketing"])
        assert RuleScorer(backend_profile, weights).score(opp) == 50.0

    def test_empty_profile_scores_zero(self):
        assert RuleScorer(Profile()).score(crawled("a", "Intern")) == 0.0


class TestRanking:
    def test_score_then_recency_then_title(self):
        older = T0 - timedelta(days=1)
        opps = [
            crawled("1", "beta", score=50, discovered_at=T0),
            crawled("2", "Alpha", score=50, discovered_at=T0),
            crawled("3", "gamma", score=50, discovered_at=older),
            crawled("4", "zeta", score=90, discovered_at=older),
        ]
        assert [o.id for o in rank(opps)] == ["4", "2", "1", "3"]


class TestOpportunityScorer:
    def test_curated_floor_and_method(self, backend_profile):
        opps = [
            curated("cur-1", "Frontend Intern", "Campus", tags=["frontend"]),
            crawled("a", "SDE Intern", tags=["backend", "go"]),
        ]
        ranked = asyncio.run(OpportunityScorer(curated_floor=40).score(backend_profile, opps))

        assert [o.id for o in ranked] == ["a", "cur-1"]
        assert ranked[1].match_method is MatchMethod.CURATED
        assert ranked[1].match_score == 40
        assert ranked[0].match_method is MatchMethod.RULE

    def test_curated_keeps_higher_rule_score(self, backend_profile):
        opps = [curated("cur-1", "Backend Intern", "Campus", tags=["backend", "go"])]
        ranked = asyncio.run(OpportunityScorer(curated_floor=40).score(backend_profile, opps))
        assert ranked[0].match_score == 100.0

    def test_boost_replaces_rule_score(self, backend_profile):
        opps = [curated("cur-1", "Frontend Intern", "Campus"), crawled("a", "Frontend Intern", company="X")]
        ranked = asyncio.run(OpportunityScorer(booster=FixedBooster(77.0)).score(backend_profile, opps))

        boosted = next(o for o in ranked if o.id == "a")
        assert boosted.match_score == 77.0
        assert boosted.match_method is MatchMethod.AI_BOOSTED
        assert next(o for o in ranked if o.id == "cur-1").match_method is MatchMethod.CURATED

    def test_failing_boost_falls_back_to_rule(self, backend_profile):
        opps = [crawled("a", "SDE Intern", tags=["backend"]), crawled("b", "QA Intern")]
        booster = FailingBooster()
        ranked = asyncio.run(OpportunityScorer(booster=booster).score(backend_profile, opps))

        assert booster.calls == 1
        assert all(o.match_method is MatchMethod.RULE for o in ranked)
        assert ranked[0].id == "a"


class TestAIScorer:
    """Tests for the remote scorer client."""

    def test_disabled_without_url(self, backend_profile):
        scorer = AIScorer(url=None)
        assert scorer.enabled is False
        assert asyncio.run(scorer.score(backend_profile, [crawled("a", "SDE Intern")])) == {}

    def test_unreachable_service_returns_no_scores(self, backend_profile):
        scorer = AIScorer(url="http://127.0.0.1:1/score", timeout=2)
        result = asyncio.run(scorer.score(backend_profile, [crawled("a", "SDE Intern")]))
        assert result == {}
        assert scorer._consecutive_failures == 1

    def test_parse_scores(self):
        scorer = AIScorer(url="http://scorer.test")
        data = {
            "scores": [
                {"id": "a", "score": 88.123},
                {"id": "b", "score": 140},
                {"id": "c", "score": "high"},
                {"id": "d", "score": float("nan")},
                {"id": "e", "score": -5},
                {"id": "zzz", "score": 10},
                {"id": ["a"], "score": 50},
                {"id": None, "score": 50},
                "garbage",
            ]
        }
        assert scorer._parse_scores(data, {"a", "b", "c", "d", "e"}) == {"a": 88.12, "b": 100.0, "e": 0.0}

    def test_parse_scores_wrong_shape(self):
        from opportunity_radar.exceptions import ScoringServiceUnavailable

        with pytest.raises(ScoringServiceUnavailable):
            AIScorer(url="http://scorer.test")._parse_scores([1, 2, 3], {"a"})

    def test_failure_budget_and_cooldown(self):
        from opportunity_radar.exceptions import ScoringServiceUnavailable

        clock = FakeClock(start=0)
        scorer = AIScorer(url="http://scorer.test", max_failures=2, cooldown_seconds=30, clock=clock)
        scorer._record_failure(ScoringServiceUnavailable("HTTP 500"))
        assert scorer.available is True
        scorer._record_failure(ScoringServiceUnavailable("HTTP 500"))
        assert scorer.available is False

        clock.advance(31)
        assert scorer.available is True
        assert scorer._consecutive_failures == 0


class TestScorerProtocols:
    def test_rule_scorer_is_a_scorer(self, backend_profile):
        assert isinstance(RuleScorer(backend_profile), Scorer)

    def test_boosters_satisfy_boost_protocol(self):
        assert isinstance(AIScorer(url=None), BoostScorer)
        assert isinstance(FixedBooster(), BoostScorer)
