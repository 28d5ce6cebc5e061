"""Opportunity matching and scoring."""
from .ai_scorer import AIScorer
from .rule_scorer import RuleMatch, RuleScorer, ScoringWeights
from .scorer import OpportunityScorer, rank, rank_key

__all__ = [
    "AIScorer",
    "OpportunityScorer",
    "RuleMatch",
    "RuleScorer",
    "ScoringWeights",
    "rank",
    "rank_key",
]
