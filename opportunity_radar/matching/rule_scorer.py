"""Rule-based relevance scoring: weighted overlap between profile and posting."""
import re
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from opportunity_radar.dedup.deduplicator import normalize_text
from opportunity_radar.models import Opportunity, Profile


class ScoringWeights(BaseModel):
    """Relative weights of the rule score components."""

    skill_overlap: float = Field(default=0.50, ge=0)
    interest_overlap: float = Field(default=0.20, ge=0)
    role_match: float = Field(default=0.20, ge=0)
    tag_coverage: float = Field(default=0.10, ge=0)


@dataclass
class RuleMatch:
    """Result of rule-based matching."""

    score: float  # 0-100
    matched_skills: list[str] = field(default_factory=list)
    matched_interests: list[str] = field(default_factory=list)
    role_match: bool = False


class RuleScorer:
    """Score opportunities against one profile.

    Pure and deterministic: the same profile and posting always give the
    same score, with no external calls.
    """

    def __init__(self, profile: Profile, weights: ScoringWeights | None = None):
        self.profile = profile
        self.weights = weights or ScoringWeights()
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Compile word-boundary patterns for the profile's terms."""
        self.skills = [normalize_text(s) for s in self.profile.skills if normalize_text(s)]
        self.interests = [normalize_text(i) for i in self.profile.interests if normalize_text(i)]
        self.skill_patterns = [re.compile(rf"\b{re.escape(s)}\b") for s in self.skills]
        self.interest_patterns = [re.compile(rf"\b{re.escape(i)}\b") for i in self.interests]

        role_terms = []
        for value in (self.profile.role, self.profile.department):
            term = normalize_text(value)
            if term and term not in role_terms:
                role_terms.append(term)
        self.role_terms = role_terms
        self.role_patterns = [re.compile(rf"\b{re.escape(t)}\b") for t in role_terms]

        self.profile_terms = set(self.skills) | set(self.interests)

    def match(self, opportunity: Opportunity) -> RuleMatch:
        """
        Match an opportunity against the profile.

        Components (each 0-1):
            skill_overlap: share of profile skills found in tags or title
            interest_overlap: share of profile interests found in tags or title
            role_match: share of role/department terms found in title, tags, company or type
            tag_coverage: share of the posting's tags covered by profile terms

        A component only counts when it applies (the profile has terms for it,
        or the posting has tags for coverage); the score is the weighted mean
        of the applicable components scaled to 0-100.
        """
        tags = {normalize_text(t) for t in opportunity.tags if normalize_text(t)}
        title = normalize_text(opportunity.title)
        tag_text = " | ".join(sorted(tags))
        searchable = f"{title} | {tag_text}"

        matched_skills = [
            s for s, p in zip(self.skills, self.skill_patterns) if s in tags or p.search(searchable)
        ]
        matched_interests = [
            i for i, p in zip(self.interests, self.interest_patterns) if i in tags or p.search(searchable)
        ]

        role_text = " | ".join(
            [title, tag_text, normalize_text(opportunity.company), normalize_text(opportunity.type)]
        )
        matched_roles = [t for t, p in zip(self.role_terms, self.role_patterns) if p.search(role_text)]

        components: list[tuple[float, float]] = []
        if self.skills:
            components.append((self.weights.skill_overlap, len(matched_skills) / len(self.skills)))
        if self.interests:
            components.append((self.weights.interest_overlap, len(matched_interests) / len(self.interests)))
        if self.role_terms:
            components.append((self.weights.role_match, len(matched_roles) / len(self.role_terms)))
        if tags:
            covered = len(tags & self.profile_terms)
            components.append((self.weights.tag_coverage, covered / len(tags)))

        total_weight = sum(w for w, _ in components)
        if total_weight <= 0:
            score = 0.0
        else:
            score = 100.0 * sum(w * v for w, v in components) / total_weight

        return RuleMatch(
            score=round(score, 2),
            matched_skills=matched_skills,
            matched_interests=matched_interests,
            role_match=bool(matched_roles),
        )

    def score(self, opportunity: Opportunity) -> float:
        return self.match(opportunity).score
