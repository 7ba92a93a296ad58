"""Candidate scoring for encyclopedia search hits.

Each hit is scored from its title and short description:

- +exact_title if the title equals the name (case-insensitive), else
  +partial_title if either contains the other
- +title_keyword if the title carries a profession keyword for the kind
- +description_keyword per distinct profession keyword in the description,
  capped at description_keyword_cap
- +organization if title or description names an agency/studio/company
- +negative (a large penalty) if the description names a wrong profession

A hit is accepted only when its score is non-negative AND it showed a
profession signal. Name similarity alone never accepts a candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from poster_enrichment.config import settings
from poster_enrichment.enrichment.keywords import (
    has_negative_keyword,
    has_organization_keyword,
    is_disambiguation,
    profession_hits,
)
from poster_enrichment.enrichment.schemas import ScoredCandidate
from poster_enrichment.models.enums import EntityKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    """Weights for each scoring signal."""

    exact_title: int = 100
    partial_title: int = 50
    title_keyword: int = 30
    description_keyword: int = 15
    description_keyword_cap: int = 45
    organization: int = 10
    negative: int = -200

    @classmethod
    def from_settings(cls) -> ScoringWeights:
        return cls(
            exact_title=settings.score_exact_title,
            partial_title=settings.score_partial_title,
            title_keyword=settings.score_title_keyword,
            description_keyword=settings.score_description_keyword,
            description_keyword_cap=settings.score_description_keyword_cap,
            organization=settings.score_organization,
            negative=settings.score_negative,
        )


@dataclass
class SearchHit:
    """Raw candidate before scoring."""

    title: str
    url: str
    description: str = ""


class CandidateScorer:
    """Scores and selects encyclopedia candidates for a name.

    Usage:
        scorer = CandidateScorer()
        best = scorer.select("Paul Colin", EntityKind.ARTIST, hits)
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self._weights = weights or ScoringWeights.from_settings()

    @property
    def weights(self) -> ScoringWeights:
        return self._weights

    def score(self, name: str, kind: EntityKind, hit: SearchHit) -> ScoredCandidate:
        """Score a single hit against the name and expected kind."""
        w = self._weights
        result = ScoredCandidate(title=hit.title, url=hit.url, description=hit.description)

        name_lower = name.strip().lower()
        title_lower = hit.title.strip().lower()
        if title_lower == name_lower:
            result.score += w.exact_title
            result.reasons.append("exact_title")
        elif name_lower in title_lower or title_lower in name_lower:
            result.score += w.partial_title
            result.reasons.append("partial_title")

        if profession_hits(hit.title, kind):
            result.score += w.title_keyword
            result.has_profession_match = True
            result.reasons.append("title_keyword")

        description_hits = profession_hits(hit.description, kind)
        if description_hits:
            result.score += min(
                w.description_keyword * len(description_hits), w.description_keyword_cap
            )
            result.has_profession_match = True
            result.reasons.append(f"description_keywords={sorted(description_hits)}")

        if has_organization_keyword(hit.title) or has_organization_keyword(hit.description):
            result.score += w.organization
            result.has_profession_match = True
            result.reasons.append("organization")

        if has_negative_keyword(hit.description):
            result.score += w.negative
            result.reasons.append("negative_keyword")

        return result

    def select(
        self,
        name: str,
        kind: EntityKind,
        hits: list[SearchHit],
    ) -> ScoredCandidate | None:
        """Pick the best acceptable hit, or None.

        Disambiguation pages are dropped before scoring. The top-scoring hit
        is returned only if it scores >= 0 and has a profession match.
        """
        scored = [
            self.score(name, kind, hit)
            for hit in hits
            if not is_disambiguation(hit.title, hit.description)
        ]
        if not scored:
            return None

        for candidate in scored:
            logger.debug(
                "Candidate %r for %r (%s): score=%d profession=%s %s",
                candidate.title,
                name,
                kind.value,
                candidate.score,
                candidate.has_profession_match,
                candidate.reasons,
            )

        best = max(scored, key=lambda c: c.score)
        if best.score < 0 or not best.has_profession_match:
            logger.info(
                "Rejected best candidate %r for %r (score=%d, profession=%s)",
                best.title,
                name,
                best.score,
                best.has_profession_match,
            )
            return None
        return best
