"""
Relevance scoring for retrieved knowledge-base documents.

Scores are additive integer points from a weight table: exact query matches
in title and content, per-keyword hits in title, content and tags, and a small
bonus for short documents. Ranking is a stable descending sort, so documents
with equal scores keep their store order.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

from rag.config import SCORING_CONFIG


@dataclass(frozen=True)
class ScoringWeights:
    """Tunable point table for the relevance signals."""
    title_exact_match: int = 100
    content_exact_match: int = 50
    title_keyword: int = 10
    content_keyword: int = 3
    tag_keyword: int = 15
    brevity_bonus: int = 5
    brevity_threshold: int = 1000

    @classmethod
    def from_config(cls) -> "ScoringWeights":
        return cls(**SCORING_CONFIG)


@dataclass
class ScoredDocument:
    """Candidate document paired with its relevance score for one retrieval call."""
    document: Any
    relevance_score: int


class RelevanceScorer:
    """Ranks candidate documents by weighted keyword and exact-match signals."""

    def __init__(self, weights: ScoringWeights = None):
        self.weights = weights or ScoringWeights.from_config()
        self.logger = logging.getLogger(__name__)

    def score(
        self,
        candidates: Sequence[Any],
        keywords: Sequence[str],
        original_query: str
    ) -> List[ScoredDocument]:
        """
        Score and sort candidates, highest score first.

        Args:
            candidates: Documents returned by the primary search
            keywords: Extracted query keywords (lowercase)
            original_query: The user's query as typed

        Returns:
            ScoredDocument list sorted by descending score, ties in input order
        """
        query_lower = original_query.lower()
        keywords = [k.lower() for k in keywords]
        scored = [
            ScoredDocument(document=doc, relevance_score=self._score_document(doc, keywords, query_lower))
            for doc in candidates
        ]
        # list.sort is stable
        scored.sort(key=lambda s: s.relevance_score, reverse=True)

        self.logger.debug(
            "Scored documents: "
            + ", ".join(f"{getattr(s.document, 'title', '?')}={s.relevance_score}" for s in scored)
        )
        return scored

    def rank(
        self,
        candidates: Sequence[Any],
        keywords: Sequence[str],
        original_query: str,
        limit: int
    ) -> List[Any]:
        """Top `limit` documents after scoring."""
        return [s.document for s in self.score(candidates, keywords, original_query)[:limit]]

    def _score_document(self, document: Any, keywords: Sequence[str], query_lower: str) -> int:
        w = self.weights
        content = document.content or ""
        title_lower = (document.title or "").lower()
        content_lower = content.lower()
        tags_lower = [tag.lower() for tag in (document.tags or []) if tag]

        score = 0
        if query_lower and query_lower in title_lower:
            score += w.title_exact_match
        if query_lower and query_lower in content_lower:
            score += w.content_exact_match

        for keyword in keywords:
            if keyword in title_lower:
                score += w.title_keyword
            if keyword in content_lower:
                score += w.content_keyword
            if any(keyword in tag for tag in tags_lower):
                score += w.tag_keyword

        if len(content) < w.brevity_threshold:
            score += w.brevity_bonus

        return score
