"""Keyword/tag similarity between nodes.

Each node is reduced to two sets: keywords from its title and body, and
normalized tags. The sets are compared with Jaccard, cosine (over binary
term vectors), or their mean, then blended by the configured weights.
Two empty sets score 0.0 here; scores are capped at 1.0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Set

from notegraph.domain.node import Node
from notegraph.domain.rules import SimilarityAlgorithm, SimilarityConfig
from notegraph.domain.text import TextAnalyzer


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def cosine(a: Set[str], b: Set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / math.sqrt(len(a) * len(b))


class SimilarityCalculator:
    """Scores nodes against each other or against a keyword/tag profile."""

    def __init__(
        self,
        config: SimilarityConfig | None = None,
        analyzer: TextAnalyzer | None = None,
    ) -> None:
        self.config = config or SimilarityConfig()
        self.analyzer = analyzer or TextAnalyzer()

    def calculate(self, first: Node | None, second: Node | None) -> float:
        if first is None or second is None:
            return 0.0
        return self._blend(
            self._set_similarity(self.keywords(first), self.keywords(second)),
            self._set_similarity(self.tags(first), self.tags(second)),
        )

    def calculate_with_keywords(
        self,
        node: Node | None,
        keywords: Set[str],
        tags: Set[str],
    ) -> float:
        """Score *node* against a precomputed keyword and tag profile."""
        if node is None or (not keywords and not tags):
            return 0.0
        return self._blend(
            self._set_similarity(self.keywords(node), keywords),
            self._set_similarity(self.tags(node), tags),
        )

    def calculate_batch(self, source: Node | None, candidates: Iterable[Node]) -> dict[str, float]:
        """Score every candidate except *source* itself, keyed by node ID."""
        if source is None:
            return {}
        keywords = self.keywords(source)
        tags = self.tags(source)
        return {
            candidate.id: self.calculate_with_keywords(candidate, keywords, tags)
            for candidate in candidates
            if candidate.id != source.id
        }

    def keywords(self, node: Node) -> set[str]:
        text = node.content.text
        if not self.config.use_stop_words:
            return set(self.analyzer.tokenize(text))
        return {
            kw
            for kw in self.analyzer.extract_keywords(text)
            if len(kw) >= self.config.min_word_length
        }

    @staticmethod
    def tags(node: Node) -> set[str]:
        return {t.strip().lower() for t in node.tags if t.strip()}

    def _set_similarity(self, a: Set[str], b: Set[str]) -> float:
        if not a and not b:
            return 0.0
        algorithm = self.config.algorithm
        if algorithm == SimilarityAlgorithm.COSINE:
            return cosine(a, b)
        if algorithm == SimilarityAlgorithm.HYBRID:
            return (jaccard(a, b) + cosine(a, b)) / 2.0
        return jaccard(a, b)

    def _blend(self, keyword_sim: float, tag_sim: float) -> float:
        total = math.fsum(
            (keyword_sim * self.config.keyword_weight, tag_sim * self.config.tag_weight)
        )
        return min(total, 1.0)
