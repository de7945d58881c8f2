"""Business-rule configuration consumed by the graph core.

Values only: loading them from TOML or the environment is the job of
:mod:`notegraph.config`. Defaults here are the production defaults.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class DomainConfig(BaseModel):
    """Quotas and content bounds enforced by the aggregate and validators."""

    model_config = {"frozen": True}

    max_nodes_per_graph: int = 10_000
    max_edges_per_graph: int = 50_000
    max_connections_per_node: int = 100
    max_tags_per_node: int = 20
    max_bulk_operation_size: int = 100
    min_similarity_threshold: float = 0.3
    default_graph_name: str = "Default Graph"

    max_title_length: int = 255
    max_body_length: int = 50_000
    max_coordinate: float = 10_000.0
    max_graph_name_length: int = 255
    max_graph_tags: int = 20


class SimilarityAlgorithm(StrEnum):
    """Set-similarity measure used by the similarity calculator."""

    JACCARD = "jaccard"
    COSINE = "cosine"
    HYBRID = "hybrid"


class SimilarityConfig(BaseModel):
    """Weights for the keyword/tag similarity blend."""

    model_config = {"frozen": True}

    algorithm: SimilarityAlgorithm = SimilarityAlgorithm.HYBRID
    tag_weight: float = 0.3
    keyword_weight: float = 0.7
    min_word_length: int = 3
    use_stop_words: bool = True


class DiscoveryConfig(BaseModel):
    """Thresholds for automatic edge discovery."""

    model_config = {"frozen": True}

    min_similarity: float = 0.3
    strong_edge_threshold: float = 0.7
    max_edges_per_node: int = 50
    consider_bidirectional: bool = True
