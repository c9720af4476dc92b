"""Retrieval tunables.

Values come from ``config/retrieval.yaml`` (environment overrides via
``${VAR:default}``) or can be built directly for tests.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from config import load_config


@dataclass
class RetrievalConfig:
    """Numeric knobs used by RetrievalManager."""

    # Fusion
    rrf_k: int = 60

    # Keyword scoring: exact_match_bonus + hits / len(content) * density_scale
    exact_match_bonus: float = 2.0
    density_scale: float = 1000.0

    # Vector search: top_k per memory type = limit * vector_overfetch_factor
    vector_overfetch_factor: int = 2

    # Agentic, expansion mode
    per_query_min_limit: int = 15

    # Agentic, multi-round mode
    round1_top_n: int = 20
    round1_rerank_top_n: int = 5
    round2_per_query_top_n: int = 20
    combined_total: int = 40
    sufficiency_max_docs: int = 5
    max_refined_queries: int = 3

    @classmethod
    def from_dict(cls, config_dict: Optional[Dict[str, Any]]) -> "RetrievalConfig":
        """Build from the nested ``retrieval.yaml`` layout."""
        if not config_dict:
            return cls()

        fusion = config_dict.get("fusion") or {}
        keyword = config_dict.get("keyword") or {}
        vector = config_dict.get("vector") or {}
        agentic = config_dict.get("agentic") or {}
        defaults = cls()

        return cls(
            rrf_k=fusion.get("rrf_k", defaults.rrf_k),
            exact_match_bonus=keyword.get("exact_match_bonus", defaults.exact_match_bonus),
            density_scale=keyword.get("density_scale", defaults.density_scale),
            vector_overfetch_factor=vector.get("overfetch_factor", defaults.vector_overfetch_factor),
            per_query_min_limit=agentic.get("per_query_min_limit", defaults.per_query_min_limit),
            round1_top_n=agentic.get("round1_top_n", defaults.round1_top_n),
            round1_rerank_top_n=agentic.get("round1_rerank_top_n", defaults.round1_rerank_top_n),
            round2_per_query_top_n=agentic.get("round2_per_query_top_n", defaults.round2_per_query_top_n),
            combined_total=agentic.get("combined_total", defaults.combined_total),
            sufficiency_max_docs=agentic.get("sufficiency_max_docs", defaults.sufficiency_max_docs),
            max_refined_queries=agentic.get("max_refined_queries", defaults.max_refined_queries),
        )

    @classmethod
    def from_config(cls, name: str = "retrieval") -> "RetrievalConfig":
        """Load from ``config/<name>.yaml``."""
        return cls.from_dict(load_config(name).to_dict())
