"""Retrieval module - memory search over a mixed keyword/vector store.

This module contains:
- core: types, storage interfaces, tokenizer, rank fusion, tunables
- manager: RetrievalManager (keyword / vector / hybrid / agentic + rerank)
- pipelines: LLM helpers for agentic retrieval (sufficiency, refined queries)
- expanders: LLM query expansion

Usage:
    from retrieval import RetrievalManager, RetrieveRequest, RetrieveMethod

    manager = RetrievalManager(storage, llm_provider)
    results = await manager.retrieve(RetrieveRequest(query="...", method="hybrid"))
"""

from .core import (
    Document,
    SearchResult,
    RetrieveMethod,
    RetrieveRequest,
    reciprocal_rank_fusion,
    multi_rrf_fusion,
)
from .core.config import RetrievalConfig
from .manager import RetrievalManager

__all__ = [
    "Document",
    "SearchResult",
    "RetrieveMethod",
    "RetrieveRequest",
    "RetrievalConfig",
    "RetrievalManager",
    "reciprocal_rank_fusion",
    "multi_rrf_fusion",
]
