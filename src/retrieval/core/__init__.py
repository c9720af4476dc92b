"""Core retrieval system components."""

from .types import Document, SearchResult, RetrieveMethod, RetrieveRequest
from .utils import reciprocal_rank_fusion, multi_rrf_fusion

__all__ = [
    'Document',
    'SearchResult',
    'RetrieveMethod',
    'RetrieveRequest',
    'reciprocal_rank_fusion',
    'multi_rrf_fusion',
]
