"""Rank fusion utilities.

Reciprocal Rank Fusion is rank-based, so it needs no score normalization
between heterogeneous sources (keyword density vs. vector distance).
Formula: RRF_score(doc) = sum(1 / (k + rank + 1)), rank is 0-based.
"""

from typing import Any, Dict, List, Sequence

DEFAULT_RRF_K = 60


def _accumulate(
    results: Sequence[Dict[str, Any]],
    k: int,
    doc_rrf_scores: Dict[str, float],
    doc_map: Dict[str, Dict[str, Any]],
) -> None:
    for rank, doc in enumerate(results):
        doc_id = doc["id"]
        if doc_id not in doc_map:
            doc_map[doc_id] = doc
        doc_rrf_scores[doc_id] = doc_rrf_scores.get(doc_id, 0.0) + 1.0 / (k + rank + 1)


def _collect(
    doc_rrf_scores: Dict[str, float],
    doc_map: Dict[str, Dict[str, Any]],
) -> List[Dict[str, Any]]:
    sorted_ids = sorted(doc_rrf_scores.items(), key=lambda x: x[1], reverse=True)
    return [{**doc_map[doc_id], "score": rrf_score} for doc_id, rrf_score in sorted_ids]


def reciprocal_rank_fusion(
    first_results: Sequence[Dict[str, Any]],
    second_results: Sequence[Dict[str, Any]],
    k: int = DEFAULT_RRF_K,
) -> List[Dict[str, Any]]:
    """Fuse two ranked lists (e.g. keyword then vector) with RRF.

    Documents are keyed by ``id``. When an id appears in both lists the
    fields of the first list win; only ``score`` is replaced by the fused
    value.

    Args:
        first_results: Ranked documents, best first
        second_results: Ranked documents, best first
        k: RRF constant (default 60)

    Returns:
        All distinct documents sorted by fused score descending
    """
    doc_rrf_scores: Dict[str, float] = {}
    doc_map: Dict[str, Dict[str, Any]] = {}

    _accumulate(first_results, k, doc_rrf_scores, doc_map)
    _accumulate(second_results, k, doc_rrf_scores, doc_map)

    return _collect(doc_rrf_scores, doc_map)


def multi_rrf_fusion(
    results_list: Sequence[Sequence[Dict[str, Any]]],
    k: int = DEFAULT_RRF_K,
) -> List[Dict[str, Any]]:
    """Fuse any number of ranked lists with RRF (multi-query fusion).

    Same rule as :func:`reciprocal_rank_fusion`; the first list that
    mentions an id supplies its fields. Documents ranked highly by several
    queries accumulate higher scores.

    Args:
        results_list: Result lists from different queries
        k: RRF constant (default 60)

    Returns:
        Fused documents sorted by RRF score descending, ``[]`` for no input
    """
    if not results_list:
        return []

    doc_rrf_scores: Dict[str, float] = {}
    doc_map: Dict[str, Dict[str, Any]] = {}

    for query_results in results_list:
        _accumulate(query_results, k, doc_rrf_scores, doc_map)

    return _collect(doc_rrf_scores, doc_map)
