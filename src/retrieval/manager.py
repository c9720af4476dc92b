"""Retrieval orchestrator.

Dispatches a RetrieveRequest to one of four strategies:

- keyword: CJK-aware tokenization -> ordered ``LIKE`` predicate -> in-memory
  density scoring
- vector: one query embedding, nearest-neighbour search per memory type with
  soft scope filtering
- hybrid (alias rrf): keyword and vector branches in parallel, fused with RRF
- agentic: multi-query retrieval
    * expansion mode (no agentic completion provider): expand -> parallel
      hybrid per sub-query -> N-way RRF
    * multi-round mode: round 1 hybrid -> rerank top 5 -> LLM sufficiency
      check -> refined queries -> parallel round 2 hybrid -> N-way RRF ->
      merge with round 1 -> final rerank

An optional rerank pass runs after dispatch; the result list is truncated
to ``request.limit`` once at the very end.
"""

import asyncio
from typing import Any, Dict, List, Optional

from core.observation.logger import activity_scope, get_logger
from memory.schema.memory_type import MemoryType

from .core.config import RetrievalConfig
from .core.interfaces import QueryExpansionProvider
from .core.tokenizer import cjk_tokenize
from .core.types import RetrieveMethod, RetrieveRequest, SearchResult
from .core.utils import multi_rrf_fusion, reciprocal_rank_fusion
from .pipelines.llm_utils import check_sufficiency, generate_refined_queries

logger = get_logger(__name__)

KEYWORD_TABLE = "memories"
_PASSTHROUGH_FIELDS = ("group_id", "created_at", "updated_at")


def _escape_like(token: str) -> str:
    return token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _build_result(
    record: Dict[str, Any],
    score: float,
    memory_type: Any,
    metadata: Any,
) -> SearchResult:
    result: SearchResult = {
        "id": record.get("id"),
        "score": score,
        "content": record.get("content") or "",
        "metadata": metadata,
        "type": memory_type.value if isinstance(memory_type, MemoryType) else memory_type,
    }
    for field in _PASSTHROUGH_FIELDS:
        if record.get(field) is not None:
            result[field] = record[field]
    return result


def _in_scope(hit: Dict[str, Any], request: RetrieveRequest) -> bool:
    """Soft scope filter.

    A hit is rejected only when it carries a user_id/group_id that differs
    from the request's; hits without scope fields pass through.
    """
    hit_user = hit.get("user_id")
    if request.user_id is not None and hit_user is not None and hit_user != request.user_id:
        return False
    hit_group = hit.get("group_id")
    if request.group_id is not None and hit_group is not None and hit_group != request.group_id:
        return False
    return True


class RetrievalManager:
    """Top-level retrieval entry point."""

    def __init__(
        self,
        storage,
        llm_provider,
        query_expansion_provider: Optional[QueryExpansionProvider] = None,
        agentic_completion_provider=None,
        config: Optional[RetrievalConfig] = None,
    ):
        """Initialize the manager.

        Args:
            storage: Adapter exposing ``relational.query`` and ``vector.search``
            llm_provider: Exposes ``get_embedding`` and optionally ``rerank``
            query_expansion_provider: Sub-query generator for agentic search
            agentic_completion_provider: Completion capability enabling
                multi-round agentic search (sufficiency check + refined queries)
            config: Retrieval tunables, loaded from ``config/retrieval.yaml``
                when omitted
        """
        self.storage = storage
        self.llm_provider = llm_provider
        self.query_expansion_provider = query_expansion_provider
        self.agentic_completion_provider = agentic_completion_provider
        self.config = config or RetrievalConfig.from_config()

    @property
    def has_rerank(self) -> bool:
        return callable(getattr(self.llm_provider, "rerank", None))

    async def retrieve(self, request: RetrieveRequest) -> List[SearchResult]:
        """Run the requested strategy, optionally rerank, truncate to limit.

        All logging for one call shares an activity id.
        """
        with activity_scope():
            return await self._retrieve(request)

    async def _retrieve(self, request: RetrieveRequest) -> List[SearchResult]:
        method = request.method
        logger.debug(f"Retrieve: method={method.value}, limit={request.limit}, query={request.query[:80]!r}")

        if method == RetrieveMethod.KEYWORD:
            results = await self.keyword_search(request)
        elif method == RetrieveMethod.VECTOR:
            results = await self.vector_search(request)
        elif method in (RetrieveMethod.HYBRID, RetrieveMethod.RRF):
            results = await self.hybrid_search(request)
        else:
            results = await self.agentic_search(request)

        if request.use_rerank and self.has_rerank and results:
            results = await self.apply_rerank(request.query, results)

        return results[: request.limit]

    # ------------------------------------------------------------------
    # Keyword
    # ------------------------------------------------------------------

    async def keyword_search(self, request: RetrieveRequest) -> List[SearchResult]:
        """Ordered-substring match in the store, density scoring in memory.

        score = exact_match_bonus (query is a substring of the content)
                + hit_count / max(1, len(content)) * density_scale
        """
        tokens = [t for t in cjk_tokenize(request.query) if t.strip()]
        if not tokens:
            logger.debug("Keyword search: query is empty after tokenization")
            return []

        conditions = ["content LIKE ? ESCAPE '\\'"]
        params: List[Any] = ["%" + "%".join(_escape_like(t) for t in tokens) + "%"]
        if request.user_id is not None:
            conditions.append("user_id = ?")
            params.append(request.user_id)
        if request.group_id is not None:
            conditions.append("group_id = ?")
            params.append(request.group_id)
        params.append(request.limit)

        sql = f"SELECT * FROM {KEYWORD_TABLE} WHERE {' AND '.join(conditions)} LIMIT ?"
        rows = await self.storage.relational.query(sql, params)
        if not rows:
            return []

        lowered_tokens = [t.lower() for t in tokens]
        query_lower = request.query.strip().lower()

        results = []
        for row in rows:
            score = self._keyword_score(row.get("content") or "", lowered_tokens, query_lower)
            if score <= 0:
                continue
            results.append(_build_result(row, score, row.get("type"), row.get("metadata")))

        results.sort(key=lambda r: r["score"], reverse=True)
        logger.debug(f"Keyword search: {len(rows)} rows, {len(results)} scored")
        return results[: request.limit]

    def _keyword_score(self, content: str, tokens: List[str], query_lower: str) -> float:
        content_lower = content.lower()
        # str.count is non-overlapping
        hit_count = sum(content_lower.count(tok) for tok in tokens)
        exact_bonus = self.config.exact_match_bonus if query_lower and query_lower in content_lower else 0
        return exact_bonus + hit_count / max(1, len(content)) * self.config.density_scale

    # ------------------------------------------------------------------
    # Vector
    # ------------------------------------------------------------------

    async def vector_search(self, request: RetrieveRequest) -> List[SearchResult]:
        """Nearest-neighbour search per memory type; score = 1 - _distance.

        Embedding failures propagate to the caller.
        """
        embedding = await self.llm_provider.get_embedding(request.query)
        memory_types = request.memory_types or [MemoryType.EPISODIC_MEMORY]
        top_k = request.limit * self.config.vector_overfetch_factor

        results: List[SearchResult] = []
        for memory_type in memory_types:
            hits = await self.storage.vector.search(memory_type.value, embedding, top_k)
            for hit in hits:
                if not _in_scope(hit, request):
                    continue
                distance = hit.get("_distance")
                score = 1 - (distance if distance is not None else 0)
                results.append(_build_result(hit, score, memory_type, hit))

        results.sort(key=lambda r: r["score"], reverse=True)
        return results[: request.limit]

    # ------------------------------------------------------------------
    # Hybrid
    # ------------------------------------------------------------------

    async def hybrid_search(self, request: RetrieveRequest) -> List[SearchResult]:
        """Keyword and vector in parallel, fused with two-way RRF (keyword first)."""
        keyword_results, vector_results = await asyncio.gather(
            self.keyword_search(request),
            self.vector_search(request),
        )
        fused = reciprocal_rank_fusion(keyword_results, vector_results, k=self.config.rrf_k)
        logger.debug(
            f"Hybrid search: keyword={len(keyword_results)}, vector={len(vector_results)}, fused={len(fused)}"
        )
        return fused[: request.limit]

    # ------------------------------------------------------------------
    # Agentic
    # ------------------------------------------------------------------

    async def agentic_search(self, request: RetrieveRequest) -> List[SearchResult]:
        """Multi-query retrieval; multi-round when a completion provider is set."""
        if self.agentic_completion_provider is None:
            return await self._expansion_search(request)
        return await self._multi_round_search(request)

    async def _expansion_search(self, request: RetrieveRequest) -> List[SearchResult]:
        if self.query_expansion_provider is not None:
            queries = await self.query_expansion_provider.expand_query(request.query)
        else:
            queries = []
        if not queries:
            queries = [request.query]

        per_query_limit = max(request.limit, self.config.per_query_min_limit)
        sub_requests = [
            request.derive(
                query=q,
                limit=per_query_limit,
                method=RetrieveMethod.HYBRID,
                use_rerank=False,
            )
            for q in queries
        ]

        all_results = await asyncio.gather(*(self.hybrid_search(r) for r in sub_requests))
        fused = multi_rrf_fusion(all_results, k=self.config.rrf_k)
        logger.debug(f"Agentic (expansion): {len(queries)} queries, fused={len(fused)}")
        return fused[: request.limit]

    async def _multi_round_search(self, request: RetrieveRequest) -> List[SearchResult]:
        cfg = self.config

        # Round 1: hybrid -> Top N
        round1_results = await self.hybrid_search(
            request.derive(limit=cfg.round1_top_n, method=RetrieveMethod.HYBRID, use_rerank=False)
        )
        if not round1_results:
            return []

        # Rerank round 1 to choose the documents the judge sees
        top_for_check = round1_results[: cfg.round1_rerank_top_n]
        if self.has_rerank and len(round1_results) > cfg.round1_rerank_top_n:
            reranked = await self.apply_rerank(request.query, round1_results)
            top_for_check = reranked[: cfg.round1_rerank_top_n]

        is_sufficient, reasoning, missing_info = await check_sufficiency(
            request.query,
            top_for_check,
            self.agentic_completion_provider,
            max_docs=cfg.sufficiency_max_docs,
        )
        logger.info(f"Agentic round 1: {len(round1_results)} results, sufficient={is_sufficient}")
        logger.debug(f"Sufficiency reasoning: {reasoning}")

        if is_sufficient:
            return round1_results[: request.limit]

        # Round 2: refined queries in parallel
        refined_queries = await generate_refined_queries(
            request.query,
            top_for_check,
            missing_info,
            self.agentic_completion_provider,
            max_queries=cfg.max_refined_queries,
            max_docs=cfg.sufficiency_max_docs,
        )
        round2_requests = [
            request.derive(
                query=q,
                limit=cfg.round2_per_query_top_n,
                method=RetrieveMethod.HYBRID,
                use_rerank=False,
            )
            for q in refined_queries
        ]
        round2_all = await asyncio.gather(*(self.hybrid_search(r) for r in round2_requests))
        round2_fused = multi_rrf_fusion(round2_all, k=cfg.rrf_k)

        # Merge: round 1 first, then unseen round 2 ids up to combined_total
        seen_ids = {r["id"] for r in round1_results}
        round2_unique = [r for r in round2_fused if r["id"] not in seen_ids]
        needed = max(0, cfg.combined_total - len(round1_results))
        combined = list(round1_results) + round2_unique[:needed]
        logger.info(
            f"Agentic round 2: {len(refined_queries)} queries, "
            f"{len(round2_unique)} new docs, combined={len(combined)}"
        )

        if self.has_rerank and combined:
            combined = await self.apply_rerank(request.query, combined)

        return combined[: request.limit]

    # ------------------------------------------------------------------
    # Rerank
    # ------------------------------------------------------------------

    async def apply_rerank(self, query: str, results: List[SearchResult]) -> List[SearchResult]:
        """Replace scores with rerank scores and re-sort.

        The original results are returned unchanged when the rerank
        capability fails or returns a score list of the wrong length.
        """
        if not self.has_rerank or not results:
            return results

        contents = [r.get("content") or "" for r in results]
        try:
            scores = await self.llm_provider.rerank(query, contents)
        except Exception as e:
            logger.warning(f"Rerank failed, keeping original order: {e}")
            return results

        if scores is None or len(scores) != len(results):
            logger.warning(
                f"Rerank returned {0 if scores is None else len(scores)} scores "
                f"for {len(results)} results, keeping original order"
            )
            return results

        try:
            reranked = [{**r, "score": float(s or 0.0)} for r, s in zip(results, scores)]
        except (TypeError, ValueError) as e:
            logger.warning(f"Rerank returned non-numeric scores, keeping original order: {e}")
            return results

        reranked.sort(key=lambda r: r["score"], reverse=True)
        return reranked
