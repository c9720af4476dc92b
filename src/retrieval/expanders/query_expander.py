"""LLM-backed query expansion for agentic retrieval.

The expander asks the completion model for 2-3 alternative phrasings of
the user question, returned as a JSON array of strings.
"""

from typing import List

from core.observation.logger import get_logger
from utils.json_utils import extract_json_array
from prompts.memory.en.search.query_expansion_prompts import QUERY_EXPANSION_PROMPT
from ..core.interfaces import QueryExpansionProvider

logger = get_logger(__name__)


class LLMQueryExpander(QueryExpansionProvider):
    """Expands a query into sub-queries with a completion model."""

    def __init__(
        self,
        llm_provider,
        max_queries: int = 3,
        include_original: bool = False,
        temperature: float = 0.3,
    ):
        """Initialize the expander.

        Args:
            llm_provider: Completion capability exposing ``generate``
            max_queries: Maximum number of generated sub-queries kept
            include_original: Prepend the original query to the output
            temperature: Sampling temperature for the expansion call
        """
        self.llm_provider = llm_provider
        self.max_queries = max_queries
        self.include_original = include_original
        self.temperature = temperature

    async def expand_query(self, query: str) -> List[str]:
        """Return sub-queries for ``query``; ``[query]`` when expansion fails."""
        try:
            response = await self.llm_provider.generate(
                prompt=QUERY_EXPANSION_PROMPT.format(query=query),
                temperature=self.temperature,
                max_tokens=300,
            )
            queries = self._parse_queries(response)
        except Exception as e:
            logger.warning(f"Query expansion failed, using original query: {e}")
            return [query]

        queries = [q for q in queries if q.lower() != query.strip().lower()][: self.max_queries]
        if not queries:
            logger.debug("Query expansion produced no usable queries")
            return [query]

        if self.include_original:
            queries = [query] + queries
        logger.debug(f"Expanded query into {len(queries)} sub-queries")
        return queries

    @staticmethod
    def _parse_queries(response: str) -> List[str]:
        parsed = extract_json_array(response)
        return [q.strip() for q in parsed if isinstance(q, str) and q.strip()]


async def expand_query(query: str, llm_provider, max_queries: int = 3) -> List[str]:
    """Convenience function for one-off query expansion.

    Args:
        query: Original query
        llm_provider: Completion capability
        max_queries: Maximum sub-queries

    Returns:
        Sub-queries, or ``[query]`` on failure
    """
    expander = LLMQueryExpander(llm_provider, max_queries=max_queries)
    return await expander.expand_query(query)
