"""LLM utility functions for agentic retrieval.

Provides LLM-guided retrieval capabilities:
1. Sufficiency Check: Determine if retrieval results are sufficient
2. Query Refinement: Generate follow-up queries targeting missing information
3. Document Formatting: Format documents for LLM input

Every helper degrades instead of raising: a broken judge is treated as
"sufficient" and a broken query generator returns the original query.
"""

from typing import Any, Dict, List, Sequence, Tuple

from core.constants.exceptions import LLMResponseParseException
from core.observation.logger import get_logger
from prompts.memory.en.search.sufficiency_check_prompts import SUFFICIENCY_CHECK_PROMPT
from prompts.memory.en.search.refined_query_prompts import REFINED_QUERY_PROMPT
from utils.json_utils import extract_json_object

logger = get_logger(__name__)

MAX_CONTENT_CHARS = 500
MIN_QUERY_CHARS = 3


def format_documents_for_llm(
    results: Sequence[Dict[str, Any]],
    max_docs: int = 5,
) -> str:
    """Format retrieval results as a numbered list for LLM consumption.

    Args:
        results: Search results (dicts with ``content`` and ``score``)
        max_docs: Maximum number of documents to include

    Returns:
        Formatted document string
    """
    formatted_docs = []

    for i, doc in enumerate(results[:max_docs], start=1):
        content = doc.get("content") or "N/A"
        # Limit content length to avoid prompt overflow
        if len(content) > MAX_CONTENT_CHARS:
            content = content[:MAX_CONTENT_CHARS] + "..."

        score = doc.get("score")
        score_str = f"{score:.4f}" if isinstance(score, (int, float)) else "N/A"

        formatted_docs.append(
            f"Document {i} (relevance: {score_str}):\n"
            f"  Content: {content}\n"
        )

    return "\n".join(formatted_docs)


def parse_sufficiency_response(response: str) -> Dict[str, Any]:
    """Parse the sufficiency judge's JSON response.

    Returns:
        Dict with ``is_sufficient``, ``reasoning`` and ``missing_information``.
        Conservative fallback (sufficient) when the response is unusable.
    """
    try:
        result = extract_json_object(response)

        if not isinstance(result.get("is_sufficient"), bool):
            raise LLMResponseParseException(
                "Missing or invalid 'is_sufficient' field", raw_response=response
            )

        missing = result.get("missing_information") or []
        if not isinstance(missing, list):
            missing = [missing]

        return {
            "is_sufficient": result["is_sufficient"],
            "reasoning": result.get("reasoning") or "No reasoning provided",
            "missing_information": [str(m) for m in missing if m],
        }

    except LLMResponseParseException as e:
        logger.warning(f"Failed to parse sufficiency response: {e.message}")
        logger.debug(f"Raw response: {response[:200]}...")

        # Conservative fallback: assume sufficient
        return {
            "is_sufficient": True,
            "reasoning": f"Failed to parse: {e.message}",
            "missing_information": [],
        }


def parse_refined_queries_response(
    response: str,
    original_query: str,
    max_queries: int = 3,
) -> List[str]:
    """Parse and validate follow-up queries.

    Drops empty queries, queries shorter than 3 characters and queries equal
    (case-insensitively) to the original. Falls back to ``[original_query]``.
    """
    try:
        result = extract_json_object(response)
    except LLMResponseParseException as e:
        logger.warning(f"Failed to parse refined queries: {e.message}")
        return [original_query]

    queries = result.get("queries")
    if not isinstance(queries, list):
        logger.warning("Missing or invalid 'queries' field, using original query")
        return [original_query]

    original_norm = original_query.strip().lower()
    valid_queries = []
    for q in queries:
        if not isinstance(q, str):
            continue
        q = q.strip()
        if len(q) < MIN_QUERY_CHARS or q.lower() == original_norm:
            continue
        valid_queries.append(q)

    if not valid_queries:
        logger.info("No valid refined queries generated, using original")
        return [original_query]

    return valid_queries[:max_queries]


async def check_sufficiency(
    query: str,
    results: Sequence[Dict[str, Any]],
    llm_provider,
    max_docs: int = 5,
) -> Tuple[bool, str, List[str]]:
    """Check if retrieval results are sufficient to answer the query.

    Args:
        query: User query
        results: Retrieval results (Top K)
        llm_provider: Completion capability exposing ``generate``
        max_docs: Maximum documents to evaluate

    Returns:
        (is_sufficient, reasoning, missing_information)
    """
    try:
        prompt = SUFFICIENCY_CHECK_PROMPT.format(
            query=query,
            retrieved_docs=format_documents_for_llm(results, max_docs=max_docs),
        )

        result_text = await llm_provider.generate(
            prompt=prompt,
            temperature=0.0,
            max_tokens=500,
        )
        result = parse_sufficiency_response(result_text)

        logger.debug(
            f"Sufficiency check: is_sufficient={result['is_sufficient']}, "
            f"missing={result['missing_information']}"
        )
        return (
            result["is_sufficient"],
            result["reasoning"],
            result["missing_information"],
        )

    except Exception as e:
        logger.warning(f"Sufficiency check failed: {e}")
        return True, f"Error: {str(e)}", []


async def generate_refined_queries(
    original_query: str,
    results: Sequence[Dict[str, Any]],
    missing_info: List[str],
    llm_provider,
    max_queries: int = 3,
    max_docs: int = 5,
) -> List[str]:
    """Generate follow-up queries for the second retrieval round.

    Args:
        original_query: Original query
        results: Round 1 retrieval results
        missing_info: Gaps reported by the sufficiency check
        llm_provider: Completion capability exposing ``generate``
        max_queries: Cap on returned queries
        max_docs: Maximum documents shown to the LLM

    Returns:
        Refined queries, or ``[original_query]`` when none are usable
    """
    try:
        prompt = REFINED_QUERY_PROMPT.format(
            original_query=original_query,
            retrieved_docs=format_documents_for_llm(results, max_docs=max_docs),
            missing_info=", ".join(missing_info) if missing_info else "N/A",
        )

        result_text = await llm_provider.generate(
            prompt=prompt,
            temperature=0.0,
            max_tokens=300,
        )
        queries = parse_refined_queries_response(result_text, original_query, max_queries)

        for i, q in enumerate(queries, 1):
            logger.debug(f"Refined query {i}: {q[:80]}{'...' if len(q) > 80 else ''}")
        return queries

    except Exception as e:
        logger.warning(f"Query refinement failed: {e}")
        return [original_query]
