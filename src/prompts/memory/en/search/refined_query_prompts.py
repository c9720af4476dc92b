"""Prompt for generating follow-up queries that target missing information."""

REFINED_QUERY_PROMPT = """You are a search query specialist. The first retrieval round did not fully answer the user's question. Write 2-3 follow-up queries that search the memory store for what is still missing.

## Original Query
{original_query}

## Retrieved Memories (round 1)
{retrieved_docs}

## Missing Information
{missing_info}

## Requirements
- Each query targets a different gap or phrasing; do not repeat the original query.
- Keep each query short and specific (names, dates, keywords).
- Write the queries in the same language as the original query.

## Output Format
Return ONLY a JSON object, no other text:
{{
  "queries": ["query 1", "query 2", "query 3"],
  "reasoning": "how the queries cover the missing information"
}}
"""
