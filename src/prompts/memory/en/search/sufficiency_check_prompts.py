"""Prompt for judging whether retrieved memories answer a query."""

SUFFICIENCY_CHECK_PROMPT = """You are an expert in information retrieval evaluation. Assess whether the retrieved memories contain enough information to answer the user's query.

## User Query
{query}

## Retrieved Memories
{retrieved_docs}

## Instructions
1. Identify the key information the query asks for (entities, time, preferences, events).
2. Check whether the retrieved memories cover each of those points.
3. If something essential is missing, list it concretely (short noun phrases).

## Output Format
Return ONLY a JSON object, no other text:
{{
  "is_sufficient": true or false,
  "reasoning": "one or two sentences explaining the judgement",
  "missing_information": ["missing item 1", "missing item 2"]
}}
"""
