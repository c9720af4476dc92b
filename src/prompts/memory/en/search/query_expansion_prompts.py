"""Prompt for expanding one user question into retrieval sub-queries."""

QUERY_EXPANSION_PROMPT = """Rewrite the user question below into 2-3 alternative phrasings or sub-questions for searching a personal memory store.
Return ONLY a JSON array of strings with no other text, for example: ["question 1", "question 2"]
Write them in the same language as the question.

User question: {query}
"""
