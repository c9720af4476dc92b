"""Query expansion components for agentic retrieval."""

from .query_expander import LLMQueryExpander, expand_query

__all__ = [
    'LLMQueryExpander',
    'expand_query',
]
