"""Tests for LLMQueryExpander."""

import pytest
from unittest.mock import AsyncMock

from retrieval.expanders import LLMQueryExpander, expand_query


def _provider(response=None, error=None):
    provider = AsyncMock()
    provider.generate = AsyncMock(return_value=response, side_effect=error)
    return provider


@pytest.mark.asyncio
async def test_expand_query_parses_json_array():
    provider = _provider('Sure:\n["Where did Alice go?", "Alice weekend trip", "Alice park visit"]')
    expander = LLMQueryExpander(provider)

    queries = await expander.expand_query("What did Alice do on the weekend?")

    assert queries == ["Where did Alice go?", "Alice weekend trip", "Alice park visit"]
    assert "What did Alice do on the weekend?" in provider.generate.call_args.kwargs["prompt"]


@pytest.mark.asyncio
async def test_expand_query_drops_original_and_caps():
    provider = _provider('["what did alice do", "alice park", "alice trip", "alice weekend", "alice friends"]')
    expander = LLMQueryExpander(provider, max_queries=2)

    assert await expander.expand_query("What did Alice do") == ["alice park", "alice trip"]


@pytest.mark.asyncio
async def test_expand_query_include_original():
    provider = _provider('["alice park"]')
    expander = LLMQueryExpander(provider, include_original=True)

    assert await expander.expand_query("Alice?") == ["Alice?", "alice park"]


@pytest.mark.asyncio
@pytest.mark.parametrize("response", ["no json here", '{"answer": "none"}', "[]", '[1, 2, ""]'])
async def test_expand_query_unusable_response_returns_original(response):
    expander = LLMQueryExpander(_provider(response))

    assert await expander.expand_query("Alice?") == ["Alice?"]


@pytest.mark.asyncio
async def test_expand_query_llm_error_returns_original():
    expander = LLMQueryExpander(_provider(error=RuntimeError("rate limited")))

    assert await expander.expand_query("Alice?") == ["Alice?"]


@pytest.mark.asyncio
async def test_expand_query_convenience_function():
    provider = _provider('["alice park", "alice trip"]')

    assert await expand_query("Alice?", provider, max_queries=1) == ["alice park"]
