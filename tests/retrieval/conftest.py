"""Shared fixtures for retrieval tests."""

import asyncio

import pytest

from retrieval.core.config import RetrievalConfig


class FakeRelationalStore:
    """Returns canned rows keyed by the LIKE pattern; records every call.

    ``waits`` and ``releases`` map a pattern to an event: a query for a
    ``releases`` pattern sets its event, a query for a ``waits`` pattern
    blocks until its event is set.
    """

    def __init__(self, rows_by_pattern=None, gate: asyncio.Event = None, waits=None, releases=None):
        self.rows_by_pattern = rows_by_pattern or {}
        self.gate = gate
        self.waits = waits or {}
        self.releases = releases or {}
        self.calls = []

    async def query(self, sql, params):
        self.calls.append((sql, list(params)))
        pattern = params[0]
        if pattern in self.releases:
            self.releases[pattern].set()
        if pattern in self.waits:
            await self.waits[pattern].wait()
        if self.gate is not None:
            await self.gate.wait()
        return [dict(r) for r in self.rows_by_pattern.get(params[0], [])]


class FakeVectorStore:
    """Returns canned hits per memory type; records every call."""

    def __init__(self, hits_by_type=None, on_search=None):
        self.hits_by_type = hits_by_type or {}
        self.on_search = on_search
        self.calls = []

    async def search(self, type_tag, vector, top_k):
        self.calls.append((type_tag, vector, top_k))
        if self.on_search is not None:
            self.on_search()
        return [dict(h) for h in self.hits_by_type.get(type_tag, [])]


class FakeStorage:
    def __init__(self, relational=None, vector=None):
        self.relational = relational or FakeRelationalStore()
        self.vector = vector or FakeVectorStore()


class FakeEmbeddingProvider:
    """Embedding only, no rerank capability."""

    def __init__(self):
        self.embedded = []

    async def get_embedding(self, text):
        self.embedded.append(text)
        return [0.1, 0.2, 0.3]


class FakeRerankProvider(FakeEmbeddingProvider):
    """Embedding plus rerank; scores come from ``score_fn(content)``."""

    def __init__(self, score_fn=None, error: Exception = None, scores=None):
        super().__init__()
        self.score_fn = score_fn or (lambda content: float(len(content)))
        self.error = error
        self.scores = scores
        self.rerank_calls = []

    async def rerank(self, query, documents):
        self.rerank_calls.append((query, list(documents)))
        if self.error is not None:
            raise self.error
        if self.scores is not None:
            return self.scores
        return [self.score_fn(d) for d in documents]


class ScriptedCompletionProvider:
    """Returns the queued responses in order; records prompts."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.prompts = []

    async def generate(self, prompt, temperature=None, max_tokens=None, extra_body=None, response_format=None):
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class StaticExpansionProvider:
    def __init__(self, queries):
        self.queries = queries
        self.calls = []

    async def expand_query(self, query):
        self.calls.append(query)
        return list(self.queries)


@pytest.fixture
def retrieval_config():
    """Default tunables without touching the yaml file."""
    return RetrievalConfig()


@pytest.fixture
def fake_relational():
    return FakeRelationalStore


@pytest.fixture
def fake_vector():
    return FakeVectorStore


@pytest.fixture
def fake_storage():
    return FakeStorage


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def rerank_provider():
    return FakeRerankProvider


@pytest.fixture
def completion_provider():
    return ScriptedCompletionProvider


@pytest.fixture
def expansion_provider():
    return StaticExpansionProvider
