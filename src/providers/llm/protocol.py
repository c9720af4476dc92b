"""
LLM provider protocol.

Retrieval and profile merging only depend on this surface:

- ``generate``: single-prompt completion, returns plain text
- ``get_embedding``: dense vector for one text

Reranking is an optional capability. A provider that can rerank exposes
``async rerank(query, documents) -> list[float | None]``; callers detect it
with ``callable(getattr(provider, "rerank", None))``.
"""

from abc import ABC, abstractmethod
from typing import List


class LLMError(Exception):
    """Raised when a provider call fails after retries."""


class LLMProvider(ABC):
    """Completion and embedding capability."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        extra_body: dict | None = None,
        response_format: dict | None = None,
    ) -> str:
        """Generate a completion for ``prompt``.

        Raises:
            LLMError: If generation fails
        """
        ...

    @abstractmethod
    async def get_embedding(self, text: str) -> List[float]:
        """Embed ``text``.

        Raises:
            LLMError: If the embedding call fails
        """
        ...
