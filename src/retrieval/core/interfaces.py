"""Storage and query-expansion capabilities consumed by the retrieval core.

Concrete adapters (SQLite, LanceDB, ...) live outside this package; they
only need to honor these method signatures.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence


class RelationalStore(ABC):
    """Parameterized SQL-like query engine."""

    @abstractmethod
    async def query(self, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        """Run ``sql`` with positional ``?`` parameters and return rows as dicts."""
        ...


class VectorStore(ABC):
    """Approximate nearest-neighbour store partitioned by memory type."""

    @abstractmethod
    async def search(
        self, type_tag: str, vector: List[float], top_k: int
    ) -> List[Dict[str, Any]]:
        """Return up to ``top_k`` hits.

        Each hit carries ``id``, ``content``, optional ``user_id`` /
        ``group_id`` and ``_distance`` in [0, 1] (smaller is closer).
        """
        ...


class StorageAdapter(ABC):
    """Bundles the relational and vector stores."""

    @property
    @abstractmethod
    def relational(self) -> RelationalStore:
        ...

    @property
    @abstractmethod
    def vector(self) -> VectorStore:
        ...


class QueryExpansionProvider(ABC):
    """Expands one query into sub-queries for agentic retrieval."""

    @abstractmethod
    async def expand_query(self, query: str) -> List[str]:
        ...
