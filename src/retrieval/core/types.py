"""Core data types for the retrieval system."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TypedDict, Dict, Any, List, Optional, Union

from core.constants.exceptions import ValidationException
from memory.schema.memory_type import MemoryType


class RetrieveMethod(str, Enum):
    """Retrieval strategy requested by the caller.

    ``RRF`` is accepted as an alias of ``HYBRID``.
    """

    KEYWORD = "keyword"
    VECTOR = "vector"
    HYBRID = "hybrid"
    RRF = "rrf"
    AGENTIC = "agentic"


class Document(TypedDict, total=False):
    """Scored document flowing through fusion and rerank.

    Fusion only needs ``id`` (and the rank position); every other field
    is passed through untouched except ``score``, which is recomputed.
    """
    id: str
    content: str
    score: Optional[float]
    metadata: Dict[str, Any]


class SearchResult(Document, total=False):
    """Result row returned by ``RetrievalManager.retrieve``.

    Fields:
        id: Unique identifier of the memory record
        score: Method-dependent relevance (density score, 1 - distance, RRF or rerank score)
        content: Memory text
        metadata: Opaque bag (vector hits carry the whole raw hit here)
        type: Memory type tag
        group_id / created_at / updated_at: passthrough when the store supplies them
    """
    type: str
    group_id: Optional[str]
    created_at: Any
    updated_at: Any


@dataclass
class RetrieveRequest:
    """A single retrieval call.

    ``method`` and ``memory_types`` accept plain strings; they are coerced
    to their enums. ``limit`` must be at least 1.
    """

    query: str
    user_id: Optional[str] = None
    group_id: Optional[str] = None
    method: Union[RetrieveMethod, str] = RetrieveMethod.HYBRID
    limit: int = 10
    memory_types: Optional[List[Union[MemoryType, str]]] = None
    use_rerank: bool = False

    def __post_init__(self):
        if self.method is None:
            self.method = RetrieveMethod.HYBRID
        elif not isinstance(self.method, RetrieveMethod):
            try:
                self.method = RetrieveMethod(str(self.method).lower())
            except ValueError as e:
                raise ValidationException(
                    f"Unknown retrieve method: {self.method}", field="method"
                ) from e

        if self.limit is None or self.limit < 1:
            raise ValidationException(
                f"limit must be >= 1, got {self.limit}", field="limit"
            )

        if self.memory_types is not None:
            try:
                self.memory_types = [MemoryType(t) for t in self.memory_types]
            except ValueError as e:
                raise ValidationException(
                    f"Unknown memory type in {self.memory_types}", field="memory_types"
                ) from e

    def derive(self, **overrides) -> "RetrieveRequest":
        """Copy of this request with some fields replaced (used for sub-queries)."""
        values = {
            "query": self.query,
            "user_id": self.user_id,
            "group_id": self.group_id,
            "method": self.method,
            "limit": self.limit,
            "memory_types": list(self.memory_types) if self.memory_types is not None else None,
            "use_rerank": self.use_rerank,
        }
        values.update(overrides)
        return RetrieveRequest(**values)
