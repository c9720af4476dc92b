"""Profile management: deduplicating merge of atomic profile facts."""

from .merger import (
    normalize_fact,
    merge_profiles_simple,
    merge_profiles_with_llm,
    ProfileMergeStrategy,
    SimpleMergeStrategy,
    SimilarityMergeStrategy,
    LLMMergeStrategy,
    FallbackMergeStrategy,
)
from .similarity import text_similarity
from .storage import ProfileStorage, InMemoryProfileStorage
from .manager import ProfileManager

__all__ = [
    "normalize_fact",
    "merge_profiles_simple",
    "merge_profiles_with_llm",
    "ProfileMergeStrategy",
    "SimpleMergeStrategy",
    "SimilarityMergeStrategy",
    "LLMMergeStrategy",
    "FallbackMergeStrategy",
    "text_similarity",
    "ProfileStorage",
    "InMemoryProfileStorage",
    "ProfileManager",
]
