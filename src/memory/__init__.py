"""
Memory package.

- schema: typed memory records
- extraction: parsing of unified LLM extraction output
- profile_manager: deduplicating profile merge and persistence
"""

from .schema import MemoryType, UnifiedExtractionResult, ProfileMemory

__all__ = [
    "MemoryType",
    "UnifiedExtractionResult",
    "ProfileMemory",
]
