"""Extraction module: parsing of unified LLM extraction output.

    from memory.extraction import parse_unified_memory_text

    result = parse_unified_memory_text(llm_output)
    if result and result.profile:
        ...
"""

from .unified_parser import (
    parse_unified_memory_text,
    parse_section_key_values,
    split_blocks,
)

__all__ = [
    'parse_unified_memory_text',
    'parse_section_key_values',
    'split_blocks',
]
