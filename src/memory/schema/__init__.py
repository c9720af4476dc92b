"""
记忆数据结构模块 (Memory Schema Module)

模块结构:
========
- memory_type.py: 记忆类型枚举 (MemoryType)
- event_log.py: 事件日志 / 文档事实 (EventLog, DocumentFacts)
- extraction_result.py: 统一抽取结果 (UnifiedExtractionResult 及各段落)
- profile_memory.py: 用户画像与合并结果 (ProfileMemory, ProfileMergeResult)

使用示例:
========
    from memory.schema import (
        MemoryType,
        UnifiedExtractionResult,
        ProfileMemory,
    )
"""

from .memory_type import MemoryType
from .event_log import EventLog, DocumentFacts
from .extraction_result import (
    Narrative,
    Foresight,
    ProfileSection,
    UnifiedExtractionResult,
)
from .profile_memory import ProfileMemory, ProfileMergeResult

__all__ = [
    # 枚举类型
    "MemoryType",
    # 抽取结果
    "Narrative",
    "EventLog",
    "DocumentFacts",
    "Foresight",
    "ProfileSection",
    "UnifiedExtractionResult",
    # 画像
    "ProfileMemory",
    "ProfileMergeResult",
]
