"""
记忆类型枚举模块 (Memory Type Enumeration)

定义记忆存储中的记录类型标签。向量检索按类型分区查询，
检索结果的 ``type`` 字段也取自这里。

    EPISODIC_MEMORY - 情景记忆（叙事，默认的向量检索类型）
    FORESIGHT       - 前瞻记忆（未来计划、提醒）
    EVENT_LOG       - 事件日志（带时间的原子事实）
    PROFILE         - 用户画像（原子事实集合）
    GROUP_PROFILE   - 群体画像
    DOCUMENT        - 文档记忆（文档摘要与文档事实）

使用示例:
========
    from memory.schema import MemoryType

    MemoryType("event_log")        # -> MemoryType.EVENT_LOG
    MemoryType.PROFILE.value       # -> "profile"
"""

from enum import Enum


class MemoryType(str, Enum):
    """记忆类型枚举（值即存储中的类型标签）"""

    EPISODIC_MEMORY = "episodic_memory"  # 情景记忆 - 叙事
    FORESIGHT = "foresight"  # 前瞻记忆 - 未来相关
    EVENT_LOG = "event_log"  # 事件日志 - 时间戳原子事实
    PROFILE = "profile"  # 用户画像 - 原子事实集合
    GROUP_PROFILE = "group_profile"  # 群体画像
    DOCUMENT = "document"  # 文档记忆
