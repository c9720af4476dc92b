"""
事件日志模块 (Event Log)

定义从 LLM 输出中解析出的原子事实结构：

- EventLog: 对话来源的事件日志（时间 + 原子事实，最多 10 条）
- DocumentFacts: 文档来源的事实（最多 20 条）

两者语义相同，但分开存放，保证文档事实不会与对话事件日志互相覆盖。

使用示例:
========
    from memory.schema import EventLog

    event_log = EventLog(
        time="2024-03-14",
        atomic_fact=[
            "用户明天下午有项目评审会。",
            "用户希望被称为老大。",
        ]
    )
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any

MAX_EVENT_LOG_FACTS = 10
MAX_DOCUMENT_FACTS = 20


@dataclass
class EventLog:
    """
    事件日志 - 原子事实

    字段:
        time: 事件发生时间（日期字符串，可为空）
        atomic_fact: 原子事实列表，每个事实是一个完整的句子
    """

    time: str = ""
    atomic_fact: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "atomic_fact": list(self.atomic_fact),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventLog":
        return cls(
            time=data.get("time", ""),
            atomic_fact=list(data.get("atomic_fact", [])),
        )


@dataclass
class DocumentFacts:
    """文档事实 - 文档导入时抽取的原子事实"""

    facts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"facts": list(self.facts)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentFacts":
        return cls(facts=list(data.get("facts", [])))
