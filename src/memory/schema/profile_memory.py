"""
用户画像模块 (Profile Memory)

画像以原子事实列表的形式持久化：

    {"items": ["用户希望被称为老大", "用户喜欢音乐"]}

- 首次抽取到画像事实时创建
- 之后每次抽取到新事实时由 ProfileMerger 合并（去重后追加）
- 本模块不负责删除画像

使用示例:
========
    from memory.schema import ProfileMemory

    profile = ProfileMemory(user_id="user_123", items=["用户喜欢音乐"])
    print(profile.content)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class ProfileMemory:
    """
    用户画像 - 去重后的原子事实集合

    字段:
        user_id: 用户 ID
        items: 原子事实列表（已去重，保留原始大小写与标点）
        group_id: 可选的作用域 ID
        version: 每次有变化的合并后递增
        updated_at: 最近一次写入时间
        merge_history: 每次合并的变化摘要
    """

    user_id: str
    items: List[str] = field(default_factory=list)
    group_id: Optional[str] = None
    version: int = 1
    updated_at: datetime = field(default_factory=datetime.now)
    merge_history: List[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        """所有事实按行拼接，便于向量化或展示"""
        return "\n".join(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "items": list(self.items),
            "group_id": self.group_id,
            "version": self.version,
            "updated_at": self.updated_at.isoformat(),
            "merge_history": list(self.merge_history),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileMemory":
        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        return cls(
            user_id=data["user_id"],
            items=list(data.get("items", [])),
            group_id=data.get("group_id"),
            version=data.get("version", 1),
            updated_at=updated_at or datetime.now(),
            merge_history=list(data.get("merge_history", [])),
        )


@dataclass
class ProfileMergeResult:
    """
    画像合并结果

    字段:
        items: 合并后的完整事实列表
        has_changes: 是否有新增/变化；为 False 时调用方可以跳过写入
        added: 本次新增的事实
        summary: 人类可读的变化摘要
        strategy: 产生该结果的合并策略名称
    """

    items: List[str]
    has_changes: bool
    added: List[str] = field(default_factory=list)
    summary: str = ""
    strategy: str = ""
