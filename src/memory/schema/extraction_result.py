"""
统一抽取结果模块 (Unified Extraction Result)

一次 LLM 调用同时输出多种记忆，解析后得到 UnifiedExtractionResult。
各段落相互独立，缺失的段落为 None：

    ## NARRATIVE / ## EPISODE / ## OVERVIEW -> narrative (+ narratives)
    ## EVENT_LOG                           -> event_log
    ## FACTS                               -> document_facts
    ## FORESIGHT                           -> foresight
    ## PROFILE                             -> profile

约束: 解析器只在至少一个段落有非空内容时才返回结果，否则返回 None。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .event_log import EventLog, DocumentFacts

MAX_FORESIGHT_ITEMS = 10
SUMMARY_FALLBACK_CHARS = 200


@dataclass
class Narrative:
    """
    叙事（情景记忆）

    字段:
        content: 叙事正文（必填）
        summary: 摘要，缺省时取 content 前 200 个字符
        keywords: 关键词列表
    """

    content: str
    summary: str = ""
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "summary": self.summary,
            "keywords": list(self.keywords),
        }


@dataclass
class Foresight:
    """前瞻记忆 - 与未来相关的计划或提醒"""

    content: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    evidence: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"content": self.content}
        if self.start_time:
            result["start_time"] = self.start_time
        if self.end_time:
            result["end_time"] = self.end_time
        if self.evidence:
            result["evidence"] = self.evidence
        return result


@dataclass
class ProfileSection:
    """
    画像段落

    user_profiles 中的每条记录:
    - 当前格式: {"items": ["原子事实1", "原子事实2"]}
    - 旧格式: {"user_name", "summary", "output_reasoning", "hard_skills", ...}
    """

    user_profiles: List[Dict[str, Any]] = field(default_factory=list)

    def collect_items(self) -> List[str]:
        """汇总所有当前格式记录中的原子事实（旧格式记录被忽略）"""
        items: List[str] = []
        for record in self.user_profiles:
            record_items = record.get("items")
            if isinstance(record_items, list):
                items.extend(str(i) for i in record_items if i)
        return items

    def to_dict(self) -> Dict[str, Any]:
        return {"user_profiles": [dict(p) for p in self.user_profiles]}


@dataclass
class UnifiedExtractionResult:
    """统一抽取结果（各段落独立存在）"""

    narrative: Optional[Narrative] = None
    # 仅在 NARRATIVE 段包含多个 --- 分隔块时设置，此时 narrative == narratives[0]
    narratives: Optional[List[Narrative]] = None
    event_log: Optional[EventLog] = None
    document_facts: Optional[DocumentFacts] = None
    foresight: Optional[List[Foresight]] = None
    profile: Optional[ProfileSection] = None

    def has_content(self) -> bool:
        return bool(
            self.narrative
            or (self.event_log and self.event_log.atomic_fact)
            or (self.document_facts and self.document_facts.facts)
            or self.foresight
            or (self.profile and self.profile.user_profiles)
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，只包含存在的段落"""
        result: Dict[str, Any] = {}
        if self.narrative:
            result["narrative"] = self.narrative.to_dict()
        if self.narratives:
            result["narratives"] = [n.to_dict() for n in self.narratives]
        if self.event_log:
            result["event_log"] = self.event_log.to_dict()
        if self.document_facts:
            result["document_facts"] = self.document_facts.to_dict()
        if self.foresight:
            result["foresight"] = [f.to_dict() for f in self.foresight]
        if self.profile:
            result["profile"] = self.profile.to_dict()
        return result
