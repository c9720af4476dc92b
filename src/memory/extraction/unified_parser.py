"""
统一记忆抽取结果解析器

一次 LLM 调用输出纯文本（## 分段 + KEY: value 行），而不是 JSON，
避免模型输出的 JSON 不合法导致整次抽取失败。

输入示例:

    ## NARRATIVE
    CONTENT: 用户和朋友讨论了周末的露营计划。
    KEYWORDS: 露营, 周末
    ---
    CONTENT: 用户提到最近在学吉他。

    ## EVENT_LOG
    TIME: 2024-03-14
    FACT: 用户计划周末去露营。
    FACT: 用户在学吉他。

    ## PROFILE
    ITEM: 用户喜欢户外活动
    ITEM: 用户希望被称为老大

段落优先级:
    narrative      <- NARRATIVE > EPISODE > OVERVIEW（先产出者胜出）
    event_log      <- EVENT_LOG
    document_facts <- FACTS（与 EVENT_LOG 相互独立，互不覆盖）

解析器从不抛出异常；没有任何可用内容时返回 None。
"""

import re
from typing import Dict, List, Optional

from core.observation.logger import get_logger
from memory.schema.event_log import (
    EventLog,
    DocumentFacts,
    MAX_EVENT_LOG_FACTS,
    MAX_DOCUMENT_FACTS,
)
from memory.schema.extraction_result import (
    Narrative,
    Foresight,
    ProfileSection,
    UnifiedExtractionResult,
    MAX_FORESIGHT_ITEMS,
    SUMMARY_FALLBACK_CHARS,
)

logger = get_logger(__name__)

_SECTION_RE = re.compile(r"^##[ \t]*(\w+)[ \t]*$", re.MULTILINE)
_BLOCK_SEPARATOR_RE = re.compile(r"^[ \t]*---+[ \t]*$", re.MULTILINE)
_LIST_SPLIT_RE = re.compile(r"[,，]")

# narrative 段落的别名，按优先级排列
NARRATIVE_SECTIONS = ("NARRATIVE", "EPISODE", "OVERVIEW")

# 旧版画像格式中按逗号拆分的字段
_LEGACY_LIST_FIELDS = (
    "HARD_SKILLS",
    "SOFT_SKILLS",
    "WORK_RESPONSIBILITY",
    "INTERESTS",
    "TENDENCY",
)


def parse_section_key_values(body: str) -> Dict[str, List[str]]:
    """解析段落中的 KEY: value 行

    - 以第一个冒号为分隔，value 中可以再包含冒号
    - KEY 统一转为大写；同一个 KEY 可以重复出现，按出现顺序保存
    - 空 value 与没有 KEY 的行被忽略

    Returns:
        多值映射 {KEY: [value1, value2, ...]}
    """
    result: Dict[str, List[str]] = {}
    for line in body.splitlines():
        key, sep, value = line.partition(":")
        key = key.strip().upper()
        value = value.strip()
        if not sep or not key or not value:
            continue
        result.setdefault(key, []).append(value)
    return result


def split_blocks(body: str) -> List[str]:
    """按独占一行的 --- 拆分段落，去掉空块"""
    return [block.strip() for block in _BLOCK_SEPARATOR_RE.split(body) if block.strip()]


def _first(kv: Dict[str, List[str]], key: str) -> Optional[str]:
    values = kv.get(key)
    return values[0] if values else None


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in _LIST_SPLIT_RE.split(value) if item.strip()]


def _split_sections(text: str) -> Dict[str, str]:
    """把全文切成 {段落名: 段落正文}，同名段落以第一次出现为准"""
    matches = list(_SECTION_RE.finditer(text))
    sections: Dict[str, str] = {}
    for i, match in enumerate(matches):
        name = match.group(1).upper()
        body_end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        if name not in sections:
            sections[name] = text[match.end():body_end].strip()
    return sections


def _parse_narrative_block(block: str) -> Optional[Narrative]:
    kv = parse_section_key_values(block)
    content = _first(kv, "CONTENT")
    if not content:
        return None
    return Narrative(
        content=content,
        summary=_first(kv, "SUMMARY") or content[:SUMMARY_FALLBACK_CHARS],
        keywords=_split_list(_first(kv, "KEYWORDS")),
    )


def _parse_narratives(body: str) -> List[Narrative]:
    narratives = []
    for block in split_blocks(body):
        narrative = _parse_narrative_block(block)
        if narrative is not None:
            narratives.append(narrative)
    return narratives


def _parse_event_log(body: str) -> Optional[EventLog]:
    kv = parse_section_key_values(body)
    facts = kv.get("FACT", [])
    if not facts:
        return None
    return EventLog(
        time=_first(kv, "TIME") or "",
        atomic_fact=facts[:MAX_EVENT_LOG_FACTS],
    )


def _parse_document_facts(body: str) -> Optional[DocumentFacts]:
    facts = parse_section_key_values(body).get("FACT", [])
    if not facts:
        return None
    return DocumentFacts(facts=facts[:MAX_DOCUMENT_FACTS])


def _parse_foresight(body: str) -> List[Foresight]:
    items = []
    for block in split_blocks(body)[:MAX_FORESIGHT_ITEMS]:
        kv = parse_section_key_values(block)
        content = _first(kv, "CONTENT")
        if not content:
            continue
        items.append(
            Foresight(
                content=content,
                start_time=_first(kv, "START"),
                end_time=_first(kv, "END"),
                evidence=_first(kv, "EVIDENCE"),
            )
        )
    return items


def _parse_profile(body: str) -> Optional[ProfileSection]:
    kv = parse_section_key_values(body)

    items = kv.get("ITEM", [])
    if items:
        return ProfileSection(user_profiles=[{"items": list(items)}])

    # 旧版结构化画像
    record = {}
    user_name = _first(kv, "USER_NAME")
    if user_name:
        record["user_name"] = user_name
    summary = _first(kv, "SUMMARY")
    if summary:
        record["summary"] = summary
        record["output_reasoning"] = summary
    for field_name in _LEGACY_LIST_FIELDS:
        values = _split_list(_first(kv, field_name))
        if values:
            record[field_name.lower()] = values

    if not record:
        return None

    user_id = _first(kv, "USER_ID")
    if user_id:
        record["user_id"] = user_id
    return ProfileSection(user_profiles=[record])


def parse_unified_memory_text(text: str) -> Optional[UnifiedExtractionResult]:
    """解析统一抽取的纯文本输出

    Args:
        text: 一次 LLM 调用的原始输出

    Returns:
        UnifiedExtractionResult；没有任何段落产出有效内容时返回 None
    """
    if not text or not isinstance(text, str):
        return None

    normalized = text.strip().replace("\r\n", "\n")
    if not normalized:
        return None

    sections = _split_sections(normalized)
    result = UnifiedExtractionResult()

    for name in NARRATIVE_SECTIONS:
        if name not in sections:
            continue
        narratives = _parse_narratives(sections[name])
        if narratives:
            result.narrative = narratives[0]
            if len(narratives) > 1:
                result.narratives = narratives
            break

    if "EVENT_LOG" in sections:
        result.event_log = _parse_event_log(sections["EVENT_LOG"])

    if "FACTS" in sections:
        result.document_facts = _parse_document_facts(sections["FACTS"])

    if "FORESIGHT" in sections:
        result.foresight = _parse_foresight(sections["FORESIGHT"]) or None

    if "PROFILE" in sections:
        result.profile = _parse_profile(sections["PROFILE"])

    if not result.has_content():
        logger.debug(f"No usable memory sections in extraction output (sections={list(sections)})")
        return None

    return result
