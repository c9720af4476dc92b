"""Tests for the unified extraction text parser."""

import pytest

from memory.extraction import parse_section_key_values, parse_unified_memory_text, split_blocks


FULL_OUTPUT = """
## NARRATIVE
CONTENT: 用户和朋友讨论了周末的露营计划。
SUMMARY: 周末露营计划
KEYWORDS: 露营, 周末，朋友

## EVENT_LOG
TIME: 2024-03-14
FACT: 用户计划周末去露营。
FACT: 用户在学吉他。

## FORESIGHT
CONTENT: 用户周六要去露营
START: 2024-03-16
END: 2024-03-17
EVIDENCE: 用户说周末去露营
---
CONTENT: 用户下周要交报告

## PROFILE
ITEM: 用户喜欢户外活动
ITEM: 用户希望被称为老大
"""


# ============================================================================
# Helpers
# ============================================================================

def test_parse_section_key_values_multi_value_and_colons():
    kv = parse_section_key_values("fact: a\nFACT: b\nTIME: 10:30\nno delimiter\nEMPTY:   \n: orphan")

    assert kv == {"FACT": ["a", "b"], "TIME": ["10:30"]}


def test_split_blocks_ignores_empty_blocks():
    body = "CONTENT: one\n---\n\n  ----  \nCONTENT: two\n---"

    assert split_blocks(body) == ["CONTENT: one", "CONTENT: two"]


# ============================================================================
# Full parse
# ============================================================================

def test_parse_full_output():
    result = parse_unified_memory_text(FULL_OUTPUT)

    assert result is not None
    assert result.narrative.content == "用户和朋友讨论了周末的露营计划。"
    assert result.narrative.summary == "周末露营计划"
    assert result.narrative.keywords == ["露营", "周末", "朋友"]
    assert result.narratives is None

    assert result.event_log.time == "2024-03-14"
    assert result.event_log.atomic_fact == ["用户计划周末去露营。", "用户在学吉他。"]
    assert result.document_facts is None

    assert [f.content for f in result.foresight] == ["用户周六要去露营", "用户下周要交报告"]
    assert result.foresight[0].start_time == "2024-03-16"
    assert result.foresight[0].evidence == "用户说周末去露营"
    assert result.foresight[1].end_time is None

    assert result.profile.user_profiles == [{"items": ["用户喜欢户外活动", "用户希望被称为老大"]}]


def test_parse_accepts_crlf_line_endings():
    result = parse_unified_memory_text("## EVENT_LOG\r\nTIME: 2024-01-01\r\nFACT: fact one\r\n")

    assert result.event_log.atomic_fact == ["fact one"]


@pytest.mark.parametrize("text", [None, "", "   \n ", "no sections at all", "## NARRATIVE\nSUMMARY: no content"])
def test_parse_returns_none_without_content(text):
    assert parse_unified_memory_text(text) is None


# ============================================================================
# Narrative sections
# ============================================================================

def test_multiple_narrative_blocks():
    text = "## NARRATIVE\nCONTENT: first\n---\nCONTENT: second\nSUMMARY: s2\n"

    result = parse_unified_memory_text(text)

    assert result.narrative.content == "first"
    assert [n.content for n in result.narratives] == ["first", "second"]
    assert result.narratives[1].summary == "s2"


def test_summary_falls_back_to_content_prefix():
    content = "x" * 250

    result = parse_unified_memory_text(f"## NARRATIVE\nCONTENT: {content}\n")

    assert result.narrative.summary == "x" * 200


def test_narrative_section_precedence():
    text = "## OVERVIEW\nCONTENT: overview text\n\n## EPISODE\nCONTENT: episode text\n"

    result = parse_unified_memory_text(text)

    assert result.narrative.content == "episode text"


def test_overview_used_when_narrative_is_empty():
    text = "## NARRATIVE\nSUMMARY: nothing usable\n\n## OVERVIEW\nCONTENT: overview text\n"

    result = parse_unified_memory_text(text)

    assert result.narrative.content == "overview text"


def test_duplicate_section_first_wins():
    text = "## EVENT_LOG\nFACT: first\n\n## EVENT_LOG\nFACT: second\n"

    result = parse_unified_memory_text(text)

    assert result.event_log.atomic_fact == ["first"]


# ============================================================================
# Facts, foresight and caps
# ============================================================================

def test_facts_section_goes_to_document_facts():
    text = "## EVENT_LOG\nFACT: chat fact\n\n## FACTS\nFACT: doc fact 1\nFACT: doc fact 2\n"

    result = parse_unified_memory_text(text)

    assert result.event_log.atomic_fact == ["chat fact"]
    assert result.document_facts.facts == ["doc fact 1", "doc fact 2"]


def test_facts_section_alone_is_content():
    result = parse_unified_memory_text("## FACTS\nFACT: doc fact\n")

    assert result is not None
    assert result.document_facts.facts == ["doc fact"]
    assert result.event_log is None


def test_fact_caps():
    event_facts = "\n".join(f"FACT: event {i}" for i in range(15))
    doc_facts = "\n".join(f"FACT: doc {i}" for i in range(25))

    result = parse_unified_memory_text(f"## EVENT_LOG\n{event_facts}\n\n## FACTS\n{doc_facts}\n")

    assert len(result.event_log.atomic_fact) == 10
    assert len(result.document_facts.facts) == 20
    assert result.event_log.time == ""


def test_foresight_cap_and_missing_content():
    blocks = "\n---\n".join(f"CONTENT: plan {i}" for i in range(12))

    result = parse_unified_memory_text(f"## FORESIGHT\nSTART: 2024\n---\n{blocks}\n")

    # first block has no CONTENT and still counts toward the 10-block cap
    assert [f.content for f in result.foresight] == [f"plan {i}" for i in range(9)]


# ============================================================================
# Profile
# ============================================================================

def test_legacy_profile_record():
    text = (
        "## PROFILE\n"
        "USER_ID: u1\n"
        "USER_NAME: Alice\n"
        "SUMMARY: Backend engineer\n"
        "HARD_SKILLS: Python, Go，SQL\n"
        "INTERESTS: hiking\n"
    )

    result = parse_unified_memory_text(text)

    assert result.profile.user_profiles == [{
        "user_name": "Alice",
        "summary": "Backend engineer",
        "output_reasoning": "Backend engineer",
        "hard_skills": ["Python", "Go", "SQL"],
        "interests": ["hiking"],
        "user_id": "u1",
    }]
    assert result.profile.collect_items() == []


def test_profile_with_only_user_id_is_ignored():
    assert parse_unified_memory_text("## PROFILE\nUSER_ID: u1\n") is None


def test_items_take_precedence_over_legacy_fields():
    result = parse_unified_memory_text("## PROFILE\nUSER_NAME: Alice\nITEM: likes tea\n")

    assert result.profile.user_profiles == [{"items": ["likes tea"]}]


def test_to_dict_only_includes_present_sections():
    result = parse_unified_memory_text("## PROFILE\nITEM: likes tea\n")

    assert result.to_dict() == {"profile": {"user_profiles": [{"items": ["likes tea"]}]}}
