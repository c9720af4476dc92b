"""Tests for profile merge strategies."""

import json

import pytest
from unittest.mock import AsyncMock

from core.constants.exceptions import ProfileMergeException
from memory.profile_manager import (
    FallbackMergeStrategy,
    LLMMergeStrategy,
    SimilarityMergeStrategy,
    SimpleMergeStrategy,
    merge_profiles_simple,
    merge_profiles_with_llm,
    normalize_fact,
)


def _llm(response=None, error=None):
    provider = AsyncMock()
    provider.generate = AsyncMock(return_value=response, side_effect=error)
    return provider


# ============================================================================
# normalize_fact
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("用户喜欢音乐。", "用户喜欢音乐"),
    ("  Likes  Jazz!! ", "likes jazz"),
    ("“老大”——称呼", "老大 称呼"),
    ("a,b;c", "a b c"),
    ("...", ""),
])
def test_normalize_fact(text, expected):
    assert normalize_fact(text) == expected


# ============================================================================
# merge_profiles_simple
# ============================================================================

def test_simple_merge_appends_only_new_facts():
    result = merge_profiles_simple(
        ["用户喜欢音乐", "Likes jazz"],
        ["用户喜欢音乐。", "likes JAZZ!", "用户喜欢电影", "用户喜欢电影"],
    )

    assert result.items == ["用户喜欢音乐", "Likes jazz", "用户喜欢电影"]
    assert result.added == ["用户喜欢电影"]
    assert result.has_changes is True
    assert result.strategy == "simple"


def test_simple_merge_no_changes():
    result = merge_profiles_simple(["用户喜欢音乐"], ["用户喜欢音乐！", "  ", None])

    assert result.items == ["用户喜欢音乐"]
    assert result.has_changes is False
    assert result.summary == "No new facts"


def test_simple_merge_keeps_incoming_verbatim():
    result = merge_profiles_simple(None, ["  Prefers Tea.  "])

    assert result.items == ["Prefers Tea."]


@pytest.mark.asyncio
async def test_simple_strategy_delegates():
    result = await SimpleMergeStrategy().merge(["a fact"], ["b fact"])

    assert result.items == ["a fact", "b fact"]


# ============================================================================
# SimilarityMergeStrategy
# ============================================================================

@pytest.mark.asyncio
async def test_similarity_merge_skips_near_duplicates():
    strategy = SimilarityMergeStrategy(threshold=0.8)

    result = await strategy.merge(
        ["The user likes listening to jazz music"],
        ["The user likes listening to jazz music a lot", "The user owns a cat"],
    )

    assert result.added == ["The user owns a cat"]
    assert result.strategy == "similarity"


@pytest.mark.asyncio
async def test_similarity_merge_keeps_distinct_short_facts():
    result = await SimilarityMergeStrategy().merge(["用户喜欢音乐"], ["用户喜欢电影"])

    assert result.items == ["用户喜欢音乐", "用户喜欢电影"]


# ============================================================================
# LLMMergeStrategy
# ============================================================================

@pytest.mark.asyncio
async def test_llm_merge_uses_returned_items():
    provider = _llm(json.dumps({
        "items": ["用户喜欢音乐和电影", "用户希望被称为老大"],
        "summary": "Combined music and movies",
    }, ensure_ascii=False))

    result = await LLMMergeStrategy(provider).merge(["用户喜欢音乐"], ["用户喜欢电影", "用户希望被称为老大"])

    assert result.items == ["用户喜欢音乐和电影", "用户希望被称为老大"]
    assert result.has_changes is True
    assert result.summary == "Combined music and movies"
    assert result.strategy == "llm"
    kwargs = provider.generate.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == 0.0
    assert "用户喜欢电影" in kwargs["prompt"]


@pytest.mark.asyncio
async def test_llm_merge_detects_no_change():
    provider = _llm('{"items": ["用户喜欢音乐。"]}')

    result = await LLMMergeStrategy(provider).merge(["用户喜欢音乐"], ["用户喜欢音乐"])

    assert result.has_changes is False


@pytest.mark.asyncio
async def test_llm_merge_skips_call_without_incoming():
    provider = _llm('{"items": []}')

    result = await LLMMergeStrategy(provider).merge(["a fact"], [])

    assert result.has_changes is False
    provider.generate.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("response, error", [
    ("not json", None),
    ('{"items": []}', None),
    ('{"items": "one"}', None),
    (None, RuntimeError("llm down")),
])
async def test_llm_merge_failures_raise(response, error):
    strategy = LLMMergeStrategy(_llm(response, error))

    with pytest.raises(ProfileMergeException) as exc_info:
        await strategy.merge(["a fact"], ["b fact"])
    assert exc_info.value.details["strategy"] == "llm"


# ============================================================================
# Fallback
# ============================================================================

@pytest.mark.asyncio
async def test_fallback_strategy_uses_fallback_on_error():
    strategy = FallbackMergeStrategy(LLMMergeStrategy(_llm("garbage")), SimpleMergeStrategy())

    result = await strategy.merge(["a fact"], ["b fact"])

    assert strategy.name == "llm->simple"
    assert result.items == ["a fact", "b fact"]
    assert result.strategy == "simple"


@pytest.mark.asyncio
async def test_merge_profiles_with_llm_never_raises():
    result = await merge_profiles_with_llm(["a fact"], ["a fact.", "c fact"], _llm(error=RuntimeError("down")))

    assert result.items == ["a fact", "c fact"]
    assert result.has_changes is True


@pytest.mark.asyncio
async def test_merge_profiles_with_llm_success():
    result = await merge_profiles_with_llm(["a fact"], ["c fact"], _llm('{"items": ["a fact", "c fact"]}'))

    assert result.strategy == "llm"
    assert result.added == ["c fact"]
