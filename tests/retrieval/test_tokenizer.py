"""Tests for the CJK-aware tokenizer."""

from retrieval.core.tokenizer import cjk_tokenize


def test_latin_text_splits_on_non_word_characters():
    assert cjk_tokenize("hello, world! foo_bar 42") == ["hello", "world", "foo_bar", "42"]


def test_empty_and_punctuation_only():
    assert cjk_tokenize("") == []
    assert cjk_tokenize("  ,.!? ") == []


def test_chinese_text_is_segmented_without_loss():
    tokens = cjk_tokenize("用户喜欢音乐")

    assert len(tokens) > 1
    assert "".join(tokens) == "用户喜欢音乐"


def test_mixed_text_keeps_input_order():
    tokens = cjk_tokenize("Alice喜欢jazz音乐")

    assert tokens[0] == "Alice"
    assert "jazz" in tokens
    assert tokens.index("Alice") < tokens.index("jazz")
    assert "".join(tokens) == "Alice喜欢jazz音乐"


def test_chinese_punctuation_is_dropped():
    tokens = cjk_tokenize("音乐，电影。")

    assert "，" not in tokens
    assert "。" not in tokens
    assert "".join(tokens) == "音乐电影"
