"""Text similarity for near-duplicate profile facts.

text_similarity = max(Dice coefficient over character bigrams,
                      Jaccard over jieba tokens)

Dice is language-agnostic and order-preserving; the jieba Jaccard adds a
word-level signal for Chinese. Taking the max covers both.
"""

import unicodedata
from collections import Counter
from typing import Set

import jieba

STOP_WORDS = frozenset({
    "的", "了", "是", "在", "我", "有", "和", "就", "不", "人", "都", "一",
    "一个", "上", "也", "很", "到", "说", "要", "去", "你", "会", "着",
    "没有", "看", "好", "自己", "这",
    "the", "a", "an", "is", "are", "was", "be", "to", "of", "and", "in",
    "that", "it", "for",
})


def _is_separator(ch: str) -> bool:
    """Whitespace, punctuation (P*) or symbol (S*)."""
    return ch.isspace() or unicodedata.category(ch)[0] in ("P", "S")


def normalize_for_similarity(text: str) -> str:
    """Drop whitespace, punctuation and symbols, lowercase."""
    return "".join(ch for ch in text if not _is_separator(ch)).lower()


def build_bigrams(normalized: str) -> Counter:
    """Multiset of character bigrams."""
    return Counter(normalized[i:i + 2] for i in range(len(normalized) - 1))


def dice_coefficient(text_a: str, text_b: str) -> float:
    """Sørensen-Dice over character bigrams: 2|A∩B| / (|A| + |B|)."""
    norm_a = normalize_for_similarity(text_a)
    norm_b = normalize_for_similarity(text_b)
    if len(norm_a) < 2 or len(norm_b) < 2:
        return 1.0 if norm_a == norm_b else 0.0

    bigrams_a = build_bigrams(norm_a)
    bigrams_b = build_bigrams(norm_b)
    intersection = sum((bigrams_a & bigrams_b).values())
    return 2 * intersection / (sum(bigrams_a.values()) + sum(bigrams_b.values()))


def tokenize_for_similarity(text: str) -> Set[str]:
    """jieba tokens, lowercased, without stop words and pure punctuation."""
    tokens = set()
    for token in jieba.cut(text):
        token = token.strip().lower()
        if not token or token in STOP_WORDS:
            continue
        if all(_is_separator(ch) for ch in token):
            continue
        tokens.add(token)
    return tokens


def jaccard_similarity(a: Set[str], b: Set[str]) -> float:
    """|A∩B| / |A∪B|; two empty sets are identical."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def text_similarity(text_a: str, text_b: str) -> float:
    """Combined similarity in [0, 1]."""
    dice = dice_coefficient(text_a, text_b)

    tokens_a = tokenize_for_similarity(text_a)
    tokens_b = tokenize_for_similarity(text_b)
    jaccard = jaccard_similarity(tokens_a, tokens_b) if tokens_a and tokens_b else 0.0

    return max(dice, jaccard)
