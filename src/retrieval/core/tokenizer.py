"""CJK-aware tokenizer for keyword search.

CJK runs are segmented with jieba; everything else is split on non-word
characters. Token order follows the input, which keyword search relies on
when it builds an ordered ``LIKE`` pattern.
"""

import re
from typing import List

import jieba

_CJK_RANGES = "\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff"
_CJK_SEQ_RE = re.compile(f"([{_CJK_RANGES}]+)")
_CJK_CHAR_RE = re.compile(f"[{_CJK_RANGES}]")
_NON_WORD_RE = re.compile(r"[^\w]+")


def cjk_tokenize(text: str) -> List[str]:
    """Tokenize mixed CJK / Latin text.

    Examples:
        cjk_tokenize("用户喜欢音乐")   # -> ["用户", "喜欢", "音乐"]
        cjk_tokenize("hello, world")  # -> ["hello", "world"]
    """
    if not text:
        return []

    tokens: List[str] = []
    for segment in _CJK_SEQ_RE.split(text):
        if not segment:
            continue
        if _CJK_CHAR_RE.search(segment):
            # Precise mode: no overlapping sub-words
            tokens.extend(w.strip() for w in jieba.cut(segment) if w.strip())
        else:
            tokens.extend(w for w in _NON_WORD_RE.split(segment) if w)
    return tokens
