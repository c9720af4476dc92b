"""Profile merge strategies.

A profile is a list of atomic facts. Merging folds newly extracted facts
into the stored list without duplicates:

- SimpleMergeStrategy: exact match on the normalized form (fast path)
- SimilarityMergeStrategy: also drops near-duplicates (Dice / jieba Jaccard)
- LLMMergeStrategy: semantic merge by a completion model; raises on failure
- FallbackMergeStrategy: tries a primary strategy, falls back on any error

``merge_profiles_with_llm`` wires LLM -> simple and never raises.
"""

import json
import re
import string
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from core.constants.exceptions import ProfileMergeException
from core.observation.logger import get_logger
from memory.schema.profile_memory import ProfileMergeResult
from prompts.memory.en.profile.profile_merge_prompts import PROFILE_MERGE_PROMPT
from utils.json_utils import extract_json_object

from .similarity import text_similarity

logger = get_logger(__name__)

# CJK symbols and punctuation, full-width forms, curly quotes, ellipsis, dashes, middle dot
_CJK_PUNCTUATION = "\u3000-\u303f\uff01-\uff0f\uff1a-\uff20\uff3b-\uff40\uff5b-\uff65\u2018-\u201f\u2026\u2014\u2013\u00b7"
_SEPARATOR_RUN_RE = re.compile(f"[\\s{re.escape(string.punctuation)}{_CJK_PUNCTUATION}]+")


def normalize_fact(text: str) -> str:
    """Comparison key for a fact.

    Lowercase; runs of whitespace, ASCII punctuation and CJK punctuation
    collapse into a single space; trimmed.

    Examples:
        normalize_fact("用户喜欢音乐。")       # -> "用户喜欢音乐"
        normalize_fact("  Likes  Jazz!! ")   # -> "likes jazz"
    """
    return _SEPARATOR_RUN_RE.sub(" ", text.strip().lower()).strip()


def _clean_facts(facts: Optional[Iterable[str]]) -> List[str]:
    return [str(f).strip() for f in (facts or []) if f is not None and str(f).strip()]


def _summarize(added: List[str]) -> str:
    if not added:
        return "No new facts"
    return f"Added {len(added)} fact(s): " + "; ".join(added)


def merge_profiles_simple(
    existing: Optional[Iterable[str]],
    incoming: Optional[Iterable[str]],
) -> ProfileMergeResult:
    """Append incoming facts whose normalized form is new.

    Incoming facts are appended verbatim (original casing and punctuation),
    duplicates inside ``incoming`` are dropped as well. When nothing is new
    the existing list comes back unchanged with ``has_changes=False``.
    """
    items = list(existing or [])
    seen = {normalize_fact(f) for f in items}

    added = []
    for fact in _clean_facts(incoming):
        key = normalize_fact(fact)
        if not key or key in seen:
            continue
        seen.add(key)
        added.append(fact)

    return ProfileMergeResult(
        items=items + added,
        has_changes=bool(added),
        added=added,
        summary=_summarize(added),
        strategy=SimpleMergeStrategy.name,
    )


class ProfileMergeStrategy(ABC):
    """Merges incoming atomic facts into an existing fact list."""

    name: str = "base"

    @abstractmethod
    async def merge(
        self, existing: List[str], incoming: List[str]
    ) -> ProfileMergeResult:
        ...


class SimpleMergeStrategy(ProfileMergeStrategy):
    name = "simple"

    async def merge(self, existing: List[str], incoming: List[str]) -> ProfileMergeResult:
        return merge_profiles_simple(existing, incoming)


class SimilarityMergeStrategy(ProfileMergeStrategy):
    """Drops incoming facts that are near-duplicates of a kept fact.

    A fact is a duplicate when its normalized form matches, or when
    ``text_similarity`` with any existing or already accepted fact reaches
    ``threshold``.
    """

    name = "similarity"

    def __init__(self, threshold: float = 0.8):
        self.threshold = threshold

    async def merge(self, existing: List[str], incoming: List[str]) -> ProfileMergeResult:
        items = list(existing or [])
        seen = {normalize_fact(f) for f in items}
        kept = list(items)

        added = []
        for fact in _clean_facts(incoming):
            key = normalize_fact(fact)
            if not key or key in seen:
                continue
            best = max((text_similarity(fact, other) for other in kept), default=0.0)
            if best >= self.threshold:
                logger.debug(f"Near-duplicate fact skipped (sim={best:.3f}): {fact}")
                continue
            seen.add(key)
            kept.append(fact)
            added.append(fact)

        return ProfileMergeResult(
            items=items + added,
            has_changes=bool(added),
            added=added,
            summary=_summarize(added),
            strategy=self.name,
        )


class LLMMergeStrategy(ProfileMergeStrategy):
    """Semantic merge by a completion model.

    Raises:
        ProfileMergeException: LLM error, malformed JSON or empty ``items``
    """

    name = "llm"

    def __init__(self, llm_provider, temperature: float = 0.0, max_tokens: int = 2000):
        self.llm_provider = llm_provider
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def merge(self, existing: List[str], incoming: List[str]) -> ProfileMergeResult:
        existing = list(existing or [])
        incoming = _clean_facts(incoming)
        if not incoming:
            return ProfileMergeResult(
                items=existing, has_changes=False, summary="No incoming facts", strategy=self.name
            )

        prompt = PROFILE_MERGE_PROMPT.format(
            existing_items=json.dumps(existing, ensure_ascii=False, indent=2),
            incoming_items=json.dumps(incoming, ensure_ascii=False, indent=2),
        )

        try:
            response = await self.llm_provider.generate(
                prompt=prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
            data = extract_json_object(response)
        except Exception as e:
            raise ProfileMergeException(
                f"LLM profile merge failed: {e}", strategy=self.name, original_exception=e
            ) from e

        raw_items = data.get("items")
        items = _clean_facts(raw_items) if isinstance(raw_items, list) else []
        if not items:
            raise ProfileMergeException("LLM returned no profile items", strategy=self.name)

        existing_keys = [normalize_fact(f) for f in existing]
        existing_key_set = set(existing_keys)
        added = [f for f in items if normalize_fact(f) not in existing_key_set]
        has_changes = [normalize_fact(f) for f in items] != existing_keys

        summary = data.get("summary")
        return ProfileMergeResult(
            items=items,
            has_changes=has_changes,
            added=added,
            summary=str(summary) if summary else _summarize(added),
            strategy=self.name,
        )


class FallbackMergeStrategy(ProfileMergeStrategy):
    """Runs ``primary``; on any exception logs a warning and runs ``fallback``."""

    def __init__(self, primary: ProfileMergeStrategy, fallback: ProfileMergeStrategy):
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}->{fallback.name}"

    async def merge(self, existing: List[str], incoming: List[str]) -> ProfileMergeResult:
        try:
            return await self.primary.merge(existing, incoming)
        except Exception as e:
            logger.warning(
                f"Profile merge strategy '{self.primary.name}' failed, "
                f"falling back to '{self.fallback.name}': {e}"
            )
            return await self.fallback.merge(existing, incoming)


async def merge_profiles_with_llm(
    existing: Optional[Iterable[str]],
    incoming: Optional[Iterable[str]],
    llm_provider,
) -> ProfileMergeResult:
    """Semantic merge with fallback to :func:`merge_profiles_simple`. Never raises."""
    strategy = FallbackMergeStrategy(LLMMergeStrategy(llm_provider), SimpleMergeStrategy())
    return await strategy.merge(list(existing or []), list(incoming or []))
