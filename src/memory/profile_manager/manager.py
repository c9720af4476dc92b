"""ProfileManager - folds extracted profile facts into the persisted profile."""

from datetime import datetime
from typing import Dict, List, Optional

from core.observation.logger import activity_scope, get_logger
from memory.schema.extraction_result import UnifiedExtractionResult
from memory.schema.profile_memory import ProfileMemory, ProfileMergeResult
from memory.profile_manager.merger import (
    ProfileMergeStrategy,
    SimpleMergeStrategy,
    merge_profiles_simple,
)
from memory.profile_manager.storage import ProfileStorage, InMemoryProfileStorage

logger = get_logger(__name__)


class ProfileManager:
    """Keeps one deduplicated atomic-fact profile per user.

    - First extraction with profile facts creates the profile.
    - Later extractions are merged through the configured strategy; the
      profile is written only when the merge reports changes.
    - Profiles are never deleted here.

    Example:
        ```python
        manager = ProfileManager(
            storage=InMemoryProfileStorage(),
            merge_strategy=FallbackMergeStrategy(
                LLMMergeStrategy(llm_provider), SimpleMergeStrategy()
            ),
        )

        result = parse_unified_memory_text(llm_output)
        profile = await manager.apply_extraction("user_123", result)
        ```
    """

    def __init__(
        self,
        storage: Optional[ProfileStorage] = None,
        merge_strategy: Optional[ProfileMergeStrategy] = None,
    ):
        """Initialize ProfileManager.

        Args:
            storage: Profile storage backend (uses InMemoryProfileStorage if None)
            merge_strategy: Merge strategy (uses SimpleMergeStrategy if None)
        """
        self._storage = storage or InMemoryProfileStorage()
        self._merge_strategy = merge_strategy or SimpleMergeStrategy()

        self._stats = {
            "profiles_created": 0,
            "profiles_updated": 0,
            "unchanged_merges": 0,
        }

    async def apply_extraction(
        self,
        user_id: str,
        result: Optional[UnifiedExtractionResult],
        group_id: Optional[str] = None,
    ) -> Optional[ProfileMemory]:
        """Merge the profile section of an extraction into the user's profile.

        Only canonical ``{"items": [...]}`` records are used; legacy
        structured records are skipped.

        Returns:
            The current profile (updated or not), or None when the user has
            no profile and the extraction carried no facts.
        """
        with activity_scope():
            return await self._apply_extraction(user_id, result, group_id)

    async def _apply_extraction(
        self,
        user_id: str,
        result: Optional[UnifiedExtractionResult],
        group_id: Optional[str],
    ) -> Optional[ProfileMemory]:
        existing = await self._storage.get_profile(user_id)

        incoming = result.profile.collect_items() if result and result.profile else []
        if result and result.profile and len(incoming) == 0:
            logger.debug(f"Profile section for {user_id} has no atomic items (legacy format), skipped")

        if not incoming:
            return existing

        if existing is None:
            merge = merge_profiles_simple([], incoming)
            if not merge.items:
                return None
            profile = ProfileMemory(
                user_id=user_id,
                items=merge.items,
                group_id=group_id,
                merge_history=[merge.summary],
            )
            await self._storage.save_profile(profile)
            self._stats["profiles_created"] += 1
            logger.info(f"Created profile for {user_id} with {len(profile.items)} facts")
            return profile

        merge = await self._merge_strategy.merge(existing.items, incoming)
        if not merge.has_changes:
            self._stats["unchanged_merges"] += 1
            logger.debug(f"Profile for {user_id} unchanged ({merge.strategy})")
            return existing

        self._apply_merge(existing, merge)
        await self._storage.save_profile(existing)
        self._stats["profiles_updated"] += 1
        logger.info(
            f"Updated profile for {user_id} (v{existing.version}, {merge.strategy}): {merge.summary}"
        )
        return existing

    @staticmethod
    def _apply_merge(profile: ProfileMemory, merge: ProfileMergeResult) -> None:
        profile.items = list(merge.items)
        profile.version += 1
        profile.updated_at = datetime.now()
        profile.merge_history.append(merge.summary)

    async def get_profile(self, user_id: str) -> Optional[ProfileMemory]:
        """Get the latest profile for a user."""
        return await self._storage.get_profile(user_id)

    async def get_all_profiles(self) -> Dict[str, ProfileMemory]:
        return await self._storage.get_all_profiles()

    async def get_profile_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[ProfileMemory]:
        """Saved versions of a user's profile, newest first."""
        return await self._storage.get_profile_history(user_id, limit)

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
