"""Profile storage backends for ProfileManager."""

import copy
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from memory.schema.profile_memory import ProfileMemory


class ProfileStorage(ABC):
    """Persists one ProfileMemory per user."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[ProfileMemory]:
        ...

    @abstractmethod
    async def save_profile(self, profile: ProfileMemory) -> None:
        ...

    @abstractmethod
    async def get_all_profiles(self) -> Dict[str, ProfileMemory]:
        ...

    async def get_profile_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[ProfileMemory]:
        """Previous versions, newest first. Backends without history return []."""
        return []


class InMemoryProfileStorage(ProfileStorage):
    """Dict-backed storage, optionally keeping every saved version."""

    def __init__(self, enable_versioning: bool = True):
        self.enable_versioning = enable_versioning
        self._profiles: Dict[str, ProfileMemory] = {}
        self._history: Dict[str, List[ProfileMemory]] = {}

    async def get_profile(self, user_id: str) -> Optional[ProfileMemory]:
        profile = self._profiles.get(user_id)
        return copy.deepcopy(profile) if profile is not None else None

    async def save_profile(self, profile: ProfileMemory) -> None:
        snapshot = copy.deepcopy(profile)
        self._profiles[profile.user_id] = snapshot
        if self.enable_versioning:
            self._history.setdefault(profile.user_id, []).append(snapshot)

    async def get_all_profiles(self) -> Dict[str, ProfileMemory]:
        return {user_id: copy.deepcopy(p) for user_id, p in self._profiles.items()}

    async def get_profile_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[ProfileMemory]:
        history = list(reversed(self._history.get(user_id, [])))
        if limit is not None:
            history = history[:limit]
        return [copy.deepcopy(p) for p in history]
