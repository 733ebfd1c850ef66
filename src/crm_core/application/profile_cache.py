import dataclasses
import time
from typing import Callable, Dict, FrozenSet, Optional

from ..domain.models import Profile


@dataclasses.dataclass(frozen=True)
class CachedProfile:
    profile: Profile
    capabilities: FrozenSet[str]
    stored_at: float


class ProfileCache:
    """
    Per-user cache of the last successful profile + capability lookup.
    Entries older than ``ttl_sec`` are treated as absent.
    """
    def __init__(self, ttl_sec: float, clock: Callable[[], float] = time.time):
        self._ttl_sec = ttl_sec
        self._clock = clock
        self._entries: Dict[str, CachedProfile] = {}

    def get(self, user_id: str) -> Optional[CachedProfile]:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self._ttl_sec:
            del self._entries[user_id]
            return None
        return entry

    def has_fresh(self) -> bool:
        return any(self.get(user_id) is not None for user_id in list(self._entries))

    def store(self, user_id: str, profile: Profile, capabilities: FrozenSet[str]) -> None:
        self._entries[user_id] = CachedProfile(profile=profile, capabilities=frozenset(capabilities), stored_at=self._clock())

    def invalidate(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    def clear(self) -> None:
        self._entries.clear()
