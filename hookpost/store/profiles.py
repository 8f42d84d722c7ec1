"""Process-wide profile collection and active-profile pointer."""

from __future__ import annotations

import asyncio
from typing import Callable

from hookpost.errors import ProfileNotFound
from hookpost.models import Profile
from hookpost.store.base import ProfilePersistence
from hookpost.utils.logging import get_logger

log = get_logger(__name__)

ProfileUpdate = Callable[[Profile], Profile]


class ProfileStore:
    """Owns the ordered profiles and the active profile id.

    Every change swaps in a whole new ``Profile`` and is written back through
    the persistence port before the call returns.
    """

    def __init__(self, persistence: ProfilePersistence) -> None:
        self._persistence = persistence
        self._profiles: tuple[Profile, ...] = ()
        self._active_id: str | None = None
        self._save_lock = asyncio.Lock()

    async def load(self) -> None:
        profiles, active_id = await self._persistence.load()
        self._profiles = tuple(profiles)
        self._active_id = active_id if self.find(active_id) else None

    @property
    def profiles(self) -> tuple[Profile, ...]:
        return self._profiles

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active(self) -> Profile | None:
        return self.find(self._active_id)

    def find(self, profile_id: str | None) -> Profile | None:
        if profile_id is None:
            return None
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        return None

    def get(self, profile_id: str) -> Profile:
        profile = self.find(profile_id)
        if profile is None:
            raise ProfileNotFound(profile_id)
        return profile

    async def add(self, profile: Profile, activate: bool = True) -> Profile:
        self._profiles = (*self._profiles, profile)
        if activate:
            self._active_id = profile.id
        log.info("profile_added", profile=profile.id, name=profile.name)
        await self._save()
        return profile

    async def update(self, profile_id: str, fn: ProfileUpdate) -> Profile | None:
        """Apply ``fn`` to the current version of a profile and commit the result.

        Returns None when the profile was removed in the meantime.
        """
        current = self.find(profile_id)
        if current is None:
            log.warning("profile_update_skipped", profile=profile_id)
            return None
        updated = fn(current)
        self._profiles = tuple(updated if p.id == profile_id else p for p in self._profiles)
        await self._save()
        return updated

    async def remove(self, profile_id: str) -> Profile:
        removed = self.get(profile_id)
        self._profiles = tuple(p for p in self._profiles if p.id != profile_id)
        if self._active_id == profile_id:
            self._active_id = self._profiles[0].id if self._profiles else None
        log.info("profile_removed", profile=profile_id, messages=len(removed.messages))
        await self._save()
        return removed

    async def set_active(self, profile_id: str | None) -> Profile | None:
        profile = self.get(profile_id) if profile_id is not None else None
        self._active_id = profile_id
        await self._save()
        return profile

    async def _save(self) -> None:
        # State is read inside the lock so the last write always carries the latest state
        async with self._save_lock:
            await self._persistence.save(self._profiles, self._active_id)
