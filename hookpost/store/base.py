"""Persistence port for the profile store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from hookpost.models import Profile


class ProfilePersistence(ABC):
    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    @abstractmethod
    async def load(self) -> tuple[list[Profile], str | None]:
        """Return the saved profiles and the active profile id."""
        ...

    @abstractmethod
    async def save(self, profiles: Sequence[Profile], active_id: str | None) -> None: ...
