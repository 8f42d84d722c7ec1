"""Durable key-value persistence for profiles with SQLite backend."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from hookpost.models import Profile
from hookpost.store.base import ProfilePersistence
from hookpost.utils.logging import get_logger

log = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

PROFILES_KEY = "profiles"
ACTIVE_KEY = "active_profile"


class SqlitePersistence(ProfilePersistence):
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def stop(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def load(self) -> tuple[list[Profile], str | None]:
        raw_profiles = await self._get(PROFILES_KEY)
        raw_active = await self._get(ACTIVE_KEY)

        profiles: list[Profile] = []
        if raw_profiles:
            for entry in json.loads(raw_profiles):
                try:
                    profiles.append(Profile.from_dict(entry))
                except (KeyError, TypeError, ValueError):
                    log.warning("profile_load_skipped", entry=str(entry)[:200])

        active_id = json.loads(raw_active) if raw_active else None
        log.debug("profiles_loaded", count=len(profiles), active=active_id)
        return profiles, active_id

    async def save(self, profiles: Sequence[Profile], active_id: str | None) -> None:
        """Write both keys in one transaction."""
        assert self._db is not None
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            (PROFILES_KEY, json.dumps([p.to_dict() for p in profiles]), now),
            (ACTIVE_KEY, json.dumps(active_id), now),
        ]
        await self._db.executemany(
            "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "value = excluded.value, "
            "updated_at = excluded.updated_at",
            rows,
        )
        await self._db.commit()

    async def _get(self, key: str) -> str | None:
        assert self._db is not None
        cursor = await self._db.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return row[0]
