"""Multi-message remote operations with a single local commit."""

from __future__ import annotations

import asyncio

from hookpost.core.guard import Lane, OperationGuard
from hookpost.core.results import BulkReport
from hookpost.errors import OperationInFlight, RemoteNotFound
from hookpost.models import Profile
from hookpost.remote.base import ChannelClient
from hookpost.store.profiles import ProfileStore
from hookpost.utils.logging import get_logger

log = get_logger(__name__)


class BulkExecutor:
    def __init__(
        self,
        store: ProfileStore,
        client: ChannelClient,
        guard: OperationGuard,
    ) -> None:
        self._store = store
        self._client = client
        self._guard = guard

    async def bulk_delete(self, profile_id: str) -> BulkReport:
        """Delete every tracked message remotely, then clear them from the cache.

        The cache is only touched once every remote call has settled, whatever
        the individual outcomes. Deletes that failed remotely reappear on the
        next sync.
        """
        profile = self._store.find(profile_id)
        if profile is None:
            return BulkReport(profile_id, skipped=True, reason="profile not found")

        try:
            async with self._guard.hold(profile_id, Lane.SYNC, "bulk_delete"):
                return await self._bulk_delete(profile)
        except OperationInFlight as e:
            return BulkReport(profile_id, skipped=True, reason=str(e))

    async def _bulk_delete(self, profile: Profile) -> BulkReport:
        ids = [m.remote_id for m in profile.messages]
        log.info("bulk_delete_started", profile=profile.id, messages=len(ids))

        results = await asyncio.gather(
            *(self._client.delete_message(profile.url, remote_id) for remote_id in ids),
            return_exceptions=True,
        )

        report = BulkReport(profile.id)
        for remote_id, result in zip(ids, results):
            if isinstance(result, BaseException) and not isinstance(result, RemoteNotFound):
                log.warning("bulk_delete_item_failed", message=remote_id, error=str(result))
                report.failed.append(remote_id)
            else:
                report.deleted.append(remote_id)

        dispatched = frozenset(ids)
        await self._store.update(profile.id, lambda p: p.without_messages(dispatched))
        log.info(
            "bulk_delete_finished",
            profile=profile.id,
            deleted=len(report.deleted),
            failed=len(report.failed),
        )
        return report
