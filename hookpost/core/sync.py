"""Reconcile a profile's cached messages against the webhook."""

from __future__ import annotations

import asyncio

from hookpost.core.guard import Lane, OperationGuard
from hookpost.core.results import SyncReport
from hookpost.errors import OperationInFlight, RemoteFailure, RemoteNotFound
from hookpost.models import Dropped, Message, Payload, Profile, SyncOutcome, Unchanged, Updated
from hookpost.remote.base import ChannelClient
from hookpost.store.profiles import ProfileStore
from hookpost.utils.logging import get_logger

log = get_logger(__name__)


class SyncCoordinator:
    """Refreshes every cached message with one concurrent fetch per message.

    A message the webhook reports as missing is dropped. A message whose
    fetch fails for any other reason keeps its last known payload, so an
    unreachable endpoint never erases history. Nothing is committed until
    every fetch has settled.
    """

    def __init__(
        self,
        store: ProfileStore,
        client: ChannelClient,
        guard: OperationGuard,
    ) -> None:
        self._store = store
        self._client = client
        self._guard = guard

    async def reconcile(self, profile_id: str) -> SyncReport:
        profile = self._store.find(profile_id)
        if profile is None:
            return SyncReport(profile_id, skipped=True, reason="profile not found")
        if not profile.messages:
            return SyncReport(profile_id)

        try:
            async with self._guard.hold(profile_id, Lane.SYNC, "reconcile"):
                return await self._reconcile(profile)
        except OperationInFlight as e:
            return SyncReport(profile_id, messages=profile.messages, skipped=True, reason=str(e))

    async def _reconcile(self, profile: Profile) -> SyncReport:
        log.info("sync_started", profile=profile.id, messages=len(profile.messages))
        outcomes: list[SyncOutcome] = await asyncio.gather(
            *(self._check(profile.url, m) for m in profile.messages)
        )

        report = SyncReport(profile.id)
        dropped: set[str] = set()
        fresh: dict[str, Payload] = {}
        for outcome in outcomes:
            remote_id = outcome.message.remote_id
            if isinstance(outcome, Dropped):
                dropped.add(remote_id)
                report.dropped.append(remote_id)
            elif isinstance(outcome, Updated):
                fresh[remote_id] = outcome.payload
                report.updated.append(remote_id)
            elif outcome.reason:
                report.failed.append(remote_id)

        def apply(current: Profile) -> Profile:
            # Messages sent or deleted while fetching are left as they are now
            return current.with_messages(
                m.with_payload(fresh[m.remote_id]) if m.remote_id in fresh else m
                for m in current.messages
                if m.remote_id not in dropped
            )

        committed = await self._store.update(profile.id, apply)
        report.messages = committed.messages if committed else ()
        log.info(
            "sync_finished",
            profile=profile.id,
            updated=len(report.updated),
            dropped=len(report.dropped),
            failed=len(report.failed),
        )
        return report

    async def _check(self, url: str, message: Message) -> SyncOutcome:
        try:
            payload = await self._client.fetch_message(url, message.remote_id)
        except RemoteNotFound:
            log.info("sync_message_gone", message=message.remote_id)
            return Dropped(message)
        except RemoteFailure as e:
            log.warning("sync_message_unreachable", message=message.remote_id, error=str(e))
            return Unchanged(message, reason=str(e) or "remote failure")
        except Exception as e:
            log.warning("sync_message_error", message=message.remote_id, exc_info=True)
            return Unchanged(message, reason=f"{e.__class__.__name__}: {e}")

        if payload == message.payload:
            return Unchanged(message)
        return Updated(message, payload)
