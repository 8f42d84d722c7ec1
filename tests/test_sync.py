"""Tests for reconciling cached messages against the webhook."""

import asyncio

import pytest

from hookpost.core.guard import Lane, OperationGuard, OperationState
from hookpost.core.mutations import ComposeMode, ComposeState, build_payload
from hookpost.core.sync import SyncCoordinator
from hookpost.models import Embed, EmbedPayload, Message, Profile, TextPayload, payload_from_wire
from hookpost.store.profiles import ProfileStore
from tests.fakes import WEBHOOK_URL, FakeChannelClient, MemoryPersistence


def _msg(mid, content="text"):
    return Message(mid, TextPayload(content), "12:00:00")


@pytest.fixture
def client():
    return FakeChannelClient()


@pytest.fixture
def guard():
    return OperationGuard()


@pytest.fixture
async def store():
    s = ProfileStore(MemoryPersistence())
    await s.load()
    return s


@pytest.fixture
def coordinator(store, client, guard):
    return SyncCoordinator(store, client, guard)


async def _add(store, client, messages, remote=True):
    profile = await store.add(Profile(name="p", url=WEBHOOK_URL, messages=tuple(messages)))
    if remote:
        for m in messages:
            client.remote[m.remote_id] = m.payload
    return profile


class TestReconcile:
    async def test_no_messages_is_noop(self, coordinator, store, client):
        profile = await _add(store, client, [])
        report = await coordinator.reconcile(profile.id)
        assert report.messages == ()
        assert not report.skipped
        assert client.calls == []

    async def test_unknown_profile_is_skipped(self, coordinator):
        report = await coordinator.reconcile("missing")
        assert report.skipped

    async def test_not_found_messages_are_dropped(self, coordinator, store, client):
        profile = await _add(store, client, [_msg("1"), _msg("2"), _msg("3")])
        del client.remote["2"]

        report = await coordinator.reconcile(profile.id)

        assert report.dropped == ["2"]
        assert [m.remote_id for m in store.get(profile.id).messages] == ["1", "3"]
        assert report.messages == store.get(profile.id).messages

    async def test_transient_failure_keeps_last_known_payload(self, coordinator, store, client):
        original = _msg("1", "before")
        profile = await _add(store, client, [original, _msg("2")])
        client.remote["1"] = TextPayload("after")
        client.fail_ids.add("1")

        report = await coordinator.reconcile(profile.id)

        assert report.failed == ["1"]
        assert store.get(profile.id).messages[0] == original

    async def test_unexpected_client_error_fails_open(self, coordinator, store, client):
        profile = await _add(store, client, [_msg("1")])

        async def broken(url, mid):
            raise RuntimeError("bug")

        client.fetch_message = broken
        report = await coordinator.reconcile(profile.id)
        assert report.failed == ["1"]
        assert [m.remote_id for m in store.get(profile.id).messages] == ["1"]

    async def test_success_replaces_payload_only(self, coordinator, store, client):
        original = Message("1", TextPayload("old"), "09:15:00 (Imported)", imported=True)
        profile = await _add(store, client, [original])
        fresh = EmbedPayload(Embed(title="new", description="body", color=0xFF0000))
        client.remote["1"] = fresh

        report = await coordinator.reconcile(profile.id)

        synced = store.get(profile.id).messages[0]
        assert report.updated == ["1"]
        assert synced.payload == fresh
        assert synced.remote_id == "1"
        assert synced.timestamp == "09:15:00 (Imported)"
        assert synced.imported is True

    async def test_identical_payload_is_not_reported_as_updated(self, coordinator, store, client):
        profile = await _add(store, client, [_msg("1")])
        report = await coordinator.reconcile(profile.id)
        assert report.updated == []
        assert report.failed == []

    async def test_reloaded_embed_without_title_is_unchanged(self, client, guard):
        payload, _ = build_payload(
            ComposeState(mode=ComposeMode.EMBED, title="", description="Body", color="#112233")
        )
        sent = Message("1", payload, "t")
        client.remote["1"] = payload_from_wire(payload.to_wire())

        reloaded = Profile.from_dict(Profile(name="p", url=WEBHOOK_URL, messages=(sent,)).to_dict())
        store = ProfileStore(MemoryPersistence([reloaded], reloaded.id))
        await store.load()

        report = await SyncCoordinator(store, client, guard).reconcile(reloaded.id)

        assert report.updated == []
        assert store.get(reloaded.id).messages == (sent,)

    async def test_order_preserved(self, coordinator, store, client):
        messages = [_msg(str(i)) for i in range(10)]
        profile = await _add(store, client, messages)
        for gone in ("2", "5", "7"):
            del client.remote[gone]
        client.fail_ids.add("4")

        await coordinator.reconcile(profile.id)

        ids = [m.remote_id for m in store.get(profile.id).messages]
        assert ids == ["0", "1", "3", "4", "6", "8", "9"]

    async def test_endpoint_unreachable_keeps_everything(self, coordinator, store, client):
        messages = [_msg("1"), _msg("2")]
        profile = await _add(store, client, messages)
        client.fail_all = True

        report = await coordinator.reconcile(profile.id)

        assert store.get(profile.id).messages == tuple(messages)
        assert sorted(report.failed) == ["1", "2"]


class TestConcurrency:
    async def test_fetches_run_concurrently(self, coordinator, store, client):
        profile = await _add(store, client, [_msg("1"), _msg("2"), _msg("3")])
        client.gate = asyncio.Event()

        task = asyncio.create_task(coordinator.reconcile(profile.id))
        await asyncio.sleep(0.01)
        # Every fetch is waiting at the same time
        assert sorted(client.calls_for("fetch")) == ["1", "2", "3"]

        client.gate.set()
        await task

    async def test_reentrant_reconcile_rejected(self, coordinator, store, client, guard):
        profile = await _add(store, client, [_msg("1")])
        client.gate = asyncio.Event()

        first = asyncio.create_task(coordinator.reconcile(profile.id))
        await asyncio.sleep(0.01)
        assert guard.state(profile.id, Lane.SYNC) is OperationState.SYNC_IN_FLIGHT

        second = await coordinator.reconcile(profile.id)
        assert second.skipped
        assert client.calls_for("fetch") == ["1"]

        client.gate.set()
        report = await first
        assert not report.skipped
        assert guard.state(profile.id, Lane.SYNC) is OperationState.IDLE

    async def test_message_sent_during_sync_survives_commit(self, coordinator, store, client):
        profile = await _add(store, client, [_msg("1"), _msg("2")])
        del client.remote["2"]
        client.gate = asyncio.Event()

        task = asyncio.create_task(coordinator.reconcile(profile.id))
        await asyncio.sleep(0.01)
        await store.update(profile.id, lambda p: p.append_message(_msg("99", "late")))
        client.gate.set()
        await task

        assert [m.remote_id for m in store.get(profile.id).messages] == ["1", "99"]

    async def test_other_profiles_unaffected(self, coordinator, store, client):
        a = await _add(store, client, [_msg("1")])
        b = await _add(store, client, [_msg("2")])
        del client.remote["1"]

        await coordinator.reconcile(a.id)

        assert store.get(a.id).messages == ()
        assert [m.remote_id for m in store.get(b.id).messages] == ["2"]
