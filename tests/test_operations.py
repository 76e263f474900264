"""Tests for the sync cycle and deletion reconciliation."""

import asyncio
import json

import pytest
from conftest import FakeContentfulClient, FakeStore, make_config, make_entry, make_response

from redis_contentful.core.errors import ContentConnectionError, SyncError
from redis_contentful.core.operations import DeletionReconciler, SyncOperations
from redis_contentful.core.state import SyncState


def _operations(store: FakeStore, client: FakeContentfulClient, **config_kwargs) -> SyncOperations:
    return SyncOperations(make_config(**config_kwargs), store, client=client)


class TestDeletionReconciler:
    """Tests for removing deleted entries."""

    @pytest.mark.asyncio
    async def test_removes_every_key_with_id_suffix(self, store: FakeStore) -> None:
        await store.set("post:Hi:E1", "{}")
        await store.set("post:Old:E1", "{}")
        await store.set("post:Hi:E2", "{}")

        removed = await DeletionReconciler(store).reconcile(["E1"])

        assert removed == 2
        assert set(store.data) == {"post:Hi:E2"}

    @pytest.mark.asyncio
    async def test_unknown_id(self, store: FakeStore) -> None:
        await store.set("post:Hi:E2", "{}")

        assert await DeletionReconciler(store).reconcile(["nope"]) == 0
        assert await DeletionReconciler(store).reconcile([]) == 0

    @pytest.mark.asyncio
    async def test_remove_stale_keeps_current_key(self, store: FakeStore) -> None:
        await store.set("post:Hi:E1", "{}")
        await store.set("post:Hello:E1", "{}")

        removed = await DeletionReconciler(store).remove_stale("E1", "post:Hello:E1")

        assert removed == 1
        assert set(store.data) == {"post:Hello:E1"}


class TestSyncOperations:
    """Tests for SyncOperations.sync."""

    @pytest.mark.asyncio
    async def test_initial_sync_when_no_cursor(self, store: FakeStore) -> None:
        client = FakeContentfulClient(make_response([make_entry("E1", "post", {"title": "Hi"})]))
        ops = _operations(store, client)

        result = await ops.sync()

        assert result.message == "Sync Complete"
        assert result.initial is True
        assert result.written == 1
        assert client.calls == [{"initial": True, "sync_token": None}]
        assert json.loads(store.data["post:Hi:E1"])["title"] == "Hi"

    @pytest.mark.asyncio
    async def test_incremental_sync_uses_stored_cursor(self, store: FakeStore) -> None:
        client = FakeContentfulClient(
            make_response([make_entry("E1", "post", {"title": "Hi"})], token="t1"),
            make_response([make_entry("E2", "post", {"title": "Yo"})], token="t2"),
        )
        ops = _operations(store, client)

        await ops.sync()
        result = await ops.sync()

        assert result.initial is False
        assert client.calls[1] == {"initial": False, "sync_token": "t1"}
        assert "post:Hi:E1" in store.data
        assert "post:Yo:E2" in store.data
        assert (await SyncState(store).load()).next_sync_token == "t2"

    @pytest.mark.asyncio
    async def test_force_reset_wipes_cache(self, store: FakeStore) -> None:
        await store.set("post:Stale:E9", "{}")
        await SyncState(store).save("old-token")
        client = FakeContentfulClient(make_response([make_entry("E1", "post", {"title": "Hi"})], token="fresh"))
        ops = _operations(store, client)

        result = await ops.sync(force_reset=True)

        assert result.initial is True
        assert client.calls == [{"initial": True, "sync_token": None}]
        assert "post:Stale:E9" not in store.data
        assert "post:Hi:E1" in store.data
        assert (await SyncState(store).load()).next_sync_token == "fresh"

    @pytest.mark.asyncio
    async def test_content_type_filter(self, store: FakeStore) -> None:
        client = FakeContentfulClient(make_response([
            make_entry("E1", "post", {"title": "Hi"}),
            make_entry("P1", "page", {"title": "Home"}),
        ]))
        ops = _operations(store, client, content_types=["post"])

        result = await ops.sync()

        assert result.written == 1
        assert result.skipped == 1
        assert [key for key in store.data if ":" in key] == ["post:Hi:E1"]

    @pytest.mark.asyncio
    async def test_deleted_entries_are_removed(self, store: FakeStore) -> None:
        client = FakeContentfulClient(
            make_response([make_entry("E1", "post", {"title": "Hi"})], token="t1"),
            make_response(deleted=["E1"], token="t2"),
        )
        ops = _operations(store, client)

        await ops.sync()
        result = await ops.sync()

        assert result.deleted == 1
        assert "post:Hi:E1" not in store.data

    @pytest.mark.asyncio
    async def test_update_overwrites_record(self, store: FakeStore) -> None:
        client = FakeContentfulClient(
            make_response([make_entry("E1", "post", {"title": "Hi"})], token="t1"),
            make_response([make_entry("E1", "post", {"title": "Hi", "body": "new"})], token="t2"),
        )
        ops = _operations(store, client)

        await ops.sync()
        await ops.sync()

        assert json.loads(store.data["post:Hi:E1"])["body"] == "new"

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self, store: FakeStore) -> None:
        store.fail_keys.add("post:Hi:E1")
        client = FakeContentfulClient(make_response([make_entry("E1", "post", {"title": "Hi"})]))
        ops = _operations(store, client)

        with pytest.raises(SyncError) as exc_info:
            await ops.sync()

        assert isinstance(exc_info.value.cause, ContentConnectionError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    @pytest.mark.asyncio
    async def test_cursor_not_advanced_when_writes_fail(self, store: FakeStore) -> None:
        client = FakeContentfulClient(
            make_response([make_entry("E1", "post", {"title": "Hi"})], token="t1"),
            make_response([make_entry("E2", "post", {"title": "Yo"})], token="t2"),
        )
        ops = _operations(store, client)
        await ops.sync()
        store.fail_keys.add("post:Yo:E2")

        with pytest.raises(SyncError):
            await ops.sync()

        assert (await SyncState(store).load()).next_sync_token == "t1"

    @pytest.mark.asyncio
    async def test_remote_failure_is_wrapped(self, store: FakeStore) -> None:
        class BrokenClient(FakeContentfulClient):
            def sync(self, initial=False, sync_token=None):
                raise ContentConnectionError("Contentful unreachable")

        ops = _operations(store, BrokenClient())

        with pytest.raises(SyncError, match="Contentful unreachable"):
            await ops.sync()

    @pytest.mark.asyncio
    async def test_identifier_change_replaces_old_key(self, store: FakeStore) -> None:
        client = FakeContentfulClient(
            make_response([make_entry("E1", "post", {"title": "Hi"})], token="t1"),
            make_response([make_entry("E1", "post", {"title": "Hello"})], token="t2"),
        )
        ops = _operations(store, client)

        await ops.sync()
        await ops.sync()

        assert "post:Hi:E1" not in store.data
        assert json.loads(store.data["post:Hello:E1"])["title"] == "Hello"
        assert [key for key in store.data if key.endswith(":E1")] == ["post:Hello:E1"]

    @pytest.mark.asyncio
    async def test_failed_sync_waits_for_pending_writes(self) -> None:
        class SlowStore(FakeStore):
            async def set(self, key, value, expire=None):
                if key not in self.fail_keys:
                    await asyncio.sleep(0.05)
                await super().set(key, value, expire)

        store = SlowStore()
        store.fail_keys.add("post:Bad:E2")
        client = FakeContentfulClient(
            make_response(
                [
                    make_entry("E1", "post", {"title": "Hi"}),
                    make_entry("E2", "post", {"title": "Bad"}),
                    make_entry("E3", "post", {"title": "Yo"}),
                ],
                token="t1",
            )
        )
        ops = _operations(store, client)

        with pytest.raises(SyncError):
            await ops.sync()

        landed = [key for key, _, _ in store.set_calls]
        assert sorted(landed) == ["post:Hi:E1", "post:Yo:E3"]

        await asyncio.sleep(0.1)
        assert len(store.set_calls) == 2
        assert (await SyncState(store).load()).is_initial
