"""Tests for the event hooks system: registry, collector, and integration."""

import logging

import pytest
from httpx import AsyncClient

from keymint import KeyMint
from keymint.events import (
    EventCollector,
    HookRegistry,
    KeyCreated,
    TokenIssued,
    event_name,
)

pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# Unit tests: HookRegistry
# ---------------------------------------------------------------------------


class TestHookRegistry:
    async def test_register_valid_event(self):
        registry = HookRegistry()
        registry.register("key_created", lambda e: None)
        assert len(registry.hooks_for("key_created")) == 1

    async def test_event_name_follows_type(self):
        assert event_name(KeyCreated(kid=1)) == "key_created"
        assert event_name(TokenIssued(kid=1)) == "token_issued"

    async def test_register_invalid_event_raises(self):
        registry = HookRegistry()
        with pytest.raises(ValueError, match="Unknown event"):
            registry.register("key_deleted", lambda e: None)

    async def test_dispatch_async_and_sync(self):
        registry = HookRegistry()
        seen = []

        async def async_hook(event):
            seen.append(("async", event.kid))

        def sync_hook(event):
            seen.append(("sync", event.kid))

        registry.register("key_created", async_hook)
        registry.register("key_created", sync_hook)
        await registry.dispatch(KeyCreated(kid=5))
        assert seen == [("async", 5), ("sync", 5)]

    async def test_hook_error_is_logged_not_raised(self, caplog):
        registry = HookRegistry()
        seen = []

        async def bad_hook(event):
            raise RuntimeError("hook failed")

        async def good_hook(event):
            seen.append(event)

        registry.register("token_issued", bad_hook)
        registry.register("token_issued", good_hook)

        with caplog.at_level(logging.ERROR, logger="keymint.events"):
            await registry.dispatch(TokenIssued(kid=1))

        assert len(seen) == 1
        assert "failed on token_issued (kid=1)" in caplog.text


class TestEventCollector:
    async def test_flush_emits_and_clears(self):
        registry = HookRegistry()
        seen = []
        registry.register("key_created", lambda e: seen.append(e.kid))

        collector = EventCollector(registry)
        collector.add(KeyCreated(kid=1))
        collector.add(KeyCreated(kid=2))
        assert len(collector) == 2
        assert seen == []

        await collector.flush()
        assert seen == [1, 2]
        assert len(collector) == 0

        await collector.flush()
        assert seen == [1, 2]


# ---------------------------------------------------------------------------
# Integration: events fired by KeyMint
# ---------------------------------------------------------------------------


class TestKeyMintEvents:
    async def test_seeding_fires_two_key_created(self, mint: KeyMint):
        events = []

        @mint.on("key_created")
        async def on_key_created(event):
            events.append(event)

        await mint.ensure_seeded()
        assert [e.expired for e in events] == [False, True]
        assert all(e.reason == "seed" for e in events)
        assert events[0].kid < events[1].kid

    async def test_backfill_reason(self, mint: KeyMint):
        events = []
        mint.add_hook("key_created", events.append)

        await mint.ensure_expired_present()
        assert len(events) == 1
        assert events[0].reason == "backfill"
        assert events[0].expired is True

    async def test_noop_backfill_fires_nothing(self, seeded: KeyMint):
        events = []
        seeded.add_hook("key_created", events.append)
        await seeded.ensure_active_present()
        assert events == []

    async def test_auth_endpoint_fires_token_issued(self, mint: KeyMint, client: AsyncClient):
        created = []
        issued = []
        mint.add_hook("key_created", created.append)
        mint.add_hook("token_issued", issued.append)

        resp = await client.post("/auth?expired=true")
        assert resp.status_code == 200

        assert len(created) == 1
        assert created[0].expired is True
        assert len(issued) == 1
        assert issued[0].kid == created[0].kid
        assert issued[0].kid_label == "key-expired-1"
        assert issued[0].expired is True

    async def test_failing_hook_does_not_break_seeding(self, mint: KeyMint):
        def bad_hook(event):
            raise RuntimeError("audit sink down")

        mint.add_hook("key_created", bad_hook)
        assert await mint.ensure_seeded() is True
        assert await mint.count_keys() == 2

    async def test_key_created_is_logged(self, mint: KeyMint, caplog):
        with caplog.at_level(logging.INFO, logger="keymint.lifecycle"):
            await mint.ensure_active_present()
        assert "Created active key" in caplog.text
