import asyncio

import httpx

from orderdesk.client.merge import InteractionLocks, merge_orders
from orderdesk.client.poller import OrderBoardPoller, http_fetcher


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def order(order_id, status="incoming", updated_at="2026-01-10T10:00:00", labels=None):
    return {"id": order_id, "status": status, "updated_at": updated_at, "labels": labels or ["WooCommerce"]}


class TestInteractionLocks:
    def test_lock_expires_after_window(self):
        clock = FakeClock()
        locks = InteractionLocks(clock)
        assert not locks.is_locked(1)
        locks.acquire(1)
        clock.now += 14.9
        assert locks.is_locked(1)
        clock.now += 0.1
        assert not locks.is_locked(1)

    def test_reacquire_extends_lock(self):
        clock = FakeClock()
        locks = InteractionLocks(clock)
        locks.acquire(1)
        clock.now += 10
        locks.acquire(1)
        clock.now += 10
        assert locks.is_locked(1)


class TestMerge:
    def test_locked_order_keeps_local_status(self):
        clock = FakeClock()
        locks = InteractionLocks(clock)
        local = [order(1, status="printed", updated_at="2026-01-10T09:00:00")]
        locks.acquire(1)
        server = [order(1, status="incoming", updated_at="2026-01-10T11:00:00")]

        result = merge_orders(local, server, locks)
        assert result.orders[0]["status"] == "printed"

        clock.now += 15
        result = merge_orders(local, server, locks)
        assert result.orders[0]["status"] == "incoming"
        assert result.changed

    def test_newer_local_copy_wins(self):
        local = [order(1, status="printed", updated_at="2026-01-10T10:00:05Z")]
        server = [order(1, status="incoming", updated_at="2026-01-10T10:00:00")]
        result = merge_orders(local, server, InteractionLocks(FakeClock()))
        assert result.orders[0]["status"] == "printed"
        assert not result.changed

    def test_equal_timestamps_adopt_server(self):
        local = [order(1, labels=["WooCommerce"])]
        server = [order(1, labels=["WooCommerce", "Acil"])]
        result = merge_orders(local, server, InteractionLocks(FakeClock()))
        assert result.changed
        assert result.orders[0]["labels"] == ["WooCommerce", "Acil"]

    def test_identical_lists_are_unchanged(self):
        local = [order(1), order(2)]
        result = merge_orders(local, [order(1), order(2)], InteractionLocks(FakeClock()))
        assert not result.changed
        assert result.orders == local

    def test_status_change_alone_is_silent(self):
        local = [order(1), order(2)]
        server = [order(1, status="shipped", updated_at="2026-01-10T10:05:00"), order(2)]
        result = merge_orders(local, server, InteractionLocks(FakeClock()))
        assert result.changed
        assert not result.play_sound

    def test_new_order_plays_sound(self):
        local = [order(1)]
        server = [order(2, updated_at="2026-01-10T10:10:00"), order(1)]
        result = merge_orders(local, server, InteractionLocks(FakeClock()))
        assert result.play_sound
        assert [o["id"] for o in result.orders] == [2, 1]

    def test_removed_order_is_dropped(self):
        result = merge_orders([order(1), order(2)], [order(1)], InteractionLocks(FakeClock()))
        assert result.changed
        assert not result.play_sound
        assert [o["id"] for o in result.orders] == [1]


class TestPoller:
    def test_tick_merges_and_notifies(self):
        responses = [[order(1)], [order(2), order(1)]]
        notified = []

        async def fetch():
            return responses.pop(0)

        poller = OrderBoardPoller(fetch, InteractionLocks(FakeClock()), on_notify=lambda: notified.append(True),
                                  orders=[order(1)])
        asyncio.run(poller.tick())
        assert notified == []
        asyncio.run(poller.tick())
        assert notified == [True]
        assert [o["id"] for o in poller.orders] == [2, 1]

    def test_drag_skips_tick(self):
        calls = []

        async def fetch():
            calls.append(1)
            return []

        poller = OrderBoardPoller(fetch, InteractionLocks(FakeClock()))
        poller.drag_active = True
        assert asyncio.run(poller.tick()) is None
        assert calls == []

    def test_local_change_survives_poll(self):
        clock = FakeClock()

        async def fetch():
            return [order(1, status="incoming", updated_at="2026-01-10T12:00:00")]

        poller = OrderBoardPoller(fetch, InteractionLocks(clock), orders=[order(1)])
        poller.record_local_change(order(1, status="processing"))
        asyncio.run(poller.tick())
        assert poller.orders[0]["status"] == "processing"

        clock.now += 16
        asyncio.run(poller.tick())
        assert poller.orders[0]["status"] == "incoming"

    def test_fetch_failure_keeps_board(self):
        async def fetch():
            raise httpx.ConnectError("offline")

        poller = OrderBoardPoller(fetch, InteractionLocks(FakeClock()), orders=[order(1)])
        assert asyncio.run(poller.tick()) is None
        assert poller.orders == [order(1)]

    def test_start_and_stop(self):
        ticks = []

        async def fetch():
            ticks.append(1)
            return []

        async def run():
            poller = OrderBoardPoller(fetch, InteractionLocks(FakeClock()), interval=0.01)
            poller.start()
            await asyncio.sleep(0.05)
            await poller.stop()
            seen = len(ticks)
            await asyncio.sleep(0.03)
            return seen

        seen = asyncio.run(run())
        assert seen >= 1
        assert len(ticks) == seen

    def test_http_fetcher_reads_board_feed(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[order(7)])

        fetch = http_fetcher("http://desk.local", staff_name="Mehmet", transport=httpx.MockTransport(handler))
        result = asyncio.run(fetch())
        assert result == [order(7)]
        assert seen[0].url.path == "/orders/"
        assert seen[0].headers["x-staff-name"] == "Mehmet"
