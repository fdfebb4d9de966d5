import asyncio
from typing import Awaitable, Callable, Optional

import httpx

from orderdesk.core.logging_config import get_logger
from orderdesk.client.merge import InteractionLocks, MergeResult, merge_orders

logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 5.0
HTTP_TIMEOUT_SEC = 10.0

Fetch = Callable[[], Awaitable[list]]


def http_fetcher(base_url: str, staff_name: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> Fetch:
    """Fetch coroutine reading the board feed from an order desk server."""
    headers = {"X-Staff-Name": staff_name} if staff_name else {}

    async def fetch() -> list:
        async with httpx.AsyncClient(base_url=base_url, headers=headers,
                                     timeout=HTTP_TIMEOUT_SEC, transport=transport) as client:
            resp = await client.get("/orders/")
            resp.raise_for_status()
            return resp.json()

    return fetch


class OrderBoardPoller:
    """Keeps a local, optimistically edited order list in step with the server.

    Each tick runs to completion before the next one starts and suspends
    only while fetching. Ticks are skipped while a drag is in progress.
    """

    def __init__(self, fetch: Fetch, locks: Optional[InteractionLocks] = None,
                 on_notify: Optional[Callable[[], None]] = None,
                 interval: float = POLL_INTERVAL_SECONDS, orders: Optional[list] = None):
        self.fetch = fetch
        self.locks = locks or InteractionLocks()
        self.on_notify = on_notify
        self.interval = interval
        self.orders = list(orders or [])
        self.drag_active = False
        self._task: Optional[asyncio.Task] = None

    def record_local_change(self, order: dict) -> None:
        """Apply a local edit and shield it from the next polls."""
        self.locks.acquire(order["id"])
        for index, current in enumerate(self.orders):
            if current["id"] == order["id"]:
                self.orders[index] = order
                return
        self.orders.append(order)

    async def tick(self) -> Optional[MergeResult]:
        if self.drag_active:
            return None
        try:
            server = await self.fetch()
        except httpx.HTTPError as e:
            # A stale board is fine; the next tick retries
            logger.warning(f"Order poll failed: {e}")
            return None

        # A drag may have started while the fetch was in flight
        if self.drag_active:
            return None

        result = merge_orders(self.orders, server, self.locks)
        if result.changed:
            self.orders = result.orders
        if result.play_sound and self.on_notify is not None:
            self.on_notify()
        return result

    async def _run(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
