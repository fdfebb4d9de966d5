"""Merge of a polled order list into the board's optimistic local state.

Orders are the plain dicts served by ``GET /orders``. A poll never
overwrites an order the local user touched within the lock window, nor
one whose local copy carries a newer ``updated_at`` than the server's.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

LOCK_WINDOW_SECONDS = 15.0


class InteractionLocks:
    """Per-order timestamps of the last local mutation.

    Entries are never evicted; anything older than the window simply stops
    counting as locked.
    """

    def __init__(self, clock: Callable[[], float] = time.time, window: float = LOCK_WINDOW_SECONDS):
        self.clock = clock
        self.window = window
        self._acquired: dict = {}

    def acquire(self, order_id) -> None:
        self._acquired[order_id] = self.clock()

    def is_locked(self, order_id) -> bool:
        acquired_at = self._acquired.get(order_id)
        if acquired_at is None:
            return False
        return self.clock() - acquired_at < self.window


@dataclass
class MergeResult:
    orders: list
    changed: bool
    play_sound: bool


def _timestamp(value: Union[str, datetime, None]) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        # Server timestamps are naive UTC
        return (value - datetime(1970, 1, 1)).total_seconds()
    return value.timestamp()


def _local_is_newer(local: dict, server: dict) -> bool:
    local_ts = _timestamp(local.get("updated_at"))
    server_ts = _timestamp(server.get("updated_at"))
    if local_ts is None or server_ts is None:
        return False
    return local_ts > server_ts


def _differs(local: Optional[dict], server: dict) -> bool:
    if local is None:
        return True
    return (
        local.get("status") != server.get("status")
        or local.get("updated_at") != server.get("updated_at")
        or list(local.get("labels") or []) != list(server.get("labels") or [])
    )


def merge_orders(local: list, server: list, locks: InteractionLocks) -> MergeResult:
    """Merge one poll response into the local list.

    The server list decides membership and order; for each server order the
    locked or newer local copy wins. ``changed`` is False when the local
    list can be kept as is. The audible cue fires only for net new orders.
    """
    local_by_id = {order["id"]: order for order in local}
    merged = []
    changed = len(local) != len(server)

    for server_order in server:
        local_order = local_by_id.get(server_order["id"])

        if locks.is_locked(server_order["id"]):
            merged.append(local_order or server_order)
            if local_order is None:
                changed = True
            continue

        if local_order is not None and _local_is_newer(local_order, server_order):
            merged.append(local_order)
            continue

        if _differs(local_order, server_order):
            changed = True
        merged.append(server_order)

    return MergeResult(
        orders=merged if changed else list(local),
        changed=changed,
        play_sound=len(server) > len(local),
    )
