"""Live order feed.

Viewers (customer table page, kitchen dashboards, admin panels) subscribe with
an ``OrderFilter``. Whenever a write touches a record matching the filter the
subscriber receives the full current match set again; emissions are always
snapshots, never deltas.
"""
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from tableside.config import settings
from tableside.core.redis_client import publish_event

logger = logging.getLogger(__name__)


class OrderKey(NamedTuple):
    """The fields of an order that subscription filters look at."""
    status: str
    table_no: str


@dataclass(frozen=True)
class OrderFilter:
    tenant_id: str
    status: Optional[str] = None
    table_no: Optional[str] = None

    def matches(self, key: Optional[OrderKey]) -> bool:
        if key is None:
            return False
        if self.status is not None and key.status != self.status:
            return False
        if self.table_no is not None and key.table_no != self.table_no:
            return False
        return True


@dataclass(frozen=True)
class OrderChange:
    """One insert, update or delete. ``before`` is None on insert, ``after`` on delete."""
    tenant_id: str
    order_id: int
    before: Optional[OrderKey] = None
    after: Optional[OrderKey] = None

    def affects(self, order_filter: OrderFilter) -> bool:
        # a record leaving the filter changes the snapshot as much as one entering it
        if order_filter.tenant_id != self.tenant_id:
            return False
        return order_filter.matches(self.before) or order_filter.matches(self.after)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "before": list(self.before) if self.before else None,
            "after": list(self.after) if self.after else None,
        }

    @classmethod
    def from_dict(cls, tenant_id: str, data: Dict[str, Any]) -> "OrderChange":
        before = data.get("before")
        after = data.get("after")
        return cls(
            tenant_id=tenant_id,
            order_id=int(data["order_id"]),
            before=OrderKey(*before) if before else None,
            after=OrderKey(*after) if after else None,
        )


Snapshot = List[Any]
Callback = Callable[[Snapshot], Awaitable[None]]
Loader = Callable[[OrderFilter], Snapshot]


class Subscription:
    def __init__(self, feed: "OrderFeed", order_filter: OrderFilter, callback: Callback,
                 on_close: Optional[Callable[[], Any]] = None):
        self.feed = feed
        self.filter = order_filter
        self.callback = callback
        self.on_close = on_close
        self.active = True

    def cancel(self) -> bool:
        """Release the subscription. Only the first call does anything."""
        if not self.active:
            return False
        self.active = False
        self.feed._release(self)
        return True

    async def close(self) -> None:
        """Cancel and tell the owning view to shut down (used on tenant revocation)."""
        self.cancel()
        if self.on_close is not None:
            result = self.on_close()
            if inspect.isawaitable(result):
                await result


class OrderFeed:
    def __init__(self, loader: Optional[Loader] = None):
        self._loader = loader or load_snapshot
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)

    def subscriptions(self, tenant_id: str) -> List[Subscription]:
        return list(self._subscriptions.get(tenant_id, []))

    async def subscribe(self, order_filter: OrderFilter, callback: Callback,
                        on_close: Optional[Callable[[], Any]] = None) -> Subscription:
        """Register a live query and deliver its current snapshot straight away."""
        subscription = Subscription(self, order_filter, callback, on_close)
        self._subscriptions[order_filter.tenant_id].append(subscription)
        await self._deliver(subscription, {})
        return subscription

    async def notify(self, change: OrderChange) -> int:
        """Re-deliver snapshots to every subscription the change touches.

        Returns the number of subscriptions that received a snapshot.
        """
        delivered = 0
        snapshots: Dict[OrderFilter, Snapshot] = {}
        for subscription in self.subscriptions(change.tenant_id):
            if subscription.active and change.affects(subscription.filter):
                if await self._deliver(subscription, snapshots):
                    delivered += 1
        return delivered

    async def revoke_tenant(self, tenant_id: str) -> int:
        subscriptions = self._subscriptions.pop(tenant_id, [])
        for subscription in subscriptions:
            try:
                await subscription.close()
            except Exception as e:
                # the view is already gone; keep closing the rest
                logger.warning("Closing subscription %s failed: %s", subscription.filter, e)
        if subscriptions:
            logger.info("Revoked %d live subscriptions for %s", len(subscriptions), tenant_id)
        return len(subscriptions)

    def _release(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.filter.tenant_id)
        if subscriptions and subscription in subscriptions:
            subscriptions.remove(subscription)
            if not subscriptions:
                del self._subscriptions[subscription.filter.tenant_id]

    async def _deliver(self, subscription: Subscription, snapshots: Dict[OrderFilter, Snapshot]) -> bool:
        if subscription.filter not in snapshots:
            try:
                snapshots[subscription.filter] = await run_in_threadpool(self._loader, subscription.filter)
            except SQLAlchemyError:
                logger.exception("Could not load snapshot for %s", subscription.filter)
                return False
        try:
            await subscription.callback(snapshots[subscription.filter])
        except Exception as e:
            # dead viewer, same as a closed socket
            logger.warning("Dropping subscription %s: %s", subscription.filter, e)
            subscription.cancel()
            return False
        return True


def load_snapshot(order_filter: OrderFilter) -> Snapshot:
    """Default loader: query the store with its own session."""
    from tableside.core.database import SessionLocal
    from tableside.models.schemas import OrderOut
    from tableside.services.order_store import list_orders

    db = SessionLocal()
    try:
        orders = list_orders(db, order_filter.tenant_id, status=order_filter.status, table_no=order_filter.table_no)
        return [OrderOut.model_validate(o) for o in orders]
    finally:
        db.close()


order_feed = OrderFeed()


async def broadcast_order_change(change: Optional[OrderChange]) -> None:
    if change is None:
        return
    await order_feed.notify(change)
    if settings.redis_fanout:
        publish_event("order_change", change.tenant_id, change.to_dict())


async def broadcast_tenant_blocked(tenant_id: str) -> None:
    await order_feed.revoke_tenant(tenant_id)
    if settings.redis_fanout:
        publish_event("tenant_blocked", tenant_id, {})


async def handle_remote_event(event: Dict[str, Any]) -> None:
    """Apply an event that another worker published on Redis."""
    tenant_id = event["tenant_id"]
    if event["event"] == "order_change":
        await order_feed.notify(OrderChange.from_dict(tenant_id, event.get("data") or {}))
    elif event["event"] == "tenant_blocked":
        await order_feed.revoke_tenant(tenant_id)
    else:
        logger.debug("Ignoring feed event %s", event["event"])
