import asyncio
import json
import logging
import uuid
from contextlib import suppress
import redis
import redis.asyncio as aioredis
from typing import Any, Awaitable, Callable, Dict, Optional
from tableside.config import settings

logger = logging.getLogger(__name__)

ORDERS_CHANNEL = "tableside:orders"

# Messages published by this process carry this id so the listener can skip them
PROCESS_ID = uuid.uuid4().hex

RECONNECT_DELAY = 1.0
RECONNECT_MAX_DELAY = 30.0

redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)

def test_connection() -> bool:
    try:
        return redis_client.ping()
    except redis.RedisError:
        return False

def publish_event(event: str, tenant_id: str, data: Dict[str, Any]) -> bool:
    """Hand a feed event to the other worker processes"""
    message = json.dumps({
        "origin": PROCESS_ID,
        "event": event,
        "tenant_id": tenant_id,
        "data": data,
    })
    try:
        redis_client.publish(ORDERS_CHANNEL, message)
        return True
    except redis.RedisError as e:
        logger.warning("Redis publish failed for %s/%s: %s", tenant_id, event, e)
        return False

def decode_event(raw: Any) -> Optional[Dict[str, Any]]:
    """Parse a channel message. Own messages and garbage decode to None."""
    try:
        event = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Dropping undecodable feed message: %r", raw)
        return None
    if not isinstance(event, dict) or "event" not in event or "tenant_id" not in event:
        return None
    if event.get("origin") == PROCESS_ID:
        return None
    if event["event"] == "order_change":
        data = event.get("data")
        if not isinstance(data, dict) or data.get("order_id") is None:
            logger.warning("Dropping order_change without order_id: %r", raw)
            return None
    return event

def subscriber_client():
    return aioredis.Redis.from_url(settings.redis_url, decode_responses=True)

async def listen_for_events(handler: Callable[[Dict[str, Any]], Awaitable[None]]) -> None:
    """Forward events published by other processes to ``handler`` until cancelled.

    A lost Redis connection is retried with exponential backoff; a failing
    handler only loses the one event.
    """
    delay = RECONNECT_DELAY
    while True:
        client = subscriber_client()
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(ORDERS_CHANNEL)
            logger.info("Listening for order events on %s", ORDERS_CHANNEL)
            delay = RECONNECT_DELAY
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                event = decode_event(message.get("data"))
                if event is None:
                    continue
                try:
                    await handler(event)
                except Exception:
                    logger.exception("Feed event %s for %s failed", event["event"], event["tenant_id"])
        except redis.RedisError as e:
            logger.warning("Order event listener lost Redis (%s), retrying in %.1fs", e, delay)
        finally:
            with suppress(redis.RedisError):
                await pubsub.unsubscribe(ORDERS_CHANNEL)
            with suppress(redis.RedisError):
                await client.aclose()
        await asyncio.sleep(delay)
        delay = min(delay * 2, RECONNECT_MAX_DELAY)
