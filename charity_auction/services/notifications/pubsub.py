import json
import asyncio
from typing import Optional
from loguru import logger
from redis.asyncio import Redis

from charity_auction.core.config import settings
from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.models.bid import Bid
from charity_auction.services.notifications.base import (
    BidNotifier,
    STATUS_UPDATE_EVENT,
    build_bid_update,
    build_status_update,
)


class RedisNotifier(BidNotifier):
    """
    Publishes events on Redis so that every API worker can relay them to its
    own sockets. Used by the Celery sweep and by API workers when the relay
    is enabled.
    """

    def __init__(self, redis: Redis, prefix: str = None):
        self.redis = redis
        self.prefix = prefix or settings.NOTIFICATION_CHANNEL_PREFIX

    def auction_channel(self, auction_id) -> str:
        return f"{self.prefix}:{auction_id}"

    @property
    def status_channel(self) -> str:
        return f"{self.prefix}:status"

    async def notify_auction_update(self, auction_id, bids: list[Bid]):
        payload = build_bid_update(auction_id, bids)
        try:
            await self.redis.publish(self.auction_channel(auction_id), json.dumps(payload))
        except Exception as e:
            logger.error(f"Failed to publish bid update for auction {auction_id}: {e}")

    async def notify_auction_status(self, auction_id, status: AuctionStatus):
        payload = build_status_update(auction_id, status)
        try:
            await self.redis.publish(self.status_channel, json.dumps(payload))
        except Exception as e:
            logger.error(f"Failed to publish status update for auction {auction_id}: {e}")


class NotificationRelay:
    """Forwards published auction events into the local ConnectionManager"""

    def __init__(self, redis: Redis, manager, prefix: str = None, retry_delay: float = 1.0):
        self.redis = redis
        self.manager = manager
        self.prefix = prefix or settings.NOTIFICATION_CHANNEL_PREFIX
        self.retry_delay = retry_delay
        self._task: Optional[asyncio.Task] = None

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="notification-relay")
            logger.info(f"Notification relay listening on {self.prefix}:*")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Notification relay stopped")

    async def _run(self):
        while True:
            pubsub = self.redis.pubsub()
            try:
                await pubsub.psubscribe(f"{self.prefix}:*")
                async for message in pubsub.listen():
                    await self.handle_message(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Notification relay lost its subscription: {e}")
                await asyncio.sleep(self.retry_delay)
            finally:
                await pubsub.aclose()

    async def handle_message(self, message: dict):
        if message.get("type") != "pmessage":
            return

        try:
            payload = json.loads(message["data"])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Dropping malformed relay message on {message.get('channel')}")
            return

        if payload.get("type") == STATUS_UPDATE_EVENT:
            await self.manager.broadcast_to_all(payload)
        elif payload.get("auction_id"):
            await self.manager.broadcast_to_auction(payload["auction_id"], payload)
