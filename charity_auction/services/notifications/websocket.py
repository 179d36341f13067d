from loguru import logger

from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.models.bid import Bid
from charity_auction.services.notifications.base import (
    BidNotifier,
    build_bid_update,
    build_status_update,
)


class WebSocketNotifier(BidNotifier):
    """Pushes events straight into the sockets held by this process"""

    def __init__(self, manager):
        self.manager = manager

    async def notify_auction_update(self, auction_id, bids: list[Bid]):
        try:
            await self.manager.broadcast_to_auction(str(auction_id), build_bid_update(auction_id, bids))
        except Exception as e:
            logger.error(f"Failed to deliver bid update for auction {auction_id}: {e}")

    async def notify_auction_status(self, auction_id, status: AuctionStatus):
        try:
            await self.manager.broadcast_to_all(build_status_update(auction_id, status))
        except Exception as e:
            logger.error(f"Failed to deliver status update for auction {auction_id}: {e}")
