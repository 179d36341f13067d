from typing import Optional
from loguru import logger

from charity_auction.core.exceptions import BidValidationError
from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.models.auto_bid import AutoBid
from charity_auction.services.bidding.auction_state import AuctionStateStore
from charity_auction.services.bidding.auto_bid_store import AutoBidStore
from charity_auction.services.bidding.engine import BidResolutionEngine


class AutoBidRegistry:
    def __init__(self, engine: BidResolutionEngine):
        self.engine = engine

    async def enable(self, user_id, auction_id, max_amount: int) -> AutoBid:
        """
        Register or re-arm a proxy bid and let it contest the leader right away.

        A ceiling that can not reach the next required bid is accepted and
        then switched off by the cascade with stop reason max-amount.

        Returns:
            AutoBid: the row as it stands once the cascade settled.
        """
        if max_amount <= 0:
            raise BidValidationError("max_amount must be greater than 0")

        auction = await AuctionStateStore.get(auction_id)
        if not auction.enable_auto_bidding:
            raise BidValidationError("Auto-bidding is disabled for this auction")
        if not auction.is_open():
            raise BidValidationError("Auction is not active")

        auto_bid = await AutoBidStore.upsert(user_id, auction_id, max_amount)
        logger.info(f"Auto-bid enabled for user {user_id} on auction {auction_id} up to {max_amount}")

        await self.engine.resolve(auction_id)

        await auto_bid.refresh_from_db()
        return auto_bid

    async def disable(self, user_id, auction_id) -> None:
        updated = await AutoBidStore.deactivate_for_user(user_id, auction_id, AutoBidStopReason.manual)
        if updated:
            logger.info(f"Auto-bid disabled for user {user_id} on auction {auction_id}")

    async def status(self, user_id, auction_id) -> Optional[AutoBid]:
        return await AutoBidStore.get(user_id, auction_id)
