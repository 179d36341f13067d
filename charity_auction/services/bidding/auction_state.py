from typing import Optional
from loguru import logger
from tortoise import timezone
from tortoise.exceptions import OperationalError
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from charity_auction.core.exceptions import (
    AuctionNotFoundError,
    BidConflictError,
    BidPersistenceError,
    BidValidationError,
)
from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.bid_origin import BidOrigin
from charity_auction.models.auction import Auction
from charity_auction.models.auto_bid import AutoBid
from charity_auction.models.bid import Bid


class AuctionStateStore:
    @staticmethod
    async def get(auction_id) -> Auction:
        auction = await Auction.get_or_none(id=auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    @staticmethod
    async def get_or_none(auction_id) -> Optional[Auction]:
        return await Auction.get_or_none(id=auction_id)

    @staticmethod
    async def commit_bid(
        auction: Auction,
        bidder_id,
        amount: int,
        origin: BidOrigin,
        auto_bid: Optional[AutoBid] = None
    ) -> Bid:
        """
        Advance the auction to `amount` and append the matching bid.

        Both writes share one transaction, and the price update only matches
        the row while it still carries the price this snapshot observed and
        is still open. A writer that got there first, or a close that happened
        meanwhile, makes the update match nothing, which is reported as
        BidConflictError and leaves no trace.

        Args:
            auction: Snapshot the caller validated against.
            bidder_id: User the bid is placed for.
            amount: New price, strictly above the observed one.
            origin: Which trigger produced the bid.
            auto_bid: Proxy instruction that produced the bid, if any.

        Returns:
            Bid: The stored bid. The snapshot is advanced in place.
        """
        observed_price = auction.current_price
        if amount <= observed_price:
            raise BidValidationError(f"Bid must be above the current price of {observed_price}")

        try:
            async with in_transaction():
                updated = await Auction.filter(
                    id=auction.id,
                    status=AuctionStatus.active,
                    current_price=observed_price,
                    end_date__gt=timezone.now()
                ).update(
                    current_price=amount,
                    total_bids=F("total_bids") + 1
                )
                if not updated:
                    raise BidConflictError(auction.id, observed_price)

                bid = await Bid.create(
                    auction_id=auction.id,
                    bidder_id=bidder_id,
                    auto_bid_id=auto_bid.id if auto_bid else None,
                    amount=amount,
                    origin=origin
                )
        except OperationalError as e:
            logger.error(f"Failed to store {origin.value} bid of {amount} on auction {auction.id}: {e}")
            raise BidPersistenceError(f"Could not store bid on auction {auction.id}") from e

        auction.current_price = amount
        auction.total_bids += 1
        return bid
