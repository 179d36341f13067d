from typing import Optional
from loguru import logger
from tortoise.exceptions import OperationalError

from charity_auction.core.config import settings
from charity_auction.core.exceptions import (
    BidConflictError,
    BidPersistenceError,
    BidValidationError,
    CascadeInterruptedError,
)
from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.enums.bid_origin import BidOrigin
from charity_auction.models.auction import Auction
from charity_auction.models.bid import Bid
from charity_auction.services.bidding.auction_state import AuctionStateStore
from charity_auction.services.bidding.auto_bid_store import AutoBidStore
from charity_auction.services.bidding.ledger import BidLedger
from charity_auction.services.bidding.locks import AuctionLocks
from charity_auction.services.notifications.base import BidNotifier


def is_leader(user_id, leader: Optional[Bid]) -> bool:
    return leader is not None and leader.bidder_id == user_id


class BidResolutionEngine:
    """
    Accepts manual bids and escalates standing auto-bids against them.

    Every write for an auction happens under that auction's lock, and every
    price change goes through AuctionStateStore.commit_bid, so writers in
    other processes (the sweep worker) are detected instead of overwritten.
    """

    def __init__(
        self,
        notifier: BidNotifier,
        locks: Optional[AuctionLocks] = None,
        max_iterations: Optional[int] = None
    ):
        self.notifier = notifier
        self.locks = locks or AuctionLocks()
        if max_iterations is None:
            max_iterations = settings.CASCADE_MAX_ITERATIONS
        self.max_iterations = max_iterations

    @staticmethod
    def validate_manual_bid(auction: Auction, amount: int):
        if auction.status != AuctionStatus.active:
            raise BidValidationError("Auction is not active")
        if auction.has_expired():
            raise BidValidationError("Auction has ended")
        if amount < auction.next_minimum_bid:
            raise BidValidationError(f"Bid must be at least {auction.next_minimum_bid}")

    async def place_bid(self, auction_id, bidder_id, amount: int) -> Bid:
        """
        Place a manual bid and let standing auto-bids answer it.

        Raises:
            AuctionNotFoundError: unknown auction.
            BidValidationError: auction closed or amount below the next minimum.
            BidConflictError: another process moved the price meanwhile.
            BidPersistenceError: the bid itself could not be stored.
            CascadeInterruptedError: the bid was stored, escalation after it failed.
        """
        async with self.locks.hold(auction_id):
            auction = await AuctionStateStore.get(auction_id)
            self.validate_manual_bid(auction, amount)

            bid = await AuctionStateStore.commit_bid(auction, bidder_id, amount, BidOrigin.manual)
            logger.info(f"Bid {bid.id}: {amount} on auction {auction_id} by user {bidder_id}")

            try:
                await self.run_cascade(auction_id)
            except BidPersistenceError as e:
                logger.error(f"Auto-bid cascade on auction {auction_id} interrupted after bid {bid.id}: {e}")
                await self.emit_bid_update(auction_id)
                raise CascadeInterruptedError(bid, e) from e

            await self.emit_bid_update(auction_id)
        return bid

    async def resolve(self, auction_id) -> list[Bid]:
        """Run the cascade for an auction without a new manual bid"""
        async with self.locks.hold(auction_id):
            return await self.run_cascade(auction_id)

    async def run_cascade(self, auction_id) -> list[Bid]:
        """
        Escalate active auto-bids until none of them can answer the leader.

        Each round works on a freshly read auction, leader and auto-bid set.
        A round either places one bid, which strictly raises the price towards
        the highest remaining ceiling, or finds nothing to do, which is the
        fixed point. Exhausted auto-bids are switched off along the way.

        The caller must hold the auction lock. Storage failures surface as
        BidPersistenceError, bids placed by earlier rounds stay committed.
        """
        placed: list[Bid] = []
        iterations = 0
        fixed_point = False

        while not fixed_point:
            if iterations >= self.max_iterations:
                logger.warning(
                    f"Auto-bid cascade on auction {auction_id} stopped after {iterations} rounds, "
                    f"leaving the rest to the sweep"
                )
                break
            iterations += 1

            try:
                bid = await self._cascade_step(auction_id)
            except BidConflictError as e:
                logger.warning(f"{e}, re-reading")
                continue
            except OperationalError as e:
                logger.error(f"Auto-bid cascade on auction {auction_id} lost its storage: {e}")
                raise BidPersistenceError(f"Auto-bid cascade on auction {auction_id} failed") from e

            if bid is None:
                fixed_point = True
            else:
                placed.append(bid)
                await self.emit_bid_update(auction_id)

        if placed:
            logger.info(f"Auto-bid cascade on auction {auction_id} placed {len(placed)} bid(s)")
        return placed

    async def _cascade_step(self, auction_id) -> Optional[Bid]:
        auction = await AuctionStateStore.get_or_none(auction_id)
        if auction is None or not auction.is_open():
            return None

        leader = await BidLedger.highest_bid(auction_id)
        required = auction.next_minimum_bid

        responder = None
        for auto_bid in await AutoBidStore.active_for_auction(auction_id):
            if not auto_bid.can_reach(required):
                await AutoBidStore.deactivate(auto_bid, AutoBidStopReason.max_amount)
            elif responder is None and not is_leader(auto_bid.user_id, leader):
                responder = auto_bid

        if responder is None:
            return None

        amount = min(responder.max_amount, required)
        bid = await AuctionStateStore.commit_bid(
            auction,
            responder.user_id,
            amount,
            BidOrigin.auto_bid,
            auto_bid=responder
        )
        logger.info(f"Auto-bid {bid.id}: {amount} on auction {auction_id} for user {responder.user_id}")

        if amount == responder.max_amount:
            await AutoBidStore.deactivate(responder, AutoBidStopReason.max_amount)
        return bid

    async def emit_bid_update(self, auction_id):
        try:
            bids = await BidLedger.list_bids(auction_id)
            await self.notifier.notify_auction_update(auction_id, bids)
        except Exception as e:
            logger.error(f"Failed to emit bid update for auction {auction_id}: {e}")
