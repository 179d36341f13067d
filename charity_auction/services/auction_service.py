from typing import Optional
from loguru import logger
from tortoise import timezone
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from charity_auction.core.config import settings
from charity_auction.core.exceptions import AuctionNotFoundError, BidConflictError, BidValidationError
from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.enums.transaction_type import TransactionType
from charity_auction.enums.user_role import UserRole
from charity_auction.models.auction import Auction
from charity_auction.models.ngo import NGO
from charity_auction.models.transaction import Transaction
from charity_auction.models.user import User
from charity_auction.schemas.auction import AuctionCreate
from charity_auction.services.bidding.auto_bid_store import AutoBidStore
from charity_auction.services.bidding.ledger import BidLedger
from charity_auction.services.bidding.locks import AuctionLocks
from charity_auction.services.notifications.base import BidNotifier

CLOSE_ATTEMPTS = 5


class AuctionService:
    """Auction lifecycle around the bidding engine: creation, approval and closing"""

    def __init__(self, notifier: BidNotifier, locks: Optional[AuctionLocks] = None):
        self.notifier = notifier
        self.locks = locks or AuctionLocks()

    @staticmethod
    def initial_status(organizer: User, requested: Optional[AuctionStatus]) -> AuctionStatus:
        """NGO listings that ask to go live wait for approval, admins publish directly"""
        if organizer.role == UserRole.admin:
            return requested or AuctionStatus.active
        if organizer.role == UserRole.ngo and requested == AuctionStatus.active:
            return AuctionStatus.pending
        return requested or AuctionStatus.draft

    async def create_auction(self, organizer: User, data: AuctionCreate) -> Auction:
        ngo = await NGO.get_or_none(id=data.ngo_id)
        if ngo is None:
            raise BidValidationError("NGO not found")

        auction = await Auction.create(
            title=data.title,
            description=data.description,
            item_type=data.item_type,
            category=data.category,
            starting_price=data.starting_price,
            current_price=data.starting_price,
            bid_increment=data.bid_increment or settings.DEFAULT_BID_INCREMENT,
            start_date=data.start_date,
            end_date=data.end_date,
            status=self.initial_status(organizer, data.status),
            is_urgent=data.is_urgent,
            allow_direct_donation=data.allow_direct_donation,
            enable_auto_bidding=data.enable_auto_bidding,
            ngo=ngo,
            organizer=organizer
        )
        logger.info(f"Auction {auction.id} created by {organizer.id} with status {auction.status.value}")

        if auction.status == AuctionStatus.pending:
            await self.notifier.notify_auction_status(auction.id, auction.status)
        return auction

    async def get_auction(self, auction_id, count_view: bool = True) -> Auction:
        """Fetch an auction, closing it first if its end date has passed"""
        auction = await Auction.get_or_none(id=auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)

        if auction.status == AuctionStatus.active and auction.has_expired():
            auction, _ = await self._close(auction_id, tolerate_ended=True)

        if count_view:
            await Auction.filter(id=auction_id).update(views=F("views") + 1)
            auction.views += 1
        return auction

    async def approve_auction(self, auction_id, admin: User) -> Auction:
        auction = await Auction.get_or_none(id=auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        if auction.status != AuctionStatus.pending:
            raise BidValidationError("Only pending auctions can be approved")

        auction.status = AuctionStatus.active
        auction.approved_by = admin
        auction.approval_date = timezone.now()
        await auction.save()
        logger.info(f"Auction {auction_id} approved by {admin.id}")

        await self.notifier.notify_auction_status(auction.id, auction.status)
        return auction

    async def end_auction(self, auction_id) -> Auction:
        """
        Close an auction and hand its proceeds over to the NGO.

        The winner is the current leader. Remaining auto-bids are switched off,
        and a credit transaction for the final price is recorded when somebody
        actually bid.
        """
        auction, _ = await self._close(auction_id, tolerate_ended=False)
        return auction

    async def _close(self, auction_id, tolerate_ended: bool) -> tuple[Auction, bool]:
        """
        Returns the closed auction and whether this call closed it.

        The close only matches the row at the price the leader was read at, so
        a bid committed by another process in between forces a re-read rather
        than being rolled back.
        """
        async with self.locks.hold(auction_id):
            for attempt in range(CLOSE_ATTEMPTS):
                auction = await Auction.get_or_none(id=auction_id)
                if auction is None:
                    raise AuctionNotFoundError(auction_id)
                if auction.status == AuctionStatus.ended:
                    if tolerate_ended:
                        return auction, False
                    raise BidValidationError("Auction has already ended")

                leader = await BidLedger.highest_bid(auction_id)
                if leader is not None:
                    await leader.fetch_related("bidder")

                now = timezone.now()
                async with in_transaction():
                    closed = await Auction.filter(
                        id=auction_id,
                        status=auction.status,
                        current_price=auction.current_price
                    ).update(
                        status=AuctionStatus.ended,
                        winner_id=leader.bidder_id if leader else None,
                        end_date=auction.end_date if auction.has_expired(now) else now,
                        updated_at=now
                    )
                    if not closed:
                        logger.warning(f"Auction {auction_id} changed while closing, re-reading")
                        continue

                    stopped = await AutoBidStore.deactivate_for_auction(auction_id, AutoBidStopReason.auction_ended)

                    if leader is not None:
                        ngo = await NGO.get(id=auction.ngo_id)
                        await Transaction.create(
                            ngo=ngo,
                            ngo_email=ngo.email,
                            transaction_type=TransactionType.credit,
                            amount=auction.current_price,
                            auction_id=auction_id,
                            reference=f"Auction: {auction.title}",
                            description=f"Auction funds collected - Winner: {leader.bidder.name}"
                        )
                break
            else:
                raise BidConflictError(auction_id, auction.current_price)

            await auction.refresh_from_db()

        self.locks.discard(auction_id)
        logger.info(
            f"Auction {auction_id} ended at {auction.current_price}, "
            f"winner {auction.winner_id}, {stopped} auto-bid(s) stopped"
        )
        await self.notifier.notify_auction_status(auction.id, auction.status)
        return auction, True

    async def close_expired_auctions(self) -> int:
        """End every active auction whose end date has passed"""
        expired = await Auction.filter(
            status=AuctionStatus.active,
            end_date__lte=timezone.now()
        ).values_list("id", flat=True)

        closed = 0
        for auction_id in expired:
            try:
                _, closed_here = await self._close(auction_id, tolerate_ended=True)
            except Exception as e:
                logger.error(f"Failed to close expired auction {auction_id}: {e}")
                continue
            closed += closed_here
        return closed
