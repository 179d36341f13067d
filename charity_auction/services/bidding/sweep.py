from dataclasses import dataclass, field
from itertools import groupby
from operator import attrgetter
from typing import Optional
from loguru import logger

from charity_auction.core.exceptions import BidConflictError
from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.enums.bid_origin import BidOrigin
from charity_auction.models.auto_bid import AutoBid
from charity_auction.services.bidding.auction_state import AuctionStateStore
from charity_auction.services.bidding.auto_bid_store import AutoBidStore
from charity_auction.services.bidding.engine import is_leader
from charity_auction.services.bidding.ledger import BidLedger
from charity_auction.services.bidding.locks import AuctionLocks
from charity_auction.services.notifications.base import BidNotifier


@dataclass
class SweepReport:
    bids_placed: int = 0
    deactivated: int = 0
    skipped: int = 0
    conflicts: int = 0
    failed_auctions: list = field(default_factory=list)


class AutoBidSweeper:
    """
    Periodic backstop for the cascade.

    Each tick moves every active auto-bid at most one step. Escalation that a
    request-triggered cascade did not finish is completed over the following
    ticks.
    """

    def __init__(self, notifier: BidNotifier, locks: Optional[AuctionLocks] = None):
        self.notifier = notifier
        self.locks = locks or AuctionLocks()

    async def sweep_tick(self) -> SweepReport:
        report = SweepReport()
        try:
            rows = await AutoBidStore.all_active()
        except Exception as e:
            logger.error(f"[AutoBid sweep] could not load active auto-bids: {e}")
            return report

        for auction_id, auto_bids in groupby(rows, key=attrgetter("auction_id")):
            auto_bids = list(auto_bids)
            try:
                async with self.locks.hold(auction_id):
                    placed = await self._sweep_auction(auction_id, auto_bids, report)
                if placed:
                    await self._emit(auction_id)
            except Exception as e:
                logger.error(f"[AutoBid sweep] auction {auction_id} failed: {e}")
                report.failed_auctions.append(auction_id)

        if report.bids_placed or report.deactivated or report.failed_auctions:
            logger.info(f"[AutoBid sweep] {report}")
        return report

    async def _sweep_auction(self, auction_id, auto_bids: list[AutoBid], report: SweepReport) -> int:
        placed = 0
        for auto_bid in auto_bids:
            auto_bid = await AutoBidStore.refresh_active(auto_bid)
            if auto_bid is None:
                continue

            auction = await AuctionStateStore.get_or_none(auction_id)
            if auction is None or not auction.is_open():
                await AutoBidStore.deactivate(auto_bid, AutoBidStopReason.auction_ended)
                report.deactivated += 1
                continue

            leader = await BidLedger.highest_bid(auction_id)
            if is_leader(auto_bid.user_id, leader):
                report.skipped += 1
                continue

            required = auction.next_minimum_bid
            if not auto_bid.can_reach(required):
                await AutoBidStore.deactivate(auto_bid, AutoBidStopReason.max_amount)
                report.deactivated += 1
                continue

            amount = min(auto_bid.max_amount, required)
            try:
                await AuctionStateStore.commit_bid(
                    auction,
                    auto_bid.user_id,
                    amount,
                    BidOrigin.sweep,
                    auto_bid=auto_bid
                )
            except BidConflictError as e:
                logger.warning(f"[AutoBid sweep] {e}, retrying next tick")
                report.conflicts += 1
                continue

            placed += 1
            report.bids_placed += 1
            if amount == auto_bid.max_amount:
                await AutoBidStore.deactivate(auto_bid, AutoBidStopReason.max_amount)
                report.deactivated += 1
        return placed

    async def _emit(self, auction_id):
        try:
            bids = await BidLedger.list_bids(auction_id)
            await self.notifier.notify_auction_update(auction_id, bids)
        except Exception as e:
            logger.error(f"[AutoBid sweep] failed to emit update for auction {auction_id}: {e}")
