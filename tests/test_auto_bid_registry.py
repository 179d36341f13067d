import uuid
import pytest
from datetime import timedelta
from tortoise import timezone

from charity_auction.core.exceptions import AuctionNotFoundError, BidValidationError
from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.enums.bid_origin import BidOrigin
from charity_auction.models import AutoBid, Bid
from charity_auction.services.bidding import AuctionStateStore, BidLedger


@pytest.mark.asyncio
async def test_enable_contests_current_leader(registry, auction, bidder_x, bidder_y):
    await AuctionStateStore.commit_bid(auction, bidder_x.id, 200, BidOrigin.manual)

    auto_bid = await registry.enable(bidder_y.id, auction.id, 500)

    assert auto_bid.is_active
    assert auto_bid.max_amount == 500
    leader = await BidLedger.highest_bid(auction.id)
    assert leader.bidder_id == bidder_y.id
    assert leader.amount == 300


@pytest.mark.asyncio
async def test_enable_updates_existing_row(registry, auction, bidder_y):
    first = await registry.enable(bidder_y.id, auction.id, 500)
    second = await registry.enable(bidder_y.id, auction.id, 900)

    assert first.id == second.id
    assert second.max_amount == 900
    assert await AutoBid.filter(user_id=bidder_y.id, auction_id=auction.id).count() == 1


@pytest.mark.asyncio
async def test_enable_rearms_stopped_auto_bid(registry, auction, bidder_y):
    await AutoBid.create(
        user=bidder_y,
        auction=auction,
        max_amount=150,
        is_active=False,
        stop_reason=AutoBidStopReason.manual
    )

    auto_bid = await registry.enable(bidder_y.id, auction.id, 800)

    assert auto_bid.is_active
    assert auto_bid.stop_reason == AutoBidStopReason.none


@pytest.mark.asyncio
async def test_enable_with_unreachable_ceiling(registry, make_auction, bidder_z):
    auction = await make_auction(current_price=260)

    auto_bid = await registry.enable(bidder_z.id, auction.id, 250)

    assert not auto_bid.is_active
    assert auto_bid.stop_reason == AutoBidStopReason.max_amount
    assert await Bid.filter(auction_id=auction.id).count() == 0


@pytest.mark.asyncio
async def test_enable_rejects_closed_auction(registry, make_auction, bidder_y):
    ended = await make_auction(status=AuctionStatus.ended)
    now = timezone.now()
    expired = await make_auction(start_date=now - timedelta(days=2), end_date=now - timedelta(seconds=5))

    for auction in (ended, expired):
        with pytest.raises(BidValidationError, match="not active"):
            await registry.enable(bidder_y.id, auction.id, 500)

    assert await AutoBid.all().count() == 0


@pytest.mark.asyncio
async def test_enable_rejects_auction_without_auto_bidding(registry, make_auction, bidder_y):
    auction = await make_auction(enable_auto_bidding=False)

    with pytest.raises(BidValidationError, match="disabled"):
        await registry.enable(bidder_y.id, auction.id, 500)


@pytest.mark.asyncio
async def test_enable_rejects_bad_input(registry, auction, bidder_y):
    with pytest.raises(BidValidationError):
        await registry.enable(bidder_y.id, auction.id, 0)

    with pytest.raises(AuctionNotFoundError):
        await registry.enable(bidder_y.id, uuid.uuid4(), 500)


@pytest.mark.asyncio
async def test_disable_is_manual_stop(registry, auction, bidder_y):
    await registry.enable(bidder_y.id, auction.id, 500)

    await registry.disable(bidder_y.id, auction.id)

    auto_bid = await registry.status(bidder_y.id, auction.id)
    assert not auto_bid.is_active
    assert auto_bid.stop_reason == AutoBidStopReason.manual


@pytest.mark.asyncio
async def test_disable_without_auto_bid_is_noop(registry, auction, bidder_y):
    await registry.disable(bidder_y.id, auction.id)

    assert await registry.status(bidder_y.id, auction.id) is None
