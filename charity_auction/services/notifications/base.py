from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.models.bid import Bid
from charity_auction.schemas.bid import BidResponse

BID_UPDATE_EVENT = "auction_bid_update"
STATUS_UPDATE_EVENT = "auction_updated"


def build_bid_update(auction_id, bids: list[Bid]) -> dict:
    """Full bid list of an auction, newest first. Observers replace, never merge."""
    return {
        "type": BID_UPDATE_EVENT,
        "auction_id": str(auction_id),
        "bids": [BidResponse.model_validate(bid).model_dump(mode="json") for bid in bids],
    }


def build_status_update(auction_id, status: AuctionStatus) -> dict:
    return {
        "type": STATUS_UPDATE_EVENT,
        "auction_id": str(auction_id),
        "status": AuctionStatus(status).value,
    }


class BidNotifier:
    """
    Outbound port for auction events.

    Delivery is fire-and-forget: implementations log failures and never raise,
    a bid that was stored stays stored whatever happens to its notification.
    """

    async def notify_auction_update(self, auction_id, bids: list[Bid]):
        raise NotImplementedError

    async def notify_auction_status(self, auction_id, status: AuctionStatus):
        raise NotImplementedError
