from typing import Optional

from charity_auction.models.bid import Bid


class BidLedger:
    """Read side of the append-only bid store"""

    @staticmethod
    async def highest_bid(auction_id) -> Optional[Bid]:
        """Current leader. Equal amounts go to the earliest inserted bid."""
        return await Bid.filter(auction_id=auction_id).order_by("-amount", "id").first()

    @staticmethod
    async def list_bids(auction_id) -> list[Bid]:
        """All bids of an auction, newest first"""
        return await Bid.filter(auction_id=auction_id).order_by("-id")

    @staticmethod
    async def count(auction_id) -> int:
        return await Bid.filter(auction_id=auction_id).count()
