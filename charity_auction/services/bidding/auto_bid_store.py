from typing import Optional
from loguru import logger

from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.models.auto_bid import AutoBid


class AutoBidStore:
    @staticmethod
    async def get(user_id, auction_id) -> Optional[AutoBid]:
        return await AutoBid.get_or_none(user_id=user_id, auction_id=auction_id)

    @staticmethod
    async def upsert(user_id, auction_id, max_amount: int) -> AutoBid:
        """Create or re-arm the instruction, clearing any previous stop reason"""
        auto_bid, created = await AutoBid.update_or_create(
            defaults={
                "max_amount": max_amount,
                "is_active": True,
                "stop_reason": AutoBidStopReason.none,
            },
            user_id=user_id,
            auction_id=auction_id
        )
        return auto_bid

    @staticmethod
    async def active_for_auction(auction_id) -> list[AutoBid]:
        """Richest proxy first, earliest registration breaks ties"""
        return await AutoBid.filter(auction_id=auction_id, is_active=True).order_by("-max_amount", "id")

    @staticmethod
    async def all_active() -> list[AutoBid]:
        return await AutoBid.filter(is_active=True).order_by("auction_id", "-max_amount", "id")

    @staticmethod
    async def refresh_active(auto_bid: AutoBid) -> Optional[AutoBid]:
        """Fresh copy of the row, or None once it has been switched off"""
        return await AutoBid.get_or_none(id=auto_bid.id, is_active=True)

    @staticmethod
    async def deactivate(auto_bid: AutoBid, reason: AutoBidStopReason) -> bool:
        updated = await AutoBid.filter(id=auto_bid.id, is_active=True).update(
            is_active=False,
            stop_reason=reason
        )
        auto_bid.is_active = False
        auto_bid.stop_reason = reason
        if updated:
            logger.info(f"Auto-bid of user {auto_bid.user_id} on auction {auto_bid.auction_id} stopped: {reason.value}")
        return bool(updated)

    @staticmethod
    async def deactivate_for_user(user_id, auction_id, reason: AutoBidStopReason) -> int:
        return await AutoBid.filter(user_id=user_id, auction_id=auction_id).update(
            is_active=False,
            stop_reason=reason
        )

    @staticmethod
    async def deactivate_for_auction(auction_id, reason: AutoBidStopReason) -> int:
        return await AutoBid.filter(auction_id=auction_id, is_active=True).update(
            is_active=False,
            stop_reason=reason
        )
