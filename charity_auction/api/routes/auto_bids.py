from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from charity_auction.api.dependencies import get_current_user, get_auto_bid_registry
from charity_auction.core.exceptions import AuctionNotFoundError, BidPersistenceError, BidValidationError
from charity_auction.models.user import User
from charity_auction.schemas.auto_bid import (
    AutoBidEnable,
    AutoBidDisable,
    AutoBidResponse,
    AutoBidStatusResponse
)
from charity_auction.services.bidding import AutoBidRegistry

router = APIRouter()


@router.post("/enable", response_model=AutoBidResponse)
async def enable_auto_bid(
    auto_bid_in: AutoBidEnable,
    current_user: User = Depends(get_current_user),
    registry: AutoBidRegistry = Depends(get_auto_bid_registry)
):
    """
    Enable or update proxy bidding on an auction.

    The proxy contests the current leader immediately. The response reflects
    its state after that, so it may already be inactive when the ceiling was
    too low.
    """
    try:
        return await registry.enable(current_user.id, auto_bid_in.auction_id, auto_bid_in.max_amount)
    except AuctionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BidValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except BidPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post("/disable", status_code=status.HTTP_204_NO_CONTENT)
async def disable_auto_bid(
    auto_bid_in: AutoBidDisable,
    current_user: User = Depends(get_current_user),
    registry: AutoBidRegistry = Depends(get_auto_bid_registry)
):
    """Stop proxy bidding on an auction"""
    await registry.disable(current_user.id, auto_bid_in.auction_id)


@router.get("/status/{auction_id}", response_model=AutoBidStatusResponse)
async def get_auto_bid_status(
    auction_id: UUID,
    current_user: User = Depends(get_current_user),
    registry: AutoBidRegistry = Depends(get_auto_bid_registry)
):
    auto_bid = await registry.status(current_user.id, auction_id)
    return AutoBidStatusResponse(
        auto_bid=AutoBidResponse.model_validate(auto_bid) if auto_bid else None
    )
