from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from charity_auction.api.dependencies import get_current_user, get_bid_engine
from charity_auction.core.exceptions import (
    AuctionNotFoundError,
    BidConflictError,
    BidPersistenceError,
    BidValidationError,
    CascadeInterruptedError,
)
from charity_auction.models.user import User
from charity_auction.schemas.bid import BidCreate, BidResponse, BidListResponse
from charity_auction.services.bidding import BidLedger, BidResolutionEngine

router = APIRouter()


@router.post("/{auction_id}", response_model=BidResponse, status_code=status.HTTP_201_CREATED)
async def place_bid(
    auction_id: UUID,
    bid_in: BidCreate,
    current_user: User = Depends(get_current_user),
    engine: BidResolutionEngine = Depends(get_bid_engine)
):
    """
    Place a manual bid on an auction.

    The bid must reach the current price plus the auction's increment. Once it
    is stored, standing auto-bids of other users answer it and the resulting
    bid list is pushed to the auction room.

    Raises:
        HTTPException:
            - 404: auction not found.
            - 400: auction not active or amount below the next minimum.
            - 409: the price moved while the bid was being stored, retry.
            - 503: storage failure; if the bid itself was kept, the detail says so.
    """
    try:
        return await engine.place_bid(auction_id, current_user.id, bid_in.amount)
    except AuctionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BidValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except BidConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except CascadeInterruptedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Bid {e.bid.id} was accepted, automatic bidding will resume shortly"
        )
    except BidPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/auction/{auction_id}", response_model=BidListResponse)
async def get_auction_bids(auction_id: UUID):
    """All bids of an auction, newest first"""
    bids = await BidLedger.list_bids(auction_id)
    return BidListResponse(
        count=len(bids),
        bids=[BidResponse.model_validate(bid) for bid in bids]
    )
