from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from charity_auction.api.dependencies import (
    admin_required,
    get_auction_service,
    organizer_required,
)
from charity_auction.core.exceptions import AuctionNotFoundError, BidConflictError, BidValidationError
from charity_auction.models.user import User
from charity_auction.schemas.auction import AuctionCreate, AuctionResponse
from charity_auction.services.auction_service import AuctionService

router = APIRouter()


@router.post("/", response_model=AuctionResponse, status_code=status.HTTP_201_CREATED)
async def create_auction(
    auction_in: AuctionCreate,
    current_user: User = Depends(organizer_required),
    service: AuctionService = Depends(get_auction_service)
):
    """
    List a new item.

    NGO listings that request `active` are parked as `pending` until an admin
    approves them. Admin listings default to `active`.
    """
    try:
        return await service.create_auction(current_user, auction_in)
    except BidValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{auction_id}", response_model=AuctionResponse)
async def get_auction(
    auction_id: UUID,
    service: AuctionService = Depends(get_auction_service)
):
    try:
        return await service.get_auction(auction_id)
    except AuctionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BidValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except BidConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/{auction_id}/approve", response_model=AuctionResponse)
async def approve_auction(
    auction_id: UUID,
    current_user: User = Depends(admin_required),
    service: AuctionService = Depends(get_auction_service)
):
    """Approve a pending auction (admin only)"""
    try:
        return await service.approve_auction(auction_id, current_user)
    except AuctionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BidValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{auction_id}/end", response_model=AuctionResponse)
async def end_auction(
    auction_id: UUID,
    current_user: User = Depends(admin_required),
    service: AuctionService = Depends(get_auction_service)
):
    """End an auction early and credit its NGO (admin only)"""
    try:
        return await service.end_auction(auction_id)
    except AuctionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BidValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except BidConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
